"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, event construction and the debug
events emitted while resolving properties.
"""

from __future__ import annotations

import logging

import pytest

from lib_property_resolver import bind_trace_id, get_logger
from lib_property_resolver.observability import TRACE_ID, is_debug_enabled, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_property_resolver")
    bind_trace_id("trace-123")
    try:
        log_info("environment_ready", source=None, key=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert getattr(record, "context") == {"trace_id": "trace-123", "source": None, "key": None}


def test_bind_trace_id_clears_context() -> None:
    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    event = make_event("systemEnvironment", "db.host", {"variable": "DB_HOST"})
    assert event == {"source": "systemEnvironment", "key": "db.host", "variable": "DB_HOST"}
    assert make_event("x", None) == {"source": "x", "key": None}


def test_debug_flag_follows_logger_level(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="lib_property_resolver")
    assert is_debug_enabled()


def test_lookup_emits_property_found(caplog: pytest.LogCaptureFixture, make_resolver) -> None:
    """Debug logging names the source that supplied a value."""

    caplog.set_level(logging.DEBUG, logger="lib_property_resolver")
    resolver = make_resolver(overrides={"a": "1"}, defaults={"a": "2"})
    resolver.get_property("a")
    resolver.get_property("missing")
    events = {record.getMessage(): record.context for record in caplog.records}
    assert events["property_found"]["source"] == "overrides"
    assert events["property_not_found"]["key"] == "missing"
