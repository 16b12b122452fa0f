"""Logging for property lookups and environment bootstrap.

Purpose
    Give every resolver, adapter and bootstrap message the same structured
    ``context`` attribute (trace id, source, key, extras) while leaving handler
    and formatter choice to the host application.

Contents
    - ``TRACE_ID``: context variable holding the trace id of the current
      bootstrap or request.
    - ``get_logger``: the ``lib_property_resolver`` logger, silent until the
      application attaches a handler.
    - ``bind_trace_id``: set or clear ``TRACE_ID``.
    - ``is_debug_enabled``: cheap guard for per-lookup debug events.
    - ``log_debug`` / ``log_info`` / ``log_error``: level-specific emitters.
    - ``make_event``: ``source``/``key`` payload builder.

System Integration
    Lookups in the resolver and the environment adapter log at debug level;
    adapters and ``core.create_environment`` log layer loading and failures.
    The domain package never imports this module.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_property_resolver_trace_id", default=None)
"""Trace id copied into every record's ``context``; ``None`` when unbound."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_property_resolver")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger; attach handlers here to see resolver events."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Set the trace id for subsequent records in this context, ``None`` to clear it.

    Examples
    --------
    >>> bind_trace_id('boot-7')
    >>> TRACE_ID.get()
    'boot-7'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def is_debug_enabled() -> bool:
    """Return ``True`` when debug events would reach a handler.

    Lookup paths call this before building event payloads because they run for
    every property access.
    """

    return _LOGGER.isEnabledFor(logging.DEBUG)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def make_event(
    source: str | None,
    key: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return ``{"source": ..., "key": ...}`` extended with *payload*.

    The result is meant to be unpacked into one of the ``log_*`` helpers, so
    property events always carry the same two leading fields.

    Examples
    --------
    >>> make_event('commandLineArgs', 'app.name', {'type': 'str'})
    {'source': 'commandLineArgs', 'key': 'app.name', 'type': 'str'}
    >>> make_event('dotenv', None)
    {'source': 'dotenv', 'key': None}
    """

    event: dict[str, Any] = {"source": source, "key": key}
    if payload:
        event.update(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    context = {"trace_id": TRACE_ID.get(), **fields}
    _LOGGER.log(level, message, extra={"context": context})
