"""Shared fixtures for the property resolver test-suite."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from lib_property_resolver.domain.property_sources import PropertySources
from lib_property_resolver.domain.sources import MapPropertySource
from lib_property_resolver.application.resolver import PropertySourcesPropertyResolver


@pytest.fixture()
def make_resolver() -> Callable[..., PropertySourcesPropertyResolver]:
    """Build a resolver over map sources given as ``name=mapping`` pairs, highest precedence first."""

    def _build(**layers: dict[str, Any]) -> PropertySourcesPropertyResolver:
        chain = PropertySources(MapPropertySource(name, values) for name, values in layers.items())
        return PropertySourcesPropertyResolver(chain)

    return _build


@pytest.fixture()
def clean_environ() -> dict[str, str]:
    """Provide an isolated environment mapping so tests never read the real process environment."""

    return {}
