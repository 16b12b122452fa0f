"""Concrete in-memory property sources.

Purpose
-------
Provide the map-backed and composite implementations of the
:class:`~lib_property_resolver.application.ports.PropertySource` capability.
Everything here is pure data access; no I/O and no logging.

Contents
--------
* :class:`NamedSource` – name-based identity shared by every concrete source.
* :class:`MapPropertySource` – enumerable source backed by a mapping.
* :class:`CompositePropertySource` – several sources grouped under one name.
* :func:`flatten_mapping` – turn nested mappings into dotted keys.

System Role
-----------
Adapters (files, dotenv, environment) and callers construct these sources and
register them in :class:`~lib_property_resolver.domain.property_sources.PropertySources`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Iterator, Sequence

from .errors import PropertySourceError


class NamedSource(ABC):
    """Identity and representation shared by all concrete property sources.

    Two sources are equal when their names are equal, which lets the chain
    locate and replace slots without deep comparison. Subclasses supply
    :meth:`get_property`.

    Examples
    --------
    >>> MapPropertySource("a", {}) == MapPropertySource("a", {"x": 1})
    True
    >>> MapPropertySource("a", {}) == MapPropertySource("b", {})
    False
    """

    def __init__(self, name: str, source: Any) -> None:
        if not name:
            raise ValueError("Property source name must not be empty")
        self._name = name
        self._source = source

    @property
    def name(self) -> str:
        return self._name

    @property
    def source(self) -> Any:
        return self._source

    @abstractmethod
    def get_property(self, key: str) -> Any | None:
        """Return the raw value for *key*, or ``None`` when absent."""

    def contains_property(self, key: str) -> bool:
        return self.get_property(key) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedSource):
            return NotImplemented
        return self._name == other._name

    def __hash__(self) -> int:
        return hash(self._name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


class MapPropertySource(NamedSource):
    """Enumerable property source backed by a key/value mapping.

    Lookups are exact-key; there is no prefix or relaxed matching. Keys mapped
    to ``None`` are treated as absent and never listed by :meth:`property_names`.

    Examples
    --------
    >>> source = MapPropertySource("defaults", {"app.name": "demo", "app.debug": None})
    >>> source.get_property("app.name")
    'demo'
    >>> source.contains_property("app.debug")
    False
    >>> source.property_names()
    ('app.name',)
    """

    def __init__(self, name: str, source: Mapping[str, Any]) -> None:
        super().__init__(name, source)

    @classmethod
    def from_nested(cls, name: str, mapping: Mapping[str, Any]) -> MapPropertySource:
        """Build a source from a nested mapping by flattening it into dotted keys.

        Examples
        --------
        >>> source = MapPropertySource.from_nested("file", {"db": {"host": "localhost"}})
        >>> source.get_property("db.host")
        'localhost'
        """

        return cls(name, flatten_mapping(mapping))

    def get_property(self, key: str) -> Any | None:
        return self._source.get(key)

    def contains_property(self, key: str) -> bool:
        return self._source.get(key) is not None

    def property_names(self) -> tuple[str, ...]:
        return tuple(key for key, value in self._source.items() if value is not None)


class CompositePropertySource(NamedSource):
    """Group several property sources under a single logical name.

    Why
    ----
    Profile-specific files or a family of dotenv files often belong to one slot
    in the chain; grouping keeps chain names stable while members change.

    What
    ----
    Lookup walks members in order and returns the first non-``None`` value.
    Members are unique by name; re-adding a name moves it.

    Examples
    --------
    >>> composite = CompositePropertySource("files")
    >>> composite.add_property_source(MapPropertySource("base", {"a": "1", "b": "2"}))
    >>> composite.add_first_property_source(MapPropertySource("dev", {"a": "dev"}))
    >>> composite.get_property("a"), composite.get_property("b")
    ('dev', '2')
    >>> composite.property_names()
    ('a', 'b')
    """

    def __init__(self, name: str, members: Sequence[Any] = ()) -> None:
        super().__init__(name, [])
        for member in members:
            self.add_property_source(member)

    @property
    def property_sources(self) -> tuple[Any, ...]:
        return tuple(self._source)

    def add_property_source(self, source: Any) -> None:
        self._discard(source)
        self._source.append(source)

    def add_first_property_source(self, source: Any) -> None:
        self._discard(source)
        self._source.insert(0, source)

    def get_property(self, key: str) -> Any | None:
        for member in self._source:
            candidate = member.get_property(key)
            if candidate is not None:
                return candidate
        return None

    def contains_property(self, key: str) -> bool:
        return any(member.contains_property(key) for member in self._source)

    def property_names(self) -> tuple[str, ...]:
        names: dict[str, None] = {}
        for member in self._source:
            enumerate_names = getattr(member, "property_names", None)
            if enumerate_names is None:
                raise PropertySourceError(
                    f"Failed to enumerate property names due to non-enumerable property source: {member!r}"
                )
            names.update(dict.fromkeys(enumerate_names()))
        return tuple(names)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._source))

    def __repr__(self) -> str:
        members = ", ".join(repr(member) for member in self._source)
        return f"CompositePropertySource(name={self.name!r}, property_sources=[{members}])"

    def _discard(self, source: Any) -> None:
        self._source[:] = [member for member in self._source if member.name != source.name]


def flatten_mapping(mapping: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested mappings into a single level of dotted keys.

    Lists are stored under their own key and additionally exposed per element
    as ``key.0``, ``key.1`` and so on; mapping elements are flattened below
    their index.

    Examples
    --------
    >>> flatten_mapping({"server": {"port": 8080, "hosts": ["a", "b"]}})
    {'server.port': 8080, 'server.hosts': ['a', 'b'], 'server.hosts.0': 'a', 'server.hosts.1': 'b'}
    """

    flat: dict[str, Any] = {}
    for key, value in mapping.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        _flatten_value(flat, dotted, value)
    return flat


def _flatten_value(target: dict[str, Any], dotted: str, value: Any) -> None:
    """Store *value* under *dotted*, descending into mappings and lists."""

    if isinstance(value, Mapping):
        target.update(flatten_mapping(value, dotted))
        return
    target[dotted] = value
    if isinstance(value, list):
        for index, item in enumerate(value):
            _flatten_value(target, f"{dotted}.{index}", item)
