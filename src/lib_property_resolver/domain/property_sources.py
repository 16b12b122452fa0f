"""Precedence-ordered chain of property sources.

Purpose
-------
Hold the ordered sequence of property sources the resolver walks. Index ``0``
has the highest precedence; the first source that yields a value wins.

Contents
--------
* :class:`PropertySources` – mutable chain with ``add_first``/``add_last``/
  ``add_before``/``add_after``/``replace``/``remove`` operations.

System Role
-----------
Built by the composition root (:mod:`lib_property_resolver.core`) at bootstrap
time and read by :class:`~lib_property_resolver.application.resolver.PropertySourcesPropertyResolver`
afterwards. The chain performs no locking; concurrent mutation must be
synchronised by the caller.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from .errors import DuplicateSource, SourceNotFound


class PropertySources:
    """Ordered, name-unique sequence of property sources.

    Why
    ----
    Precedence must be explicit and stable: callers layer command-line
    arguments over profile files over defaults by position alone.

    What
    ----
    Keeps a list of sources whose names are unique. Every mutation validates
    uniqueness and raises :class:`DuplicateSource` or :class:`SourceNotFound`
    instead of silently reordering.

    Examples
    --------
    >>> from lib_property_resolver.domain.sources import MapPropertySource
    >>> chain = PropertySources()
    >>> chain.add_last(MapPropertySource("defaults", {"a": "1"}))
    >>> chain.add_first(MapPropertySource("overrides", {"a": "2"}))
    >>> [source.name for source in chain]
    ['overrides', 'defaults']
    >>> chain.add_after("overrides", MapPropertySource("profile", {}))
    >>> chain.names()
    ('overrides', 'profile', 'defaults')
    """

    def __init__(self, sources: Iterable[Any] = ()) -> None:
        self._sources: list[Any] = []
        for source in sources:
            self.add_last(source)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._sources))

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return self.contains(item)
        return any(source == item for source in self._sources)

    def __repr__(self) -> str:
        return f"PropertySources({list(self.names())!r})"

    def names(self) -> tuple[str, ...]:
        return tuple(source.name for source in self._sources)

    def contains(self, name: str) -> bool:
        return any(source.name == name for source in self._sources)

    def get(self, name: str) -> Any | None:
        """Return the source registered under *name* or ``None``."""

        for source in self._sources:
            if source.name == name:
                return source
        return None

    def precedence_of(self, source: Any) -> int:
        """Return the index of *source* (matched by name) or ``-1``."""

        name = source if isinstance(source, str) else source.name
        for index, candidate in enumerate(self._sources):
            if candidate.name == name:
                return index
        return -1

    def add_first(self, source: Any) -> None:
        """Register *source* with the highest precedence."""

        self._assert_absent(source.name)
        self._sources.insert(0, source)

    def add_last(self, source: Any) -> None:
        """Register *source* with the lowest precedence."""

        self._assert_absent(source.name)
        self._sources.append(source)

    def add_before(self, relative_name: str, source: Any) -> None:
        """Insert *source* immediately ahead of *relative_name*."""

        self._assert_legal_relative_addition(relative_name, source)
        self._sources.insert(self._index_of(relative_name), source)

    def add_after(self, relative_name: str, source: Any) -> None:
        """Insert *source* immediately behind *relative_name*."""

        self._assert_legal_relative_addition(relative_name, source)
        self._sources.insert(self._index_of(relative_name) + 1, source)

    def replace(self, name: str, source: Any) -> None:
        """Swap the source registered as *name* for *source* at the same position.

        Raises
        ------
        SourceNotFound
            When *name* is not registered.
        DuplicateSource
            When *source* carries the name of a different registered slot.
        """

        index = self._index_of(name)
        if source.name != name and self.contains(source.name):
            raise DuplicateSource(source.name)
        self._sources[index] = source

    def remove(self, name: str) -> Any:
        """Remove and return the source registered as *name*."""

        return self._sources.pop(self._index_of(name))

    def _index_of(self, name: str) -> int:
        index = self.precedence_of(name)
        if index == -1:
            raise SourceNotFound(name)
        return index

    def _assert_absent(self, name: str) -> None:
        if self.contains(name):
            raise DuplicateSource(name)

    def _assert_legal_relative_addition(self, relative_name: str, source: Any) -> None:
        if relative_name == source.name:
            raise DuplicateSource(
                source.name,
                f"PropertySource named '{source.name}' cannot be added relative to itself",
            )
        self._assert_absent(source.name)
