"""Application-layer ports describing the capabilities the resolver relies on.

Purpose
-------
Define the structural contracts that property sources, converters and adapters
must satisfy so the resolver can orchestrate behaviour without depending on
concrete implementations.

Contents
--------
* :class:`PropertySource` – named, read-only key lookup.
* :class:`EnumerablePropertySource` – a property source that can also list
  its keys.
* :class:`ConversionService` – pluggable type coercion.
* :class:`FileLoader` – parses structured configuration artifacts.
* :class:`DotEnvLoader` – loads ``.env`` files into flat key/value maps.
* :class:`CommandLineParser` – tokenises an argument vector.

System Role
-----------
Sources are modelled as capabilities rather than a class hierarchy: anything
with ``name``, ``get_property`` and ``contains_property`` is a source, and the
chain or composite only asks for ``property_names`` when it needs to
enumerate.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ..domain.command_line import CommandLineArgs


@runtime_checkable
class PropertySource(Protocol):
    """Named key/value lookup; the atomic unit of configuration.

    Attributes
    ----------
    name:
        Identifier that is unique within a chain.
    source:
        Underlying object the lookups are served from.
    """

    name: str
    source: Any

    def get_property(self, key: str) -> Any | None:
        """Return the raw value stored for *key* or ``None``."""

    def contains_property(self, key: str) -> bool:
        """Return ``True`` when *key* is present in this source."""


@runtime_checkable
class EnumerablePropertySource(PropertySource, Protocol):
    """Property source that additionally exposes the full set of its keys."""

    def property_names(self) -> tuple[str, ...]:
        """Return every key held by the source in declaration order."""


@runtime_checkable
class ConversionService(Protocol):
    """Convert resolved values into requested Python types."""

    def can_convert(self, source_type: type, target_type: type) -> bool:
        """Return ``True`` when a converter exists for the pair."""

    def convert(self, value: Any, target_type: type) -> Any:
        """Return *value* converted to *target_type* or raise ``TypeConversionFailed``."""


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping."""

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""


@runtime_checkable
class DotEnvLoader(Protocol):
    """Materialise a ``.env`` file into a flat dotted-key mapping."""

    def load(self, start_dir: str | None = None) -> Mapping[str, object]:
        """Search from *start_dir* upwards and return the first parsed file."""


@runtime_checkable
class CommandLineParser(Protocol):
    """Split an argument vector into option and non-option arguments."""

    def parse(self, args: Sequence[str]) -> CommandLineArgs:
        """Return the structured form of *args*."""
