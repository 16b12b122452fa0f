"""Property resolution over a chain of property sources.

Purpose
-------
Answer "what is the value of key K" by walking
:class:`~lib_property_resolver.domain.property_sources.PropertySources` in
precedence order, expanding placeholders in the winning value and coercing it
to the requested type.

Contents
--------
* :class:`PropertySourcesPropertyResolver` – the configurable resolver.

System Role
-----------
The environment (:mod:`lib_property_resolver.application.environment`) owns
one resolver and forwards every property call to it. The resolver is also
usable on its own for callers that do not need profiles.
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar, overload

from ..domain.errors import MissingRequiredProperties, PropertyNotFound
from ..domain.property_sources import PropertySources
from ..observability import is_debug_enabled, log_debug, log_error, make_event
from .conversion import DefaultConversionService
from .placeholders import PLACEHOLDER_PREFIX, PLACEHOLDER_SUFFIX, VALUE_SEPARATOR, PlaceholderHelper
from .ports import ConversionService

T = TypeVar("T")


class PropertySourcesPropertyResolver:
    """Resolve properties against a :class:`PropertySources` chain.

    Why
    ----
    Bootstrap code needs one uniform lookup regardless of whether a key came
    from the command line, a file or the environment.

    What
    ----
    * Lookup returns the first non-``None`` value in chain order; later sources
      are never consulted for that key.
    * String values are placeholder-expanded with the same chain; nested
      unresolvable placeholders raise unless
      :attr:`ignore_unresolvable_nested_placeholders` is set.
    * The expanded value is coerced through the conversion service.

    Parameters
    ----------
    property_sources:
        Chain to search. ``None`` behaves like an empty chain.

    Examples
    --------
    >>> from lib_property_resolver.domain.sources import MapPropertySource
    >>> chain = PropertySources([MapPropertySource("app", {
    ...     "db.host": "localhost",
    ...     "db.port": "5432",
    ...     "db.url": "jdbc://${db.host}:${db.port}/x",
    ... })])
    >>> resolver = PropertySourcesPropertyResolver(chain)
    >>> resolver.get_property("db.url")
    'jdbc://localhost:5432/x'
    >>> resolver.get_property("db.port", int)
    5432
    >>> resolver.get_property("db.user", default="sa")
    'sa'
    """

    def __init__(self, property_sources: PropertySources | None = None) -> None:
        self._property_sources = property_sources
        self._conversion_service: ConversionService | None = None
        self._placeholder_prefix = PLACEHOLDER_PREFIX
        self._placeholder_suffix = PLACEHOLDER_SUFFIX
        self._value_separator: str | None = VALUE_SEPARATOR
        self._escape_character: str | None = None
        self._ignore_unresolvable_nested_placeholders = False
        self._required_properties: dict[str, None] = {}
        self._strict_helper: PlaceholderHelper | None = None
        self._lenient_helper: PlaceholderHelper | None = None

    # -- configuration -------------------------------------------------------------

    @property
    def property_sources(self) -> PropertySources | None:
        return self._property_sources

    @property
    def conversion_service(self) -> ConversionService:
        """Return the conversion service, creating an independent default on first use."""

        if self._conversion_service is None:
            self._conversion_service = DefaultConversionService()
        return self._conversion_service

    @conversion_service.setter
    def conversion_service(self, service: ConversionService) -> None:
        self._conversion_service = service

    @property
    def placeholder_prefix(self) -> str:
        return self._placeholder_prefix

    @placeholder_prefix.setter
    def placeholder_prefix(self, prefix: str) -> None:
        self._placeholder_prefix = prefix
        self._reset_helpers()

    @property
    def placeholder_suffix(self) -> str:
        return self._placeholder_suffix

    @placeholder_suffix.setter
    def placeholder_suffix(self, suffix: str) -> None:
        self._placeholder_suffix = suffix
        self._reset_helpers()

    @property
    def value_separator(self) -> str | None:
        return self._value_separator

    @value_separator.setter
    def value_separator(self, separator: str | None) -> None:
        self._value_separator = separator
        self._reset_helpers()

    @property
    def escape_character(self) -> str | None:
        return self._escape_character

    @escape_character.setter
    def escape_character(self, escape: str | None) -> None:
        self._escape_character = escape
        self._reset_helpers()

    @property
    def ignore_unresolvable_nested_placeholders(self) -> bool:
        return self._ignore_unresolvable_nested_placeholders

    @ignore_unresolvable_nested_placeholders.setter
    def ignore_unresolvable_nested_placeholders(self, ignore: bool) -> None:
        self._ignore_unresolvable_nested_placeholders = ignore

    @property
    def required_properties(self) -> tuple[str, ...]:
        return tuple(self._required_properties)

    def set_required_properties(self, keys: Iterable[str]) -> None:
        """Add *keys* to the set checked by :meth:`validate_required_properties`."""

        self._required_properties.update(dict.fromkeys(keys))

    # -- lookups ---------------------------------------------------------------------

    def contains_property(self, key: str) -> bool:
        if self._property_sources is None:
            return False
        return any(source.contains_property(key) for source in self._property_sources)

    @overload
    def get_property(self, key: str) -> str | None: ...

    @overload
    def get_property(self, key: str, target_type: type[T]) -> T | None: ...

    @overload
    def get_property(self, key: str, target_type: type[T], default: T) -> T: ...

    @overload
    def get_property(self, key: str, *, default: str) -> str: ...

    def get_property(self, key: str, target_type: Any = str, default: Any = None) -> Any:
        """Return the expanded, converted value for *key* or *default* when absent.

        Raises
        ------
        UnresolvablePlaceholder / CircularPlaceholderReference
            When the value embeds placeholders that cannot be expanded.
        TypeConversionFailed
            When the value cannot be coerced to *target_type*.
        """

        value = self._get_property(key, target_type, resolve_nested=True)
        return default if value is None else value

    def get_raw_property(self, key: str) -> Any | None:
        """Return the first stored value for *key* without expansion or conversion."""

        return self._get_property(key, None, resolve_nested=False)

    def get_required_property(self, key: str, target_type: Any = str) -> Any:
        """Return the value for *key* or raise :class:`PropertyNotFound`."""

        value = self._get_property(key, target_type, resolve_nested=True)
        if value is None:
            raise PropertyNotFound(key)
        return value

    def resolve_placeholders(self, text: str) -> str:
        """Expand *text*, leaving unresolvable placeholders untouched."""

        if self._lenient_helper is None:
            self._lenient_helper = self._create_helper(ignore_unresolvable=True)
        return self._lenient_helper.replace_placeholders(text, self._get_property_as_raw_string)

    def resolve_required_placeholders(self, text: str) -> str:
        """Expand *text*, raising ``UnresolvablePlaceholder`` for unknown keys."""

        if self._strict_helper is None:
            self._strict_helper = self._create_helper(ignore_unresolvable=False)
        return self._strict_helper.replace_placeholders(text, self._get_property_as_raw_string)

    def validate_required_properties(self) -> None:
        """Raise one :class:`MissingRequiredProperties` naming every unresolved key.

        Keys resolving to ``None`` or an empty string count as missing.
        """

        missing = [key for key in self._required_properties if self.get_property(key) in (None, "")]
        if missing:
            log_error("required_properties_missing", **make_event(None, None, {"missing": missing}))
            raise MissingRequiredProperties(missing)

    # -- internals -------------------------------------------------------------------

    def _get_property(self, key: str, target_type: Any, *, resolve_nested: bool) -> Any | None:
        if self._property_sources is not None:
            for source in self._property_sources:
                value = source.get_property(key)
                if value is None:
                    continue
                if resolve_nested and isinstance(value, str):
                    value = self._resolve_nested_placeholders(value)
                if is_debug_enabled():
                    log_debug("property_found", **make_event(source.name, key, {"type": type(value).__name__}))
                return self._convert_if_necessary(value, target_type)
        if is_debug_enabled():
            log_debug("property_not_found", **make_event(None, key))
        return None

    def _get_property_as_raw_string(self, key: str) -> str | None:
        return self._get_property(key, str, resolve_nested=False)

    def _resolve_nested_placeholders(self, value: str) -> str:
        if not value:
            return value
        if self._ignore_unresolvable_nested_placeholders:
            return self.resolve_placeholders(value)
        return self.resolve_required_placeholders(value)

    def _convert_if_necessary(self, value: Any, target_type: Any) -> Any:
        if target_type is None:
            return value
        if self._conversion_service is None and isinstance(target_type, type) and type(value) is target_type:
            return value
        return self.conversion_service.convert(value, target_type)

    def _create_helper(self, *, ignore_unresolvable: bool) -> PlaceholderHelper:
        return PlaceholderHelper(
            self._placeholder_prefix,
            self._placeholder_suffix,
            self._value_separator,
            self._escape_character,
            ignore_unresolvable,
        )

    def _reset_helpers(self) -> None:
        self._strict_helper = None
        self._lenient_helper = None
