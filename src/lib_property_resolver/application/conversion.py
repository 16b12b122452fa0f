"""Type coercion for resolved property values.

Purpose
-------
Turn raw values (mostly strings) into the Python types callers ask for, with a
registry that applications can extend.

Contents
--------
* :class:`DefaultConversionService` – converter registry keyed by
  ``(source_type, target_type)``; lookups walk the source type's MRO.
* :func:`parse_bool` / :func:`split_list` / :func:`to_text` – the built-in
  string converters, reusable on their own.

System Role
-----------
Used by :class:`~lib_property_resolver.application.resolver.PropertySourcesPropertyResolver`
after placeholder expansion. Failures surface as
:class:`~lib_property_resolver.domain.errors.TypeConversionFailed`.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Final

from ..domain.errors import TypeConversionFailed

Converter = Callable[[Any], Any]

_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS: Final[frozenset[str]] = frozenset({"false", "no", "off", "0"})


class DefaultConversionService:
    """Registry of converters with sensible defaults for configuration values.

    Why
    ----
    Configuration arrives as text (command line, environment, dotenv) or as
    loosely typed file values; callers want ``int``/``bool``/``Path`` without
    repeating parsing code.

    What
    ----
    Returns values unchanged when they already have the target type, otherwise
    finds the most specific registered converter for ``type(value)`` and the
    target type. Any ``ValueError``/``TypeError``/``ArithmeticError`` raised by a
    converter becomes :class:`TypeConversionFailed`.

    Examples
    --------
    >>> service = DefaultConversionService()
    >>> service.convert("8080", int), service.convert("yes", bool), service.convert("a, b", list)
    (8080, True, ['a', 'b'])
    >>> service.convert(True, str)
    'true'
    >>> service.convert("abc", int)
    Traceback (most recent call last):
    ...
    lib_property_resolver.domain.errors.TypeConversionFailed: Cannot convert value 'abc' of type str to int: invalid literal for int() with base 10: 'abc'
    """

    def __init__(self, *, register_defaults: bool = True) -> None:
        self._converters: dict[tuple[type, type], Converter] = {}
        if register_defaults:
            _register_defaults(self)

    def add_converter(self, source_type: type, target_type: type, converter: Converter) -> None:
        """Register (or override) the converter for ``source_type -> target_type``."""

        self._converters[(source_type, target_type)] = converter

    def can_convert(self, source_type: type, target_type: type) -> bool:
        if _is_passthrough(target_type) or _is_subtype(source_type, target_type):
            return True
        return self._find(source_type, target_type) is not None

    def convert(self, value: Any, target_type: type) -> Any:
        if value is None or _is_passthrough(target_type):
            return value
        if _is_subtype(type(value), target_type):
            return value
        converter = self._find(type(value), target_type)
        if converter is None:
            raise TypeConversionFailed(value, target_type, "no converter registered")
        try:
            return converter(value)
        except TypeConversionFailed:
            raise
        except (ValueError, TypeError, ArithmeticError) as exc:
            raise TypeConversionFailed(value, target_type, str(exc)) from exc

    def _find(self, source_type: type, target_type: type) -> Converter | None:
        for candidate in source_type.__mro__:
            converter = self._converters.get((candidate, target_type))
            if converter is not None:
                return converter
        return None


def parse_bool(value: str) -> bool:
    """Parse common boolean spellings.

    Examples
    --------
    >>> parse_bool("ON"), parse_bool("0")
    (True, False)
    """

    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"'{value}' is not a boolean; expected one of {sorted(_TRUE_STRINGS | _FALSE_STRINGS)}")


def split_list(value: str) -> list[str]:
    """Split a comma-delimited string, trimming items and dropping empty ones.

    Examples
    --------
    >>> split_list(" a, b ,,c ")
    ['a', 'b', 'c']
    """

    return [item.strip() for item in value.split(",") if item.strip()]


def to_text(value: Any) -> str:
    """Render *value* the way it would appear in a property file.

    Examples
    --------
    >>> to_text(False), to_text([1, "two", True]), to_text(3.5)
    ('false', '1,two,true', '3.5')
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(item) for item in value)
    return str(value)


def _int_from_float(value: float) -> int:
    if not float(value).is_integer():
        raise ValueError(f"{value} has a fractional part")
    return int(value)


def _bool_from_number(value: int | float) -> bool:
    if value in (0, 1):
        return bool(value)
    raise ValueError(f"{value} is not 0 or 1")


def _register_defaults(service: DefaultConversionService) -> None:
    service.add_converter(str, int, lambda value: int(value.strip()))
    service.add_converter(str, float, lambda value: float(value.strip()))
    service.add_converter(str, Decimal, lambda value: Decimal(value.strip()))
    service.add_converter(str, bool, parse_bool)
    service.add_converter(str, Path, lambda value: Path(value.strip()))
    service.add_converter(str, list, split_list)
    service.add_converter(str, tuple, lambda value: tuple(split_list(value)))
    service.add_converter(object, str, to_text)
    service.add_converter(int, float, float)
    service.add_converter(int, Decimal, Decimal)
    service.add_converter(int, bool, _bool_from_number)
    service.add_converter(bool, int, int)
    service.add_converter(float, int, _int_from_float)
    service.add_converter(float, Decimal, lambda value: Decimal(str(value)))
    service.add_converter(list, tuple, tuple)
    service.add_converter(tuple, list, list)


def _is_passthrough(target_type: Any) -> bool:
    return target_type is None or target_type is Any or target_type is object


def _is_subtype(source_type: type, target_type: type) -> bool:
    if source_type is bool and target_type is not bool:
        return False
    try:
        return issubclass(source_type, target_type)
    except TypeError:
        return False
