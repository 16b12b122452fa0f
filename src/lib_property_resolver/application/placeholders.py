"""Placeholder substitution engine.

Purpose
-------
Expand ``${key}`` and ``${key:default}`` expressions embedded in string values,
resolving nested placeholders innermost-first and refusing cyclic references.

Contents
--------
* :data:`PLACEHOLDER_PREFIX` / :data:`PLACEHOLDER_SUFFIX` / :data:`VALUE_SEPARATOR`
  – the stable default syntax; :data:`ESCAPE_CHARACTER` is the conventional
  opt-in escape.
* :class:`PlaceholderHelper` – configured syntax plus the scanning algorithm.

System Role
-----------
The resolver owns two helpers (strict and lenient) and feeds them a raw lookup
callable. The helper never looks values up on its own, so it can be reused for
any key/value backend.

Algorithm
---------
1. Scan for the prefix; with escaping enabled, an escaped prefix (``\\${``)
   is emitted literally.
2. Find the matching suffix while counting nested prefixes.
3. Split the inner text on the first separator outside nested placeholders.
4. Expand the key part, look it up, then expand the looked-up value.
5. Otherwise expand and use the default, or keep the span verbatim when
   ignoring unresolvable placeholders, or raise
   :class:`~lib_property_resolver.domain.errors.UnresolvablePlaceholder`.

Keys currently being expanded are tracked per top-level call; a key that
re-enters raises :class:`~lib_property_resolver.domain.errors.CircularPlaceholderReference`.
"""

from __future__ import annotations

from typing import Callable, Final

from ..domain.errors import CircularPlaceholderReference, UnresolvablePlaceholder

PLACEHOLDER_PREFIX: Final[str] = "${"
PLACEHOLDER_SUFFIX: Final[str] = "}"
VALUE_SEPARATOR: Final[str] = ":"
ESCAPE_CHARACTER: Final[str] = "\\"

_WELL_KNOWN_SIMPLE_PREFIXES: Final[dict[str, str]] = {"}": "{", "]": "[", ")": "("}

PlaceholderLookup = Callable[[str], "str | None"]


class PlaceholderHelper:
    """Expand placeholders in text using a caller-supplied lookup.

    Parameters
    ----------
    prefix / suffix:
        Delimiters of a placeholder (default ``${`` and ``}``).
    value_separator:
        Separator between key and inline default; ``None`` disables defaults.
    escape_character:
        Character that makes the following prefix or separator literal;
        the default ``None`` treats every prefix as a placeholder.
    ignore_unresolvable:
        Keep unresolvable placeholders verbatim instead of raising.

    Examples
    --------
    >>> values = {"db.host": "localhost", "db.port": "5432"}
    >>> helper = PlaceholderHelper()
    >>> helper.replace_placeholders("jdbc://${db.host}:${db.port}/x", values.get)
    'jdbc://localhost:5432/x'
    >>> helper.replace_placeholders("${a:${b:literal}}", values.get)
    'literal'
    >>> PlaceholderHelper(ignore_unresolvable=True).replace_placeholders("${missing} ok", values.get)
    '${missing} ok'
    """

    def __init__(
        self,
        prefix: str = PLACEHOLDER_PREFIX,
        suffix: str = PLACEHOLDER_SUFFIX,
        value_separator: str | None = VALUE_SEPARATOR,
        escape_character: str | None = None,
        ignore_unresolvable: bool = False,
    ) -> None:
        if not prefix or not suffix:
            raise ValueError("Placeholder prefix and suffix must not be empty")
        self.prefix = prefix
        self.suffix = suffix
        self.value_separator = value_separator or None
        self.escape_character = escape_character or None
        self.ignore_unresolvable = ignore_unresolvable
        simple_prefix = _WELL_KNOWN_SIMPLE_PREFIXES.get(suffix)
        self._simple_prefix = simple_prefix if simple_prefix and prefix.endswith(simple_prefix) else prefix

    def replace_placeholders(self, text: str, lookup: PlaceholderLookup) -> str:
        """Return *text* with every placeholder expanded through *lookup*."""

        return self._parse(text, lookup, [])

    def _parse(self, text: str, lookup: PlaceholderLookup, in_flight: list[str]) -> str:
        if self.prefix not in text:
            return text
        parts: list[str] = []
        index = 0
        while index < len(text):
            start = text.find(self.prefix, index)
            if start == -1:
                parts.append(text[index:])
                break
            if self._is_escaped(text, start):
                parts.append(text[index : start - len(self.escape_character)])
                parts.append(self.prefix)
                index = start + len(self.prefix)
                continue
            end = self._find_placeholder_end(text, start + len(self.prefix))
            if end == -1:
                parts.append(text[index:])
                break
            parts.append(text[index:start])
            span = text[start : end + len(self.suffix)]
            inner = text[start + len(self.prefix) : end]
            parts.append(self._resolve_placeholder(text, span, inner, lookup, in_flight))
            index = end + len(self.suffix)
        return "".join(parts)

    def _resolve_placeholder(
        self,
        text: str,
        span: str,
        inner: str,
        lookup: PlaceholderLookup,
        in_flight: list[str],
    ) -> str:
        raw_key, default = self._split_key_and_default(inner)
        key = self._parse(raw_key, lookup, in_flight)
        if key in in_flight:
            raise CircularPlaceholderReference(key, in_flight)

        in_flight.append(key)
        try:
            value = lookup(key)
            if value is not None:
                return self._parse(value, lookup, in_flight)
        finally:
            in_flight.pop()

        if default is not None:
            return self._parse(default, lookup, in_flight)
        if self.ignore_unresolvable:
            return span
        raise UnresolvablePlaceholder(key, text)

    def _split_key_and_default(self, inner: str) -> tuple[str, str | None]:
        """Split on the first separator that sits outside nested placeholders.

        An escaped separator belongs to the key and loses its escape character.
        """

        separator = self.value_separator
        if separator is None or separator not in inner:
            return inner, None
        key_chars: list[str] = []
        depth = 0
        index = 0
        while index < len(inner):
            if inner.startswith(self.prefix, index) and not self._is_escaped(inner, index):
                depth += 1
                key_chars.append(self.prefix)
                index += len(self.prefix)
            elif depth and inner.startswith(self.suffix, index):
                depth -= 1
                key_chars.append(self.suffix)
                index += len(self.suffix)
            elif depth == 0 and inner.startswith(separator, index):
                if self._is_escaped(inner, index):
                    del key_chars[-len(self.escape_character) :]
                    key_chars.append(separator)
                    index += len(separator)
                    continue
                return "".join(key_chars), inner[index + len(separator) :]
            else:
                key_chars.append(inner[index])
                index += 1
        return "".join(key_chars), None

    def _find_placeholder_end(self, text: str, index: int) -> int:
        nested = 0
        while index < len(text):
            if text.startswith(self.suffix, index):
                if nested == 0:
                    return index
                nested -= 1
                index += len(self.suffix)
            elif text.startswith(self.prefix, index) and not self._is_escaped(text, index):
                nested += 1
                index += len(self.prefix)
            elif text.startswith(self._simple_prefix, index):
                nested += 1
                index += len(self._simple_prefix)
            else:
                index += 1
        return -1

    def _is_escaped(self, text: str, index: int) -> bool:
        escape = self.escape_character
        return escape is not None and index >= len(escape) and text.startswith(escape, index - len(escape))
