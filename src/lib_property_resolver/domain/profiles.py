"""Profile expression parsing and evaluation.

Purpose
-------
Decide whether a set of profile constraints is satisfied by the currently
active profiles.

Contents
--------
* :func:`validate_profile` – reject empty, blank and ``!``-prefixed names.
* :class:`Profiles` – parsed expressions; true when any expression matches.
* Expression nodes (:class:`_Name`, :class:`_Not`, :class:`_And`,
  :class:`_Or`) and the recursive-descent :class:`_Parser`.

Grammar
-------
Each expression is parsed with ``!`` binding tightest, then ``&``, then
``|``; parentheses group::

    or    := and ('|' and)*
    and   := unary ('&' unary)*
    unary := '!' unary | '(' or ')' | NAME

A bare name therefore keeps its simple meaning ("is active") and ``!name``
means "is not active".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Iterable

from .errors import InvalidProfileExpression, InvalidProfileName

RESERVED_DEFAULT_PROFILE_NAME: Final[str] = "default"
"""Profile assumed active while no profile has been activated explicitly."""

_OPERATORS: Final[frozenset[str]] = frozenset("()!&|")

ActivePredicate = Callable[[str], bool]


def validate_profile(profile: str) -> str:
    """Return *profile* unchanged or raise :class:`InvalidProfileName`.

    Examples
    --------
    >>> validate_profile("dev")
    'dev'
    >>> validate_profile("!dev")
    Traceback (most recent call last):
    ...
    lib_property_resolver.domain.errors.InvalidProfileName: Invalid profile [!dev]: must not begin with ! operator
    """

    if not isinstance(profile, str) or not profile.strip():
        raise InvalidProfileName(str(profile), "must contain text")
    if profile.startswith("!"):
        raise InvalidProfileName(profile, "must not begin with ! operator")
    return profile


class Profiles:
    """Set of parsed profile expressions combined with OR.

    Why
    ----
    ``accepts_profiles("dev", "!prod")`` reads as "does this context accept any
    of these constraints"; parsing once lets callers reuse the result.

    Examples
    --------
    >>> profiles = Profiles.of("dev", "!prod")
    >>> profiles.matches(lambda name: name in {"dev"})
    True
    >>> profiles.matches(lambda name: name in {"prod"})
    False
    >>> profiles.matches(lambda name: False)
    True
    >>> Profiles.of("prod & (eu | us)").matches(lambda name: name in {"prod", "us"})
    True
    """

    __slots__ = ("_expressions", "_sources")

    def __init__(self, expressions: Iterable[_Expression], sources: Iterable[str]) -> None:
        self._expressions = tuple(expressions)
        self._sources = tuple(sources)

    @classmethod
    def of(cls, *expressions: str) -> Profiles:
        """Parse every expression; raise :class:`InvalidProfileExpression` on bad syntax."""

        if not expressions:
            raise InvalidProfileExpression("", "must specify at least one profile expression")
        return cls((_Parser(expression).parse() for expression in expressions), expressions)

    def matches(self, is_active: ActivePredicate) -> bool:
        return any(expression.evaluate(is_active) for expression in self._expressions)

    def __repr__(self) -> str:
        return " | ".join(f"({source})" if len(self._sources) > 1 else source for source in self._sources)


class _Expression:
    def evaluate(self, is_active: ActivePredicate) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class _Name(_Expression):
    name: str

    def evaluate(self, is_active: ActivePredicate) -> bool:
        return is_active(self.name)


@dataclass(frozen=True, slots=True)
class _Not(_Expression):
    operand: _Expression

    def evaluate(self, is_active: ActivePredicate) -> bool:
        return not self.operand.evaluate(is_active)


@dataclass(frozen=True, slots=True)
class _And(_Expression):
    left: _Expression
    right: _Expression

    def evaluate(self, is_active: ActivePredicate) -> bool:
        return self.left.evaluate(is_active) and self.right.evaluate(is_active)


@dataclass(frozen=True, slots=True)
class _Or(_Expression):
    left: _Expression
    right: _Expression

    def evaluate(self, is_active: ActivePredicate) -> bool:
        return self.left.evaluate(is_active) or self.right.evaluate(is_active)


class _Parser:
    """Recursive-descent parser over a pre-tokenised expression."""

    def __init__(self, expression: str) -> None:
        if not isinstance(expression, str) or not expression.strip():
            raise InvalidProfileExpression(str(expression), "must contain text")
        self._expression = expression
        self._tokens = _tokenize(expression)
        self._position = 0

    def parse(self) -> _Expression:
        result = self._parse_or()
        if self._position != len(self._tokens):
            self._fail(f"unexpected token '{self._tokens[self._position]}'")
        return result

    def _parse_or(self) -> _Expression:
        left = self._parse_and()
        while self._match("|"):
            left = _Or(left, self._parse_and())
        return left

    def _parse_and(self) -> _Expression:
        left = self._parse_unary()
        while self._match("&"):
            left = _And(left, self._parse_unary())
        return left

    def _parse_unary(self) -> _Expression:
        if self._match("!"):
            return _Not(self._parse_unary())
        if self._match("("):
            inner = self._parse_or()
            if not self._match(")"):
                self._fail("expected ')'")
            return inner
        token = self._next()
        if token in _OPERATORS:
            self._fail(f"unexpected token '{token}'")
        return _Name(token)

    def _match(self, expected: str) -> bool:
        if self._position < len(self._tokens) and self._tokens[self._position] == expected:
            self._position += 1
            return True
        return False

    def _next(self) -> str:
        if self._position >= len(self._tokens):
            self._fail("unexpected end of expression")
        token = self._tokens[self._position]
        self._position += 1
        return token

    def _fail(self, reason: str) -> None:
        raise InvalidProfileExpression(self._expression, reason)


def _tokenize(expression: str) -> list[str]:
    """Split *expression* into operator characters and whitespace-free names.

    Examples
    --------
    >>> _tokenize("prod & !(eu|us)")
    ['prod', '&', '!', '(', 'eu', '|', 'us', ')']
    """

    tokens: list[str] = []
    buffer: list[str] = []

    def flush() -> None:
        if buffer:
            tokens.append("".join(buffer))
            buffer.clear()

    for char in expression:
        if char in _OPERATORS:
            flush()
            tokens.append(char)
        elif char.isspace():
            flush()
        else:
            buffer.append(char)
    flush()
    return tokens
