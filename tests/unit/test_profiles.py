"""Profile names and profile expressions."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_property_resolver.domain.errors import InvalidProfileExpression, InvalidProfileName
from lib_property_resolver.domain.profiles import Profiles, validate_profile


def _active(*names: str):
    selected = set(names)
    return lambda name: name in selected


@pytest.mark.parametrize("name", ["", "   ", "!dev"])
def test_invalid_profile_names(name: str) -> None:
    with pytest.raises(InvalidProfileName):
        validate_profile(name)


def test_plain_name_matches_when_active() -> None:
    assert Profiles.of("dev").matches(_active("dev"))
    assert not Profiles.of("dev").matches(_active("prod"))


def test_negation() -> None:
    assert Profiles.of("!prod").matches(_active("dev"))
    assert not Profiles.of("!prod").matches(_active("prod"))


def test_multiple_expressions_are_or_combined() -> None:
    profiles = Profiles.of("dev", "!prod")
    assert profiles.matches(_active("dev"))
    assert profiles.matches(_active())
    assert not profiles.matches(_active("prod"))


@pytest.mark.parametrize(
    ("expression", "active", "expected"),
    [
        ("prod & eu", {"prod", "eu"}, True),
        ("prod & eu", {"prod"}, False),
        ("prod | staging", {"staging"}, True),
        ("prod & (eu | us)", {"prod", "us"}, True),
        ("prod & (eu | us)", {"eu", "us"}, False),
        ("!(prod | staging)", {"dev"}, True),
        ("a | b & c", {"a"}, True),
        ("a | b & c", {"b"}, False),
        ("!!dev", {"dev"}, True),
    ],
)
def test_compound_expressions(expression: str, active: set[str], expected: bool) -> None:
    assert Profiles.of(expression).matches(_active(*active)) is expected


@pytest.mark.parametrize("expression", ["", "dev &", "(dev", "dev)", "& dev", "dev prod", "!"])
def test_malformed_expressions(expression: str) -> None:
    with pytest.raises(InvalidProfileExpression):
        Profiles.of(expression)


def test_of_requires_an_expression() -> None:
    with pytest.raises(InvalidProfileExpression):
        Profiles.of()


NAMES = st.sampled_from(["dev", "prod", "eu", "us"])


@given(NAMES, st.sets(NAMES))
def test_negation_is_complement(name: str, active: set[str]) -> None:
    predicate = _active(*active)
    assert Profiles.of(f"!{name}").matches(predicate) is not Profiles.of(name).matches(predicate)
