"""Precedence chain mutations and their failure modes."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_property_resolver.domain.errors import DuplicateSource, SourceNotFound
from lib_property_resolver.domain.property_sources import PropertySources
from lib_property_resolver.domain.sources import MapPropertySource


def _source(name: str, **values: str) -> MapPropertySource:
    return MapPropertySource(name, values)


@pytest.fixture()
def chain() -> PropertySources:
    return PropertySources([_source("a"), _source("b"), _source("c")])


def test_add_first_and_last(chain: PropertySources) -> None:
    chain.add_first(_source("top"))
    chain.add_last(_source("bottom"))
    assert chain.names() == ("top", "a", "b", "c", "bottom")


def test_add_before_and_after(chain: PropertySources) -> None:
    chain.add_before("b", _source("x"))
    chain.add_after("b", _source("y"))
    assert chain.names() == ("a", "x", "b", "y", "c")


def test_add_after_last_element_appends(chain: PropertySources) -> None:
    chain.add_after("c", _source("z"))
    assert chain.names()[-1] == "z"


@pytest.mark.parametrize("operation", ["add_first", "add_last"])
def test_duplicate_name_is_rejected(chain: PropertySources, operation: str) -> None:
    with pytest.raises(DuplicateSource):
        getattr(chain, operation)(_source("b"))
    assert chain.names() == ("a", "b", "c")


def test_relative_add_to_itself_is_rejected(chain: PropertySources) -> None:
    with pytest.raises(DuplicateSource, match="relative to itself"):
        chain.add_before("new", _source("new"))


def test_relative_add_of_existing_name_is_rejected(chain: PropertySources) -> None:
    with pytest.raises(DuplicateSource):
        chain.add_after("a", _source("c"))


def test_relative_add_to_unknown_name_fails(chain: PropertySources) -> None:
    with pytest.raises(SourceNotFound):
        chain.add_before("missing", _source("x"))
    with pytest.raises(SourceNotFound):
        chain.add_after("missing", _source("x"))


def test_replace_keeps_position(chain: PropertySources) -> None:
    replacement = _source("b", key="new")
    chain.replace("b", replacement)
    assert chain.names() == ("a", "b", "c")
    assert chain.get("b") is replacement


def test_replace_can_rename_slot(chain: PropertySources) -> None:
    chain.replace("b", _source("renamed"))
    assert chain.names() == ("a", "renamed", "c")


def test_replace_rejects_collision_and_unknown(chain: PropertySources) -> None:
    with pytest.raises(DuplicateSource):
        chain.replace("b", _source("c"))
    with pytest.raises(SourceNotFound):
        chain.replace("missing", _source("x"))


def test_remove_returns_source(chain: PropertySources) -> None:
    removed = chain.remove("b")
    assert removed.name == "b"
    assert chain.names() == ("a", "c")
    with pytest.raises(SourceNotFound):
        chain.remove("b")


def test_precedence_and_membership(chain: PropertySources) -> None:
    assert chain.precedence_of("a") == 0
    assert chain.precedence_of(_source("c")) == 2
    assert chain.precedence_of("zzz") == -1
    assert "b" in chain
    assert _source("b") in chain
    assert "zzz" not in chain
    assert chain.get("zzz") is None
    assert len(chain) == 3


def test_iteration_is_a_snapshot(chain: PropertySources) -> None:
    seen = []
    for source in chain:
        seen.append(source.name)
        if source.name == "a":
            chain.add_last(_source("late"))
    assert seen == ["a", "b", "c"]
    assert chain.names()[-1] == "late"


@given(st.lists(st.sampled_from(["first", "last"]), min_size=1, max_size=10))
def test_names_stay_unique_under_random_additions(operations) -> None:
    chain = PropertySources()
    for index, operation in enumerate(operations):
        source = _source(f"s{index}")
        if operation == "first":
            chain.add_first(source)
        else:
            chain.add_last(source)
    names = chain.names()
    assert len(names) == len(set(names)) == len(operations)
