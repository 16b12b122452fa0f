"""Map-backed and composite property sources.

Covers exact-key lookup, ``None`` meaning absent, enumeration order and the
composite's first-match semantics.
"""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_property_resolver.application import ports
from lib_property_resolver.domain.errors import PropertySourceError
from lib_property_resolver.domain.sources import CompositePropertySource, MapPropertySource, NamedSource, flatten_mapping


def test_map_source_lookup_is_exact() -> None:
    source = MapPropertySource("app", {"db.host": "localhost"})
    assert source.get_property("db.host") == "localhost"
    assert source.get_property("DB.HOST") is None
    assert source.get_property("db") is None
    assert source.contains_property("db.host")
    assert not source.contains_property("db.port")


def test_map_source_treats_none_as_absent() -> None:
    source = MapPropertySource("app", {"present": "1", "nulled": None})
    assert not source.contains_property("nulled")
    assert source.property_names() == ("present",)


def test_map_source_keeps_non_string_values() -> None:
    source = MapPropertySource("app", {"port": 8080, "flags": [1, 2]})
    assert source.get_property("port") == 8080
    assert source.get_property("flags") == [1, 2]


def test_map_source_satisfies_enumerable_capability() -> None:
    source = MapPropertySource("app", {})
    assert isinstance(source, ports.PropertySource)
    assert isinstance(source, ports.EnumerablePropertySource)


def test_sources_compare_by_name() -> None:
    assert MapPropertySource("a", {"x": "1"}) == MapPropertySource("a", {})
    assert MapPropertySource("a", {}) != MapPropertySource("b", {})
    assert len({MapPropertySource("a", {}), MapPropertySource("a", {"y": "2"})}) == 1


def test_empty_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        MapPropertySource("", {})


def test_from_nested_flattens_into_dotted_keys() -> None:
    source = MapPropertySource.from_nested("file", {"db": {"host": "h", "ports": [1, 2]}, "debug": True})
    assert source.get_property("db.host") == "h"
    assert source.get_property("db.ports") == [1, 2]
    assert source.get_property("db.ports.1") == 2
    assert source.get_property("debug") is True


def test_flatten_mapping_descends_into_list_of_mappings() -> None:
    flat = flatten_mapping({"servers": [{"name": "a"}, {"name": "b"}]})
    assert flat["servers.0.name"] == "a"
    assert flat["servers.1.name"] == "b"


@given(st.dictionaries(st.from_regex(r"[a-z]{1,6}", fullmatch=True), st.integers(), max_size=8))
def test_flatten_mapping_is_identity_for_flat_scalars(values) -> None:
    assert flatten_mapping(values) == values


def test_composite_returns_first_member_value() -> None:
    composite = CompositePropertySource(
        "files",
        [MapPropertySource("dev", {"a": "dev"}), MapPropertySource("base", {"a": "base", "b": "base"})],
    )
    assert composite.get_property("a") == "dev"
    assert composite.get_property("b") == "base"
    assert composite.get_property("c") is None
    assert composite.contains_property("b")
    assert composite.property_names() == ("a", "b")


def test_composite_re_adding_a_member_moves_it() -> None:
    composite = CompositePropertySource("files")
    composite.add_property_source(MapPropertySource("one", {"k": "1"}))
    composite.add_property_source(MapPropertySource("two", {"k": "2"}))
    composite.add_first_property_source(MapPropertySource("two", {"k": "2"}))
    assert [member.name for member in composite] == ["two", "one"]
    assert composite.get_property("k") == "2"


class _OpaqueSource(NamedSource):
    def get_property(self, key):
        return "value" if key == "opaque" else None


def test_composite_cannot_enumerate_opaque_members() -> None:
    composite = CompositePropertySource("mixed", [_OpaqueSource("opaque", object())])
    assert composite.get_property("opaque") == "value"
    assert composite.contains_property("opaque")
    with pytest.raises(PropertySourceError):
        composite.property_names()


def test_named_source_requires_a_lookup() -> None:
    with pytest.raises(TypeError):
        NamedSource("bare", {})

    class _NoLookup(NamedSource):
        pass

    with pytest.raises(TypeError):
        _NoLookup("bare", {})
