"""Tests for filter expressions, parsing and evaluation."""

from __future__ import annotations

import pytest

from catalogia.errors import InvalidFilterError
from catalogia.filters import (
    AllOf,
    AnyOf,
    FullTextFilter,
    Leaf,
    Not,
    entity_matches,
    filter_to_dict,
    matches,
    matches_full_text,
    parse_filter,
)
from catalogia.search import project
from catalogia.types import EntitiesRequest


class TestExpressions:
    def test_leaf_is_lower_cased(self):
        leaf = Leaf("Metadata.Name", ("Service-A",))
        assert leaf.key == "metadata.name"
        assert leaf.values == ("service-a",)

    def test_leaf_accepts_list_values(self):
        assert Leaf("kind", ["API"]).values == ("api",)  # type: ignore[arg-type]

    def test_empty_key_rejected(self):
        with pytest.raises(InvalidFilterError):
            Leaf("  ")

    def test_string_values_rejected(self):
        with pytest.raises(InvalidFilterError):
            Leaf("kind", "component")  # type: ignore[arg-type]

    def test_operators(self):
        a, b = Leaf("kind", ("component",)), Leaf("spec.owner")
        assert isinstance(a & b, AllOf)
        assert isinstance(a | b, AnyOf)
        negated = ~a
        assert isinstance(negated, Not)
        assert negated.child == a


class TestParse:
    def test_leaf(self):
        assert parse_filter({"key": "kind", "values": ["Component"]}) == Leaf(
            "kind", ("component",)
        )

    def test_presence_leaf(self):
        assert parse_filter({"key": "spec.owner"}) == Leaf("spec.owner")

    def test_nested(self):
        expr = parse_filter(
            {
                "allOf": [
                    {"key": "kind", "values": ["component"]},
                    {"not": {"anyOf": [{"key": "spec.lifecycle", "values": ["experimental"]}]}},
                ]
            }
        )
        assert isinstance(expr, AllOf)
        assert isinstance(expr.children[1], Not)

    def test_none(self):
        assert parse_filter(None) is None

    def test_roundtrip_through_dict(self):
        wire = {"anyOf": [{"key": "kind", "values": ["api"]}, {"not": {"key": "spec.owner"}}]}
        assert filter_to_dict(parse_filter(wire)) == wire

    @pytest.mark.parametrize(
        "bad",
        [
            {"oneOf": []},
            {"allOf": [], "anyOf": []},
            {"allOf": {"key": "kind"}},
            {"not": None},
            {"key": ""},
            {"key": "kind", "values": "component"},
            {"key": "kind", "values": [1]},
            {"key": "kind", "extra": True},
            {"allOf": [{"key": "kind"}], "key": "x"},
            "kind=component",
        ],
    )
    def test_malformed(self, bad):
        with pytest.raises(InvalidFilterError):
            parse_filter(bad)


class TestMatches:
    @pytest.fixture
    def projection(self, make_entity):
        return project(
            make_entity(
                "Component",
                "service-a",
                tags=["python", "web"],
                spec={"owner": "team-a", "lifecycle": "production"},
            )
        )

    def test_case_insensitive_values(self, projection):
        assert matches(projection, Leaf("Kind", ("Component",)))
        assert matches(projection, Leaf("kind", ("COMPONENT",)))

    def test_any_value_matches(self, projection):
        assert matches(projection, Leaf("spec.lifecycle", ("experimental", "production")))
        assert not matches(projection, Leaf("spec.lifecycle", ("experimental",)))

    def test_array_values(self, projection):
        assert matches(projection, Leaf("metadata.tags", ("web",)))

    def test_presence(self, projection):
        assert matches(projection, Leaf("spec.owner"))
        assert not matches(projection, Leaf("spec.system"))

    def test_empty_values_match_nothing(self, projection):
        assert not matches(projection, Leaf("kind", ()))

    def test_empty_all_of_matches_everything(self, projection):
        assert matches(projection, AllOf([]))

    def test_empty_any_of_matches_nothing(self, projection):
        assert not matches(projection, AnyOf([]))

    def test_double_negation(self, projection):
        for expr in (Leaf("kind", ("component",)), Leaf("kind", ("api",)), Leaf("spec.x")):
            assert matches(projection, Not(Not(expr))) == matches(projection, expr)

    def test_conjunction_and_disjunction(self, projection):
        yes, no = Leaf("kind", ("component",)), Leaf("kind", ("api",))
        assert not matches(projection, AllOf([yes, no]))
        assert matches(projection, AnyOf([no, yes]))

    def test_entity_matches(self, make_entity):
        assert entity_matches(make_entity("API", "x"), Leaf("kind", ("api",)))

    def test_unknown_node(self, projection):
        with pytest.raises(InvalidFilterError):
            matches(projection, object())  # type: ignore[arg-type]


class TestFullText:
    @pytest.fixture
    def projection(self, make_entity):
        return project(make_entity("Component", "Payments-Service", spec={"owner": "team-a"}))

    def test_default_fields(self, projection):
        assert matches_full_text(projection, FullTextFilter("MENTS"), ["metadata.name"])
        assert not matches_full_text(projection, FullTextFilter("team"), ["metadata.name"])

    def test_explicit_fields(self, projection):
        assert matches_full_text(projection, FullTextFilter("team", ("spec.owner",)))

    def test_all_values_without_fields(self, projection):
        assert matches_full_text(projection, FullTextFilter("team"))

    def test_blank_term_is_no_filter(self, projection):
        assert matches_full_text(projection, FullTextFilter("   "), ["metadata.name"])


class TestCatalogFiltering:
    def test_kind_filter_returns_components(self, seeded_catalog):
        response = seeded_catalog.entities(
            EntitiesRequest(filter={"allOf": [{"key": "kind", "values": ["component"]}]})
        )
        names = sorted(e["metadata"]["name"] for e in response.entities)
        assert names == ["service-a", "service-b", "service-c"]

    def test_not_filter(self, seeded_catalog):
        response = seeded_catalog.entities(
            EntitiesRequest(filter=Not(Leaf("spec.owner", ("team-a",))))
        )
        names = sorted(e["metadata"]["name"] for e in response.entities)
        assert names == ["api-y", "service-b"]

    def test_invalid_filter_propagates(self, seeded_catalog):
        with pytest.raises(InvalidFilterError):
            seeded_catalog.entities(EntitiesRequest(filter={"nope": []}))
