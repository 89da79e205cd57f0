"""Tests for entity reference parsing and comparison."""

from __future__ import annotations

import pytest

from catalogia.errors import InvalidRequestError
from catalogia.refs import EntityRef, parse_entity_ref, ref_of


class TestEntityRef:
    def test_parse_full(self):
        ref = parse_entity_ref("component:ops/Service-A")
        assert (ref.kind, ref.namespace, ref.name) == ("component", "ops", "Service-A")

    def test_default_namespace(self):
        assert parse_entity_ref("api:x").namespace == "default"

    def test_default_kind(self):
        assert parse_entity_ref("ops/x", default_kind="group").kind == "group"

    def test_case_insensitive_equality(self):
        a = parse_entity_ref("Component:Default/Service-A")
        b = parse_entity_ref("component:default/service-a")
        assert a == b
        assert hash(a) == hash(b)
        assert a.canonical == "component:default/service-a"
        assert str(a) == "Component:Default/Service-A"

    @pytest.mark.parametrize("bad", ["", "   ", "x", "component:", "component:ns/", "a:b/c/d"])
    def test_malformed(self, bad):
        with pytest.raises(InvalidRequestError):
            parse_entity_ref(bad)

    def test_ref_of_entity(self, make_entity):
        assert ref_of(make_entity("API", "x")) == EntityRef("api", "default", "x")

    def test_ref_of_incomplete_entity(self):
        with pytest.raises(InvalidRequestError):
            ref_of({"kind": "API", "metadata": {}})
