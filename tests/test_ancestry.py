"""Tests for ancestry traversal."""

from __future__ import annotations

import pytest

from catalogia.ancestry import traverse_ancestry
from catalogia.cancellation import CancellationToken
from catalogia.errors import NotFoundError, QueryCancelledError
from catalogia.refs import parse_entity_ref


def _refs(result):
    return sorted(
        f"{i.entity['kind']}:default/{i.entity['metadata']['name']}".lower() for i in result.items
    )


class TestAncestry:
    def test_chain(self, repo, catalog, make_entity):
        repo.upsert_entity(make_entity("Location", "root"))
        repo.upsert_entity(make_entity("Location", "mid"), parent_refs=["location:default/root"])
        repo.upsert_entity(make_entity("Component", "leaf"), parent_refs=["location:mid"])

        result = catalog.entity_ancestry("component:default/leaf")
        assert result.root_entity_ref == "component:default/leaf"
        assert _refs(result) == [
            "component:default/leaf",
            "location:default/mid",
            "location:default/root",
        ]
        by_name = {i.entity["metadata"]["name"]: i.parent_entity_refs for i in result.items}
        assert by_name == {
            "leaf": ["location:default/mid"],
            "mid": ["location:default/root"],
            "root": [],
        }

    def test_cycle_terminates(self, repo, catalog, make_entity):
        repo.upsert_entity(make_entity("Component", "x"), parent_refs=["component:default/y"])
        repo.upsert_entity(make_entity("Component", "y"), parent_refs=["component:default/x"])

        result = catalog.entity_ancestry("component:default/x")
        assert _refs(result) == ["component:default/x", "component:default/y"]

    def test_diamond_visits_once(self, repo, catalog, make_entity):
        repo.upsert_entity(make_entity("Location", "top"))
        repo.upsert_entity(make_entity("Location", "l"), parent_refs=["location:default/top"])
        repo.upsert_entity(make_entity("Location", "r"), parent_refs=["location:default/top"])
        repo.upsert_entity(
            make_entity("Component", "c"),
            parent_refs=["location:default/l", "location:default/r"],
        )
        result = catalog.entity_ancestry("component:default/c")
        assert len(result.items) == 4
        assert len(set(_refs(result))) == 4

    def test_dangling_parent_kept_as_edge(self, repo, catalog, make_entity):
        repo.upsert_entity(make_entity("Component", "z"), parent_refs=["location:default/gone"])
        result = catalog.entity_ancestry("component:default/z")
        assert len(result.items) == 1
        assert result.items[0].parent_entity_refs == ["location:default/gone"]

    def test_root_not_found(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.entity_ancestry("component:default/missing")

    def test_ref_is_case_insensitive(self, repo, catalog, make_entity):
        repo.upsert_entity(make_entity("Component", "MixedCase"))
        result = catalog.entity_ancestry("Component:Default/mixedcase")
        assert result.root_entity_ref == "component:default/mixedcase"
        assert len(result.items) == 1

    def test_to_dict(self, repo, catalog, make_entity):
        repo.upsert_entity(make_entity("Component", "x"), parent_refs=["location:default/l"])
        data = catalog.entity_ancestry("component:default/x").to_dict()
        assert data["rootEntityRef"] == "component:default/x"
        assert data["items"][0]["parentEntityRefs"] == ["location:default/l"]

    def test_cancelled(self, repo, make_entity):
        repo.upsert_entity(make_entity("Component", "x"))
        token = CancellationToken()
        token.cancel()
        with pytest.raises(QueryCancelledError):
            traverse_ancestry(repo, parse_entity_ref("component:default/x"), cancel=token)
