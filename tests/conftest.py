"""Shared test fixtures for Catalogia tests."""

from __future__ import annotations

from typing import Any

import pytest

from catalogia import CatalogConfig, EntitiesCatalog
from catalogia.storage import Repository


def build_entity(
    kind: str,
    name: str,
    *,
    namespace: str | None = None,
    tags: list[str] | None = None,
    spec: dict[str, Any] | None = None,
    relations: list[dict[str, str]] | None = None,
    **metadata: Any,
) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": name, **metadata}
    if namespace is not None:
        meta["namespace"] = namespace
    if tags is not None:
        meta["tags"] = tags
    entity: dict[str, Any] = {
        "apiVersion": "backstage.io/v1alpha1",
        "kind": kind,
        "metadata": meta,
        "spec": spec or {},
    }
    if relations is not None:
        entity["relations"] = relations
    return entity


@pytest.fixture
def make_entity():
    """Factory for entity documents."""
    return build_entity


@pytest.fixture
def repo():
    """An in-memory Repository with a small scan batch to exercise batching."""
    r = Repository(":memory:", batch_size=2)
    yield r
    r.close()


@pytest.fixture
def config():
    return CatalogConfig(cursor_secret="test-secret")


@pytest.fixture
def catalog(repo, config):
    return EntitiesCatalog(repo, config)


@pytest.fixture
def seeded_catalog(catalog, repo):
    """Three components and two APIs."""
    repo.upsert_entity(
        build_entity(
            "Component",
            "service-a",
            tags=["python", "web"],
            spec={"type": "service", "owner": "team-a", "lifecycle": "production"},
        )
    )
    repo.upsert_entity(
        build_entity(
            "Component",
            "service-b",
            tags=["python"],
            spec={"type": "service", "owner": "team-b", "lifecycle": "experimental"},
        )
    )
    repo.upsert_entity(
        build_entity(
            "Component",
            "service-c",
            tags=["go"],
            spec={"type": "website", "owner": "team-a", "lifecycle": "production"},
        )
    )
    repo.upsert_entity(build_entity("API", "api-x", spec={"type": "openapi", "owner": "team-a"}))
    repo.upsert_entity(build_entity("API", "api-y", spec={"type": "grpc", "owner": "team-b"}))
    return catalog
