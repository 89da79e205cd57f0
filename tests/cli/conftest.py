"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from catalogia.cli import app
from catalogia.storage import Repository
from tests.conftest import build_entity

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture(autouse=True)
def cursor_secret(monkeypatch):
    """Cursors must verify across separate CLI invocations."""
    monkeypatch.setenv("CATALOGIA_CURSOR_SECRET", "cli-test-secret")
    monkeypatch.delenv("CATALOGIA_DB", raising=False)


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_db(tmp_path):
    """A temp DB path for the CLI."""
    return str(tmp_path / "cli_test.db")


@pytest.fixture
def seeded_db(cli_db):
    """A DB with a small location hierarchy and a few entities."""
    repo = Repository(cli_db)
    repo.upsert_entity(build_entity("Location", "root"))
    repo.upsert_entity(build_entity("Location", "team-loc"), parent_refs=["location:root"])
    repo.upsert_entity(
        build_entity("Component", "service-a", tags=["python"], spec={"owner": "team-a"}),
        parent_refs=["location:team-loc"],
    )
    repo.upsert_entity(
        build_entity("Component", "service-b", tags=["python", "web"], spec={"owner": "team-b"}),
        parent_refs=["location:team-loc"],
    )
    repo.upsert_entity(build_entity("API", "api-x", spec={"owner": "team-a"}))
    repo.close()
    return cli_db


def invoke(runner: CliRunner, args: list[str], db_path: str | None = None) -> "Result":
    """Invoke CLI with proper state setup."""
    if db_path:
        # Inject --db before subcommand
        args = ["--db", db_path] + args
    result = runner.invoke(app, args, catch_exceptions=False)
    return result
