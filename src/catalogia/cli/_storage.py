"""CLI helpers for building a catalog from CLI state and environment."""

from __future__ import annotations

import os
import secrets
from pathlib import Path

import typer

from catalogia.catalog import EntitiesCatalog
from catalogia.cli import _exitcodes as ec
from catalogia.cli._output import print_error
from catalogia.config import CatalogConfig
from catalogia.storage import Repository, open_repository


def _secret_path(db: str) -> Path | None:
    if not db or db == ":memory:":
        return None
    return Path(f"{db}.cursor-secret")


def _stored_secret(db: str) -> str | None:
    """Read, or create on first use, the cursor secret kept beside a DB file.

    Every CLI call is a new process, so cursors printed by one call only verify
    in the next if both sign with the same secret.
    """
    path = _secret_path(db)
    if path is None:
        return None
    if path.exists():
        return path.read_text().strip() or None
    secret = secrets.token_hex(32)
    path.write_text(secret)
    path.chmod(0o600)
    return secret


def _config_from_env() -> CatalogConfig:
    """Build engine config from CATALOGIA_* environment variables."""
    from catalogia.cli import state

    limit = os.getenv("CATALOGIA_DEFAULT_QUERY_LIMIT")
    return CatalogConfig(
        cursor_secret=os.getenv("CATALOGIA_CURSOR_SECRET") or _stored_secret(state.db),
        default_namespace=os.getenv("CATALOGIA_DEFAULT_NAMESPACE") or "default",
        default_query_limit=int(limit) if limit else 20,
    )


def open_repo() -> Repository:
    """Open the repository selected by --db."""
    from catalogia.cli import state

    return open_repository(state.db)


def open_catalog() -> EntitiesCatalog:
    """Open a catalog over the repository selected by --db."""
    try:
        config = _config_from_env()
    except ValueError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(ec.USAGE_ERROR)
    except OSError as e:
        print_error(f"Cannot read or write cursor secret: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)
    return EntitiesCatalog(open_repo(), config)
