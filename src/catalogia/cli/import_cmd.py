"""catalogia import: load entity documents from YAML or JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from catalogia.cli import _exitcodes as ec
from catalogia.cli._output import print_error, print_json
from catalogia.cli._storage import open_repo
from catalogia.errors import CatalogError, InvalidRequestError


def _load_documents(path: Path) -> list[dict[str, Any]]:
    """Read every document in a file; YAML files may hold several."""
    text = path.read_text()
    if path.suffix == ".json":
        data = json.loads(text)
        docs = data if isinstance(data, list) else [data]
    else:
        docs = [d for d in yaml.safe_load_all(text) if d is not None]
    for doc in docs:
        if not isinstance(doc, dict):
            raise ValueError(f"{path}: every document must be a mapping")
    return docs


def import_cmd(
    files: list[Path] = typer.Argument(..., help="YAML or JSON entity files"),
    parents: Optional[list[str]] = typer.Option(
        None, "--parent", help="Parent entity ref recorded for every imported entity"
    ),
) -> None:
    """Insert or replace entities from files."""
    from catalogia.cli import state

    try:
        docs = [doc for f in files for doc in _load_documents(f)]
    except (OSError, ValueError, yaml.YAMLError) as e:
        print_error(f"Failed to read input: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    repo = open_repo()
    imported: list[str] = []
    try:
        for doc in docs:
            stored = repo.upsert_entity(doc, parent_refs=parents or ())
            imported.append(stored.ref)
    except InvalidRequestError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        repo.close()

    if state.json_output:
        print_json({"imported": imported})
    else:
        print(f"Imported {len(imported)} entities.")
