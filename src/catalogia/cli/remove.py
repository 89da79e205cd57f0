"""catalogia remove: delete an entity by its metadata.uid."""

from __future__ import annotations

import typer

from catalogia.cli import _exitcodes as ec
from catalogia.cli._output import print_error
from catalogia.cli._storage import open_catalog
from catalogia.errors import CatalogError, NotFoundError


def remove_cmd(uid: str = typer.Argument(..., help="metadata.uid of the entity")) -> None:
    """Remove one entity."""
    catalog = open_catalog()
    try:
        catalog.remove_entity_by_uid(uid)
    except NotFoundError as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        catalog.store.close()
    print(f"Removed {uid}")
