"""catalogia ancestry: walk parent references upward from an entity."""

from __future__ import annotations

import typer

from catalogia.cli import _exitcodes as ec
from catalogia.cli._output import print_error, print_json, print_table
from catalogia.cli._storage import open_catalog
from catalogia.errors import CatalogError, InvalidRequestError, NotFoundError
from catalogia.refs import ref_of


def ancestry_cmd(
    entity_ref: str = typer.Argument(..., help="Root entity ref, e.g. component:default/x"),
) -> None:
    """Show every ancestor of an entity with its parent refs."""
    from catalogia.cli import state

    catalog = open_catalog()
    try:
        result = catalog.entity_ancestry(entity_ref)
    except InvalidRequestError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except NotFoundError as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        catalog.store.close()

    if state.json_output:
        print_json(result.to_dict())
        return
    rows = [
        [ref_of(item.entity).canonical, ", ".join(item.parent_entity_refs)]
        for item in result.items
    ]
    print_table(["entity", "parents"], rows)
