"""catalogia facets: value counts for entity fields."""

from __future__ import annotations

from typing import Optional

import typer

from catalogia.cli import _exitcodes as ec
from catalogia.cli._filters import parse_cli_filters
from catalogia.cli._output import print_error, print_json, print_table
from catalogia.cli._storage import open_catalog
from catalogia.errors import CatalogError, InvalidRequestError
from catalogia.types import EntityFacetsRequest


def facets_cmd(
    fields: list[str] = typer.Argument(..., help="Field paths, e.g. metadata.tags"),
    filter_args: Optional[list[str]] = typer.Option(
        None, "--filter", help="KEY[=V1,V2] (repeatable, AND-combined)"
    ),
) -> None:
    """Count distinct values of each field across matching entities."""
    from catalogia.cli import state

    try:
        request = EntityFacetsRequest(facets=fields, filter=parse_cli_filters(filter_args))
    except (CatalogError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    catalog = open_catalog()
    try:
        response = catalog.facets(request)
    except InvalidRequestError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        catalog.store.close()

    if state.json_output:
        print_json(response.to_dict())
        return
    rows = [[f, c.value, c.count] for f, counts in response.facets.items() for c in counts]
    print_table(["facet", "value", "count"], rows)
