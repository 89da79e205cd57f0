"""catalogia query: offset and cursor reads of catalog entities."""

from __future__ import annotations

from typing import Optional

import typer

from catalogia.cli import _exitcodes as ec
from catalogia.cli._filters import parse_cli_filters
from catalogia.cli._output import ENTITY_HEADERS, entity_row, print_error, print_json, print_table
from catalogia.cli._storage import open_catalog
from catalogia.errors import CatalogError, InvalidCursorError, InvalidRequestError
from catalogia.filters import FullTextFilter
from catalogia.ordering import parse_order
from catalogia.projection import FieldSelector
from catalogia.types import (
    EntitiesRequest,
    EntityPagination,
    QueryEntitiesCursorRequest,
    QueryEntitiesInitialRequest,
    QueryEntitiesRequest,
)

app = typer.Typer(no_args_is_help=True)


@app.command(name="entities")
def query_entities_cmd(
    filter_args: Optional[list[str]] = typer.Option(
        None, "--filter", help="KEY[=V1,V2] (repeatable, AND-combined)"
    ),
    order_args: Optional[list[str]] = typer.Option(
        None, "--order", help="FIELD[:asc|desc] (repeatable)"
    ),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated paths to keep"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Max results"),
    offset: Optional[int] = typer.Option(None, "--offset", help="Skip first N results"),
    after: Optional[str] = typer.Option(None, "--after", help="endCursor of a previous call"),
) -> None:
    """List entities with offset pagination."""
    from catalogia.cli import state

    json_mode = state.json_output

    try:
        request = EntitiesRequest(
            filter=parse_cli_filters(filter_args),
            order=parse_order(order_args),
            fields=FieldSelector.parse(fields),
            pagination=EntityPagination(limit=limit, offset=offset, after=after),
        )
    except (CatalogError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    catalog = open_catalog()
    try:
        response = catalog.entities(request)
    except (InvalidCursorError, InvalidRequestError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        catalog.store.close()

    if json_mode:
        print_json(response.to_dict())
        return
    print_table(ENTITY_HEADERS, [entity_row(e) for e in response.entities])
    if response.page_info.has_next_page:
        print(f"\nendCursor: {response.page_info.end_cursor}")  # type: ignore[union-attr]


@app.command(name="page")
def query_page_cmd(
    cursor: Optional[str] = typer.Option(None, "--cursor", help="Cursor from a previous page"),
    filter_args: Optional[list[str]] = typer.Option(
        None, "--filter", help="KEY[=V1,V2] (repeatable, AND-combined)"
    ),
    order_args: Optional[list[str]] = typer.Option(
        None, "--order", help="FIELD[:asc|desc] (repeatable)"
    ),
    term: Optional[str] = typer.Option(None, "--text", help="Full-text term"),
    text_fields: Optional[list[str]] = typer.Option(
        None, "--text-field", help="Field searched by --text (repeatable)"
    ),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated paths to keep"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Page size"),
) -> None:
    """Fetch one page of a cursor-paginated query."""
    from catalogia.cli import state

    json_mode = state.json_output

    if cursor and (filter_args or order_args or term):
        print_error("--cursor cannot be combined with --filter, --order or --text")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        request: QueryEntitiesRequest
        if cursor:
            request = QueryEntitiesCursorRequest(
                cursor=cursor, limit=limit, fields=FieldSelector.parse(fields)
            )
        else:
            request = QueryEntitiesInitialRequest(
                filter=parse_cli_filters(filter_args),
                order_fields=parse_order(order_args),
                full_text_filter=(
                    FullTextFilter(term, tuple(text_fields) if text_fields else None)
                    if term
                    else None
                ),
                limit=limit,
                fields=FieldSelector.parse(fields),
            )
    except (CatalogError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    catalog = open_catalog()
    try:
        response = catalog.query_entities(request)
    except (InvalidCursorError, InvalidRequestError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except CatalogError as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        catalog.store.close()

    if json_mode:
        print_json(response.to_dict())
        return
    print_table(ENTITY_HEADERS, [entity_row(e) for e in response.items])
    print(f"\ntotal: {response.total_items}")
    if response.prev_cursor:
        print(f"prevCursor: {response.prev_cursor}")
    if response.next_cursor:
        print(f"nextCursor: {response.next_cursor}")
