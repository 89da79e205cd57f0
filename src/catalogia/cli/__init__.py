"""Catalogia CLI: operator console for inspecting a catalog store."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from catalogia.cli import ancestry, facets, import_cmd, query, remove

app = typer.Typer(
    name="catalogia",
    help="Catalogia CLI: query, aggregate and inspect catalog entities.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    db: str = "catalog.db"
    json_output: bool = False
    verbose: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        from catalogia import __version__

        print(f"catalogia {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None,
        "--db",
        envvar="CATALOGIA_DB",
        help="SQLite database file path (default: catalog.db)",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all catalogia commands."""
    state.db = db or "catalog.db"
    state.json_output = json_output
    state.verbose = verbose
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


# Register subcommand groups
app.add_typer(query.app, name="query", help="Query entities with offset or cursor paging")

# Register top-level commands
app.command(name="import")(import_cmd.import_cmd)
app.command(name="facets")(facets.facets_cmd)
app.command(name="ancestry")(ancestry.ancestry_cmd)
app.command(name="remove")(remove.remove_cmd)


def main() -> None:
    """Entry point for the catalogia CLI."""
    app()
