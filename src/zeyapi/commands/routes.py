"""Routes command -- list catalog routes, optionally filtered."""

from __future__ import annotations

from typing import Optional

import typer

from zeyapi.catalog import RouteCatalog
from zeyapi.commands import abort, settings_from
from zeyapi.exceptions import ZeyapiError
from zeyapi.output import info, print_table, suggest


def routes_command(
    ctx: typer.Context,
    filter: Optional[str] = typer.Argument(
        None, help="Only show routes whose file name contains this text."
    ),
) -> None:
    """List all routes, optionally filtered by a search term.

    Example::

        zeyapi routes
        zeyapi routes invoice
    """
    settings = settings_from(ctx)
    try:
        entries = RouteCatalog(settings.routes_dir).list(filter)
    except ZeyapiError as exc:
        raise abort(exc) from None

    if not entries:
        info("No routes found.")
        suggest("Build the catalog: zeyapi generate")
        return

    rows = [
        [name, route.route, route.method, route.description]
        for name, route in entries
    ]
    print_table(
        ["Name", "Route URL", "Method", "Description"],
        rows,
        title=f"Routes ({len(rows)})",
    )
