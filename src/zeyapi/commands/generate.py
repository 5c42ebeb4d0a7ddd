"""Generate command -- build the route catalog from the API description."""

from __future__ import annotations

import typer

from zeyapi.catalog import RouteCatalog, assign_names, generate_routes, load_description
from zeyapi.commands import abort, settings_from
from zeyapi.config import Settings
from zeyapi.exceptions import ZeyapiError
from zeyapi.output import debug, info, success, suggest


def generate_catalog(settings: Settings, merge_parameters: bool = False) -> int:
    """Fetch the description, derive routes and write one file per route.

    Nothing is written unless the description was fetched and parsed.

    Returns:
        The number of route files written.

    Raises:
        DescriptionFetchError: If the description is unavailable.
        StorageError: If the route files cannot be written.
    """
    info(f"Fetching API description from: {settings.description_url}")
    description = load_description(settings.description_url, timeout=settings.request_timeout)

    routes = generate_routes(description, merge_parameters=merge_parameters)
    debug(f"Extracted {len(routes)} operations")
    named = assign_names(routes)

    catalog = RouteCatalog(settings.routes_dir)
    count = catalog.save_all(named)
    success(f"Generated {count} route files in {catalog.directory}")
    return count


def generate_command(
    ctx: typer.Context,
    merge_params: bool = typer.Option(
        False,
        "--merge-params",
        help="Add query/header parameters to each route's body template.",
    ),
) -> None:
    """Generate route files from the API description.

    Every (path, method) pair of the description becomes one file under
    ``<workspace>/routes/``; existing files of the same name are overwritten.

    Example::

        zeyapi generate
        zeyapi generate --merge-params
    """
    settings = settings_from(ctx)
    try:
        generate_catalog(settings, merge_parameters=merge_params)
    except ZeyapiError as exc:
        raise abort(exc) from None
    suggest("List routes: zeyapi routes [filter]")
