"""Run command -- execute a catalog route against the live API."""

from __future__ import annotations

from typing import Optional

import typer

from zeyapi.auth import CredentialStore, TokenManager
from zeyapi.catalog import RouteCatalog
from zeyapi.commands import abort, settings_from
from zeyapi.engine import RouteRunner, render_outcome
from zeyapi.exceptions import ZeyapiError


def _prompt_for(name: str) -> str:
    return typer.prompt(f"Enter value for {name}")


def run_command(
    ctx: typer.Context,
    route: str = typer.Argument(help="Route name, e.g. invoices-id-get."),
    param: Optional[str] = typer.Option(
        None,
        "--param",
        "-p",
        help="Parameters in the format key=value,key2=value2.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print the request before sending it."
    ),
) -> None:
    """Run a specific API route.

    Refreshes the access token, binds ``--param`` values into the route's
    path and body placeholders (asking for any missing path value) and sends
    the request. Error answers from the API are printed but do not change the
    exit code.

    Example::

        zeyapi run invoices-id-get --param id=42
        zeyapi run contacts-post -p name=Jane,city=Berlin -v
    """
    settings = settings_from(ctx)
    store = CredentialStore(settings.config_path)
    runner = RouteRunner(
        settings=settings,
        store=store,
        tokens=TokenManager(settings, store),
        catalog=RouteCatalog(settings.routes_dir),
        prompt=_prompt_for,
    )
    try:
        outcome = runner.execute(route, param, verbose=verbose)
    except ZeyapiError as exc:
        raise abort(exc) from None
    render_outcome(outcome)
