"""Link command -- authorize an OAuth2 client and persist its tokens.

Prompts for the instance, client id and client secret, runs the
authorization-code flow through the browser and a local redirect listener,
saves the resulting credential record and, optionally, generates the route
catalog straight away.
"""

from __future__ import annotations

from typing import Optional

import typer

from zeyapi.auth import CredentialStore, TokenManager
from zeyapi.commands import abort, settings_from
from zeyapi.commands.generate import generate_catalog
from zeyapi.exceptions import ZeyapiError
from zeyapi.output import success, suggest


def link_command(
    ctx: typer.Context,
    populate: Optional[bool] = typer.Option(
        None,
        "--populate/--no-populate",
        help="Generate the route catalog after linking (asks when omitted).",
    ),
) -> None:
    """Link a new ZeyOS application.

    Example::

        zeyapi link
        zeyapi link --no-populate
    """
    settings = settings_from(ctx)

    instance = typer.prompt("Enter the ZeyOS instance ID")
    client_id = typer.prompt("Enter the Client ID")
    secret = typer.prompt("Enter the Client Secret", hide_input=True)

    store = CredentialStore(settings.config_path)
    try:
        TokenManager(settings, store).authorize(instance, client_id, secret)
    except ZeyapiError as exc:
        raise abort(exc) from None
    success(f"Configuration saved to {store.path}")

    if populate is None:
        populate = typer.confirm(
            "Do you want to populate the routes directory with default routes?",
            default=True,
        )
    if not populate:
        suggest("Build the catalog later: zeyapi generate")
        return

    try:
        generate_catalog(settings)
    except ZeyapiError as exc:
        raise abort(exc) from None
