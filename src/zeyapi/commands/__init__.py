"""Built-in CLI sub-commands for zeyapi.

* :mod:`~zeyapi.commands.link` -- authorize an OAuth2 client and store tokens.
* :mod:`~zeyapi.commands.generate` -- build the route catalog.
* :mod:`~zeyapi.commands.routes` -- list catalog routes.
* :mod:`~zeyapi.commands.run` -- execute a route.

Each module exports a plain callback registered on the root app by
:func:`zeyapi.app.register_commands`.
"""

from __future__ import annotations

import typer

from zeyapi.auth.tokens import format_payload
from zeyapi.config import Settings, resolve_settings
from zeyapi.exceptions import ZeyapiError
from zeyapi.output import error, status


def abort(exc: ZeyapiError) -> typer.Exit:
    """Report *exc* (plus any upstream payload) and return the ``typer.Exit`` to raise."""
    message = str(exc)
    error(message)
    if exc.payload is not None:
        detail = format_payload(exc.payload)
        if detail not in message:
            status(detail)
    return typer.Exit(code=exc.exit_code)


def settings_from(ctx: typer.Context) -> Settings:
    """Settings stored by the root callback (resolved on demand otherwise)."""
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    settings = obj.get("settings")
    if settings is None:
        try:
            settings = resolve_settings()
        except ZeyapiError as exc:
            raise abort(exc) from None
    return settings
