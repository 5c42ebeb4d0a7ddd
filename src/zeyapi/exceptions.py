"""Exception hierarchy for zeyapi.

All exceptions inherit from :class:`ZeyapiError`, which carries an
``exit_code`` attribute and, when the failure came from an upstream HTTP
exchange, the verbatim ``payload`` returned by the server. The top-level
handler in :func:`zeyapi.app.main` catches ``ZeyapiError``, prints the
message (and payload) and exits with the error's code.

Subclass hierarchy::

    ZeyapiError (exit 1)
    +-- AuthError               token exchange or refresh failed
    +-- RouteNotFoundError      no route with the requested name
    +-- DescriptionFetchError   API description unreachable or unparsable
    +-- StorageError            credential / route file unreadable or unwritable
    +-- ConfigError             invalid settings
    +-- ApiCallError            target API answered with an error (non-fatal)
"""

from __future__ import annotations

from typing import Any

from zeyapi.exit_codes import EXIT_FAILURE


class ZeyapiError(Exception):
    """Base exception for all zeyapi errors.

    Args:
        message: Human-readable error description printed to stderr.
        payload: Optional upstream error body, surfaced verbatim.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_FAILURE

    def __init__(
        self,
        message: str,
        payload: Any = None,
        exit_code: int | None = None,
    ):
        super().__init__(message)
        self.payload = payload
        if exit_code is not None:
            self.exit_code = exit_code


class AuthError(ZeyapiError):
    """Raised when the authorization-code or refresh exchange fails."""


class RouteNotFoundError(ZeyapiError):
    """Raised when a route name has no file in the catalog."""

    def __init__(self, name: str):
        super().__init__(f"Route {name} does not exist.")
        self.name = name


class DescriptionFetchError(ZeyapiError):
    """Raised when the API description cannot be fetched or parsed."""


class StorageError(ZeyapiError):
    """Raised when a credential or route file cannot be read or written."""


class ConfigError(ZeyapiError):
    """Raised for invalid settings (bad project config, bad values)."""


class ApiCallError(ZeyapiError):
    """An error answer (or no answer) from the target API.

    Never propagated to the entry point: the route engine records it on the
    :class:`~zeyapi.engine.RouteOutcome` and the command still exits 0.

    Args:
        message: Summary such as ``HTTP 404`` or the network error text.
        status_code: HTTP status, or ``None`` for network-level failures.
        payload: Decoded error body, if any.
    """

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message, payload=payload)
        self.status_code = status_code
