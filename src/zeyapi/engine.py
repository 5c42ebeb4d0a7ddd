"""End-to-end execution of one route.

:class:`RouteRunner` performs the ``run`` command's sequence:

1. refresh the access token (fatal on failure);
2. look the route up in the catalog (fatal if missing);
3. parse the ``key=value,...`` parameter string;
4. bind those parameters into the body and path templates;
5. prompt for any path placeholder still missing and bind again;
6. send the request with a bearer token;
7. classify the answer.

HTTP error answers and network failures are *outcomes*, not exceptions: they
come back as a :class:`RouteOutcome` carrying an
:class:`~zeyapi.exceptions.ApiCallError`, and :func:`render_outcome` prints
them in full.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from zeyapi.auth.credential_store import CredentialStore
from zeyapi.auth.tokens import TokenManager
from zeyapi.catalog.store import RouteCatalog
from zeyapi.config import Settings
from zeyapi.exceptions import ApiCallError
from zeyapi.output import Severity, format_response, status, warning
from zeyapi.resolver import (
    NeedsValue,
    ResolvedRequest,
    parse_params,
    resolve_body,
    resolve_request,
)
from zeyapi.template import placeholder_names


class OutcomeKind(str, enum.Enum):
    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    INFORMATIONAL = "informational"
    NETWORK_ERROR = "network_error"


_SEVERITY = {
    OutcomeKind.SUCCESS: Severity.SUCCESS,
    OutcomeKind.CLIENT_ERROR: Severity.WARNING,
    OutcomeKind.SERVER_ERROR: Severity.DANGER,
    OutcomeKind.INFORMATIONAL: Severity.NEUTRAL,
    OutcomeKind.NETWORK_ERROR: Severity.DANGER,
}


def classify(status_code: int) -> OutcomeKind:
    if 200 <= status_code < 300:
        return OutcomeKind.SUCCESS
    if 400 <= status_code < 500:
        return OutcomeKind.CLIENT_ERROR
    if status_code >= 500:
        return OutcomeKind.SERVER_ERROR
    return OutcomeKind.INFORMATIONAL


@dataclass
class RouteOutcome:
    """What happened when a route was sent.

    Attributes:
        kind: Classification of the answer.
        request: The request that was sent.
        status_code: HTTP status, ``None`` for network failures.
        payload: Decoded response body (JSON value or text).
        error: Set for every non-success outcome.
    """

    kind: OutcomeKind
    request: ResolvedRequest
    status_code: Optional[int] = None
    payload: Any = None
    error: Optional[ApiCallError] = None


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class RouteRunner:
    """Run catalog routes against the live API.

    Args:
        settings: Endpoints and HTTP settings.
        store: Credential store the current record is read from.
        tokens: Token manager performing the refresh.
        catalog: Where routes are looked up.
        prompt: Returns a value for a placeholder name the caller did not
            supply.
        transport: Optional httpx transport (tests use
            :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        settings: Settings,
        store: CredentialStore,
        tokens: TokenManager,
        catalog: RouteCatalog,
        prompt: Callable[[str], str],
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._tokens = tokens
        self._catalog = catalog
        self._prompt = prompt
        self._transport = transport

    def execute(self, name: str, raw_params: Optional[str] = None, verbose: bool = False) -> RouteOutcome:
        """Run the route called *name*.

        Raises:
            StorageError: If no credential record exists.
            AuthError: If the token refresh fails; the route is not sent.
            RouteNotFoundError: If the catalog has no such route.
        """
        record = self._tokens.refresh(self._store.load())
        route = self._catalog.lookup(name)

        bindings = parse_params(raw_params)
        api_base = self._settings.api_base(record.instance)

        resolved = resolve_request(route, bindings, api_base)
        while isinstance(resolved, NeedsValue):
            bindings[resolved.name] = self._prompt(resolved.name)
            resolved = resolve_request(route, bindings, api_base)
        request = resolved

        template = route.body_template
        if template is not None:
            unbound = placeholder_names(resolve_body(template, bindings))
            if unbound:
                warning(f"No value for body placeholder(s): {', '.join(unbound)}")

        headers = {"Authorization": f"Bearer {record.access_token}"}

        if verbose:
            # Shown even with --quiet.
            status("Request Details:")
            status(f"Method: {request.method}")
            status(f"URL: {request.url}")
            status(f"Headers: {json.dumps(headers)}")
            if request.body is not None:
                status(f"Data: {json.dumps(request.body, indent=2, ensure_ascii=False)}")

        return self._send(request, headers)

    def _send(self, request: ResolvedRequest, headers: dict[str, str]) -> RouteOutcome:
        kwargs: dict[str, Any] = {"headers": headers}
        if request.body is not None:
            kwargs["json"] = request.body

        try:
            with httpx.Client(
                timeout=self._settings.request_timeout,
                verify=self._settings.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.request(request.method, request.url, **kwargs)
        except httpx.HTTPError as exc:
            return RouteOutcome(
                kind=OutcomeKind.NETWORK_ERROR,
                request=request,
                error=ApiCallError(str(exc) or type(exc).__name__),
            )

        kind = classify(response.status_code)
        payload = _decode_body(response)
        error = None
        if kind != OutcomeKind.SUCCESS:
            error = ApiCallError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )
        return RouteOutcome(
            kind=kind,
            request=request,
            status_code=response.status_code,
            payload=payload,
            error=error,
        )


def render_outcome(outcome: RouteOutcome) -> None:
    """Print the status line (coloured by class) and the full payload."""
    severity = _SEVERITY[outcome.kind]
    if outcome.kind == OutcomeKind.NETWORK_ERROR:
        assert outcome.error is not None
        status(f"Request failed: {outcome.error}", severity)
        return

    status(f"HTTP Status Code: {outcome.status_code}", severity)
    if outcome.payload is not None:
        format_response(outcome.payload)
