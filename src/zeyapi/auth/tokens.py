"""OAuth2 token lifecycle: authorization-code exchange and refresh.

:class:`TokenManager` owns the credential record's state machine::

    UNLINKED --authorize--> LINKING --ok--> LINKED
                                    \\--fail--> ERROR
    LINKED --refresh--> REFRESHING --ok--> LINKED
                                   \\--fail--> ERROR

Both exchanges talk to ``<host>/<instance>/oauth2/v1/token`` with HTTP Basic
client authentication and pass the grant as query parameters. A successful
exchange is persisted through :class:`~zeyapi.auth.credential_store.CredentialStore`
*before* the new record is returned; a failed exchange never touches the
credential file.
"""

from __future__ import annotations

import enum
import json
import threading
import webbrowser
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import httpx

from zeyapi.auth.callback import CallbackListener
from zeyapi.auth.credential_store import CredentialStore
from zeyapi.config import Settings
from zeyapi.exceptions import AuthError, StorageError
from zeyapi.models import CredentialRecord
from zeyapi.output import debug, info


class LinkState(str, enum.Enum):
    """Where the credential record is in its lifecycle."""

    UNLINKED = "unlinked"
    LINKING = "linking"
    LINKED = "linked"
    REFRESHING = "refreshing"
    ERROR = "error"


def _open_browser(url: str) -> None:
    # Daemon thread so a slow browser launch never blocks the listener.
    threading.Thread(target=webbrowser.open, args=(url,), daemon=True).start()


def _error_payload(response: httpx.Response) -> Any:
    """Decode an error body as JSON when possible, else return the raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def format_payload(payload: Any) -> str:
    """Render an upstream payload verbatim (pretty JSON for decoded bodies)."""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, ensure_ascii=False)


class TokenManager:
    """Drive the authorization-code and refresh exchanges.

    Args:
        settings: Endpoints, callback port and timeouts.
        store: Where the credential record is persisted.
        open_browser: Callable that opens a URL; replaced in tests.
    """

    def __init__(
        self,
        settings: Settings,
        store: CredentialStore,
        open_browser: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._open_browser = open_browser or _open_browser
        self.state = LinkState.LINKED if store.exists() else LinkState.UNLINKED

    # ------------------------------------------------------------------ #
    # Authorization-code flow
    # ------------------------------------------------------------------ #

    def authorization_url(self, instance: str, client_id: str) -> str:
        params = {
            "client_id": client_id,
            "redirect_uri": self._settings.redirect_uri,
            "response_type": "code",
        }
        return f"{self._settings.authorize_url(instance)}?{urlencode(params)}"

    def authorize(self, instance: str, client_id: str, secret: str) -> CredentialRecord:
        """Run the three-legged flow and persist the resulting record.

        Opens the authorization URL in the browser, waits on the fixed local
        port for exactly one redirect carrying a code, then exchanges the code
        for a token pair.

        Args:
            instance: Instance identifier (first path segment on the host).
            client_id: OAuth2 client identifier.
            secret: OAuth2 client secret.

        Returns:
            The persisted :class:`~zeyapi.models.CredentialRecord`.

        Raises:
            AuthError: If the redirect reports an error or never arrives, or
                the token endpoint answers non-2xx.
            StorageError: If the record cannot be written.
        """
        self.state = LinkState.LINKING
        try:
            auth_url = self.authorization_url(instance, client_id)
            with CallbackListener("localhost", self._settings.callback_port) as listener:
                info(f"Listening on {self._settings.redirect_uri}")
                info("Opening browser for OAuth2 authorization...")
                debug(f"Authorization URL: {auth_url}")
                self._open_browser(auth_url)
                code = listener.wait_for_code(self._settings.callback_timeout)

            token_data = self._exchange(
                instance,
                client_id,
                secret,
                {"grant_type": "authorization_code", "authorization_code": code},
                "Token exchange",
            )
            record = CredentialRecord(
                instance=instance,
                client_id=client_id,
                secret=secret,
                access_token=token_data["access_token"],
                refresh_token=token_data["refresh_token"],
            )
            self._store.save(record)
        except (AuthError, StorageError):
            self.state = LinkState.ERROR
            raise
        self.state = LinkState.LINKED
        return record

    # ------------------------------------------------------------------ #
    # Refresh flow
    # ------------------------------------------------------------------ #

    def refresh(self, record: CredentialRecord) -> CredentialRecord:
        """Trade the record's refresh token for a new token pair.

        Returns:
            A new record with both tokens replaced, already persisted.

        Raises:
            AuthError: If the token endpoint answers non-2xx or is
                unreachable. The stored record is left untouched.
            StorageError: If the new record cannot be written.
        """
        self.state = LinkState.REFRESHING
        try:
            token_data = self._exchange(
                record.instance,
                record.client_id,
                record.secret,
                {"grant_type": "refresh_token", "refresh_token": record.refresh_token},
                "Token refresh",
            )
            refreshed = record.with_tokens(
                token_data["access_token"], token_data["refresh_token"]
            )
            self._store.save(refreshed)
        except (AuthError, StorageError):
            self.state = LinkState.ERROR
            raise
        self.state = LinkState.LINKED
        debug("Access token refreshed")
        return refreshed

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _exchange(
        self,
        instance: str,
        client_id: str,
        secret: str,
        params: dict[str, str],
        label: str,
    ) -> dict[str, Any]:
        """POST to the token endpoint and return the validated token JSON."""
        url = self._settings.token_url(instance)
        debug(f"{label}: POST {url} ({params['grant_type']})")
        try:
            response = httpx.post(
                url,
                params=params,
                auth=(client_id, secret),
                headers={"Accept": "application/json"},
                timeout=self._settings.request_timeout,
                verify=self._settings.verify_ssl,
            )
        except httpx.HTTPError as exc:
            raise AuthError(f"{label} failed: {exc}") from exc

        if not response.is_success:
            payload = _error_payload(response)
            raise AuthError(
                f"{label} failed with status {response.status_code}:\n"
                f"{format_payload(payload)}",
                payload=payload,
            )

        try:
            token_data = response.json()
        except ValueError as exc:
            raise AuthError(
                f"{label} returned a non-JSON body: {response.text}", payload=response.text
            ) from exc

        if not isinstance(token_data, dict):
            raise AuthError(f"{label} returned an unexpected body", payload=token_data)
        missing = [k for k in ("access_token", "refresh_token") if not token_data.get(k)]
        if missing:
            raise AuthError(
                f"{label} response missing {', '.join(missing)}", payload=token_data
            )
        return token_data
