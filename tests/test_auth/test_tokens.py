"""Tests for the OAuth2 token manager."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from zeyapi.auth.credential_store import CredentialStore
from zeyapi.auth.tokens import LinkState, TokenManager, format_payload
from zeyapi.config import Settings
from zeyapi.exceptions import AuthError, StorageError
from zeyapi.models import CredentialRecord


TOKENS = {"access_token": "access-2", "refresh_token": "refresh-2", "token_type": "Bearer"}


class _FakeListener:
    """Stands in for CallbackListener; returns a canned code."""

    def __init__(self, host: str, port: int, code: str = "the-code", error: Exception | None = None) -> None:
        self.host = host
        self.port = port
        self._code = code
        self._error = error

    def __enter__(self) -> _FakeListener:
        return self

    def __exit__(self, *args: object) -> None:
        pass

    def wait_for_code(self, timeout: float) -> str:
        if self._error is not None:
            raise self._error
        return self._code


@pytest.fixture
def opened() -> list[str]:
    return []


@pytest.fixture
def manager(settings: Settings, store: CredentialStore, opened: list[str], quiet_output: Any) -> TokenManager:
    return TokenManager(settings, store, open_browser=opened.append)


class TestInitialState:
    def test_unlinked_without_file(self, settings: Settings) -> None:
        manager = TokenManager(settings, CredentialStore(settings.config_path))
        assert manager.state == LinkState.UNLINKED

    def test_linked_with_file(self, manager: TokenManager) -> None:
        assert manager.state == LinkState.LINKED


class TestAuthorizationUrl:
    def test_url_shape(self, manager: TokenManager) -> None:
        url = manager.authorization_url("acme", "cli-app")
        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://zeyos.test/acme/oauth2/v1/authorize"
        )
        assert parse_qs(parsed.query) == {
            "client_id": ["cli-app"],
            "redirect_uri": ["http://localhost:8080"],
            "response_type": ["code"],
        }


class TestRefresh:
    def test_success_persists_new_pair(
        self, manager: TokenManager, store: CredentialStore, record: CredentialRecord
    ) -> None:
        with patch("zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(200, json=TOKENS)) as post:
            refreshed = manager.refresh(record)

        assert refreshed.access_token == "access-2"
        assert refreshed.refresh_token == "refresh-2"
        assert store.load() == refreshed
        assert manager.state == LinkState.LINKED

        args, kwargs = post.call_args
        assert args[0] == "https://zeyos.test/acme/oauth2/v1/token"
        assert kwargs["params"] == {"grant_type": "refresh_token", "refresh_token": "refresh-1"}
        assert kwargs["auth"] == ("cli-app", "s3cret")

    def test_error_status_leaves_file_untouched(
        self, manager: TokenManager, store: CredentialStore, record: CredentialRecord
    ) -> None:
        before = store.path.read_bytes()
        body = {"error": "invalid_grant", "error_description": "expired"}
        with patch("zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(400, json=body)):
            with pytest.raises(AuthError) as exc_info:
                manager.refresh(record)

        assert "status 400" in str(exc_info.value)
        assert '"invalid_grant"' in str(exc_info.value)
        assert exc_info.value.payload == body
        assert manager.state == LinkState.ERROR
        assert store.path.read_bytes() == before

    def test_text_error_body_kept_verbatim(self, manager: TokenManager, record: CredentialRecord) -> None:
        with patch("zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(502, text="Bad gateway")):
            with pytest.raises(AuthError) as exc_info:
                manager.refresh(record)
        assert exc_info.value.payload == "Bad gateway"

    def test_network_error(self, manager: TokenManager, store: CredentialStore, record: CredentialRecord) -> None:
        before = store.path.read_bytes()
        with patch("zeyapi.auth.tokens.httpx.post", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(AuthError, match="Token refresh failed"):
                manager.refresh(record)
        assert store.path.read_bytes() == before
        assert manager.state == LinkState.ERROR

    def test_missing_tokens_in_response(self, manager: TokenManager, record: CredentialRecord) -> None:
        with patch(
            "zeyapi.auth.tokens.httpx.post",
            return_value=httpx.Response(200, json={"access_token": "only"}),
        ):
            with pytest.raises(AuthError, match="missing refresh_token"):
                manager.refresh(record)

    def test_non_json_success(self, manager: TokenManager, record: CredentialRecord) -> None:
        with patch("zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(200, text="ok")):
            with pytest.raises(AuthError, match="non-JSON"):
                manager.refresh(record)

    def test_persistence_failure(
        self, manager: TokenManager, store: CredentialStore, record: CredentialRecord
    ) -> None:
        before = store.path.read_bytes()
        with patch("zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(200, json=TOKENS)):
            with patch("zeyapi.config.os.fsync", side_effect=OSError("disk full")):
                with pytest.raises(StorageError):
                    manager.refresh(record)
        assert manager.state == LinkState.ERROR
        assert store.path.read_bytes() == before


class TestAuthorize:
    def test_full_flow(self, settings: Settings, opened: list[str], quiet_output: Any) -> None:
        store = CredentialStore(settings.config_path)
        manager = TokenManager(settings, store, open_browser=opened.append)

        with patch("zeyapi.auth.tokens.CallbackListener", _FakeListener):
            with patch(
                "zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(200, json=TOKENS)
            ) as post:
                record = manager.authorize("acme", "cli-app", "s3cret")

        assert opened == [manager.authorization_url("acme", "cli-app")]
        assert post.call_args.kwargs["params"] == {
            "grant_type": "authorization_code",
            "authorization_code": "the-code",
        }
        assert record == CredentialRecord(
            instance="acme",
            client_id="cli-app",
            secret="s3cret",
            access_token="access-2",
            refresh_token="refresh-2",
        )
        assert store.load() == record
        assert manager.state == LinkState.LINKED

    def test_listener_uses_configured_port(self, settings: Settings, quiet_output: Any) -> None:
        listener_cls = MagicMock(wraps=_FakeListener)
        manager = TokenManager(settings, CredentialStore(settings.config_path), open_browser=lambda url: None)
        with patch("zeyapi.auth.tokens.CallbackListener", listener_cls):
            with patch("zeyapi.auth.tokens.httpx.post", return_value=httpx.Response(200, json=TOKENS)):
                manager.authorize("acme", "cli-app", "s3cret")
        listener_cls.assert_called_once_with("localhost", 8080)

    def test_redirect_error_writes_nothing(self, settings: Settings, quiet_output: Any) -> None:
        store = CredentialStore(settings.config_path)
        manager = TokenManager(settings, store, open_browser=lambda url: None)

        def failing(host: str, port: int) -> _FakeListener:
            return _FakeListener(host, port, error=AuthError("OAuth2 authorization failed: access_denied"))

        with patch("zeyapi.auth.tokens.CallbackListener", failing):
            with patch("zeyapi.auth.tokens.httpx.post") as post:
                with pytest.raises(AuthError, match="access_denied"):
                    manager.authorize("acme", "cli-app", "s3cret")

        post.assert_not_called()
        assert not store.exists()
        assert manager.state == LinkState.ERROR

    def test_exchange_failure_writes_nothing(self, settings: Settings, quiet_output: Any) -> None:
        store = CredentialStore(settings.config_path)
        manager = TokenManager(settings, store, open_browser=lambda url: None)
        with patch("zeyapi.auth.tokens.CallbackListener", _FakeListener):
            with patch(
                "zeyapi.auth.tokens.httpx.post",
                return_value=httpx.Response(401, json={"error": "invalid_client"}),
            ):
                with pytest.raises(AuthError, match="Token exchange failed with status 401"):
                    manager.authorize("acme", "cli-app", "wrong")
        assert not store.exists()


class TestFormatPayload:
    def test_text(self) -> None:
        assert format_payload("plain") == "plain"

    def test_json(self) -> None:
        assert format_payload({"a": 1}) == '{\n  "a": 1\n}'
