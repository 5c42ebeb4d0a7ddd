"""One-shot local HTTP listener used as the OAuth2 redirect target.

:class:`CallbackListener` binds a fixed local port for the duration of a
``with`` block, waits for the provider to redirect the browser back with an
authorization ``code`` (or an ``error``), and releases the port on exit.
Unlike a bare ``serve_forever`` the wait is bounded: if nothing arrives
before the deadline :meth:`CallbackListener.wait_for_code` raises
:class:`~zeyapi.exceptions.AuthError`.

Requests that carry neither ``code`` nor ``error`` (a browser probing
``/favicon.ico``, for example) are answered and ignored.
"""

from __future__ import annotations

import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from zeyapi.exceptions import AuthError

_SUCCESS_PAGE = "OAuth2 callback received. You can close this window."


class _CallbackServer(HTTPServer):
    code: Optional[str] = None
    error: Optional[str] = None
    error_description: str = ""


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def do_GET(self) -> None:
        params = parse_qs(urlparse(self.path).query)

        if "error" in params:
            self.server.error = params["error"][0]
            self.server.error_description = params.get("error_description", [""])[0]
            body = f"Authorization failed: {self.server.error}"
            status = 400
        elif "code" in params:
            self.server.code = params["code"][0]
            body = _SUCCESS_PAGE
            status = 200
        else:
            body = "Waiting for the authorization code."
            status = 404

        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(f"<html><body><h2>{body}</h2></body></html>".encode("utf-8"))

    def log_message(self, format: str, *args: Any) -> None:
        pass


class CallbackListener:
    """Scoped listener for a single OAuth2 redirect.

    Args:
        host: Interface to bind (``localhost`` in production).
        port: Fixed port; ``0`` picks a free one (used by tests).

    Example::

        with CallbackListener("localhost", 8080) as listener:
            webbrowser.open(auth_url)
            code = listener.wait_for_code(timeout=300)
    """

    def __init__(self, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._server: Optional[_CallbackServer] = None

    def __enter__(self) -> CallbackListener:
        try:
            self._server = _CallbackServer((self._host, self._port), _CallbackHandler)
        except OSError as exc:
            raise AuthError(
                f"Could not listen on {self._host}:{self._port} for the OAuth2 "
                f"redirect: {exc}"
            ) from exc
        return self

    def __exit__(self, *args: object) -> None:
        if self._server is not None:
            self._server.server_close()
            self._server = None

    @property
    def port(self) -> int:
        """The bound port (useful when constructed with port ``0``)."""
        assert self._server is not None, "Listener not started -- use as context manager"
        return self._server.server_address[1]

    def wait_for_code(self, timeout: float) -> str:
        """Serve requests until one carries ``code`` or ``error``.

        Args:
            timeout: Total seconds to wait.

        Returns:
            The authorization code.

        Raises:
            AuthError: On an ``error`` redirect or when *timeout* elapses.
        """
        server = self._server
        assert server is not None, "Listener not started -- use as context manager"

        deadline = time.monotonic() + timeout
        while server.code is None and server.error is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise AuthError(
                    f"No OAuth2 redirect received within {timeout:g} seconds"
                )
            server.timeout = remaining
            server.handle_request()

        if server.error is not None:
            detail = f" - {server.error_description}" if server.error_description else ""
            raise AuthError(f"OAuth2 authorization failed: {server.error}{detail}")
        return server.code  # type: ignore[return-value]
