"""Settings resolution and atomic file writes.

zeyapi keeps everything it persists in a single *workspace* directory
(``./zeyos-api`` by default)::

    zeyos-api/
        config.json          credential record
        routes/<name>.json   one file per route definition
        logs/crash-*.log     tracebacks of unexpected failures

The process-wide values the tool needs (API host, description source,
workspace, callback port, timeouts) live on one :class:`Settings` value that
is built once by :func:`resolve_settings` and handed to every component, so
tests can substitute their own.

Precedence (high to low):
    1. CLI flags
    2. Environment variables (``ZEYAPI_WORKSPACE``, ``ZEYAPI_HOST``,
       ``ZEYAPI_DESCRIPTION_URL``, ``ZEYAPI_CALLBACK_PORT``)
    3. Project config (``./zeyapi.json``)
    4. Defaults

All file writes go through :func:`atomic_write` (temp file + rename).
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from zeyapi.exceptions import ConfigError

_PROJECT_CONFIG_FILENAME = "zeyapi.json"

_ENV_OVERRIDES = {
    "ZEYAPI_WORKSPACE": "workspace",
    "ZEYAPI_HOST": "host",
    "ZEYAPI_DESCRIPTION_URL": "description_url",
    "ZEYAPI_CALLBACK_PORT": "callback_port",
}


class Settings(BaseModel):
    """Effective configuration for one CLI invocation."""

    host: str = Field(
        default="https://cloud.zeyos.com",
        description="Scheme and host of the API; instances live below it",
    )
    description_url: str = Field(
        default="https://cloud.zeyos.com/__ext/openapi/api.json",
        description="URL or file path of the machine-readable API description",
    )
    workspace: Path = Field(
        default=Path("zeyos-api"),
        description="Directory holding the credential file and route catalog",
    )
    callback_port: int = Field(
        default=8080, description="Fixed local port of the OAuth2 redirect listener"
    )
    callback_timeout: float = Field(
        default=300.0, description="Seconds to wait for the OAuth2 redirect"
    )
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")

    # --- storage locations ---

    @property
    def config_path(self) -> Path:
        return self.workspace / "config.json"

    @property
    def routes_dir(self) -> Path:
        return self.workspace / "routes"

    @property
    def logs_dir(self) -> Path:
        return self.workspace / "logs"

    # --- upstream endpoints ---

    @property
    def redirect_uri(self) -> str:
        return f"http://localhost:{self.callback_port}"

    def authorize_url(self, instance: str) -> str:
        """OAuth2 authorization endpoint of *instance*."""
        return f"{self._host()}/{instance}/oauth2/v1/authorize"

    def token_url(self, instance: str) -> str:
        """OAuth2 token endpoint of *instance*."""
        return f"{self._host()}/{instance}/oauth2/v1/token"

    def api_base(self, instance: str) -> str:
        """Base URL that route paths are appended to."""
        return f"{self._host()}/{instance}/api/v1"

    def _host(self) -> str:
        return self.host.rstrip("/")


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is given
    the permissions are applied before any content is written. On failure
    the temp file is removed and *path* is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def write_json(path: Path, data: Any, mode: Optional[int] = None) -> None:
    """Serialise *data* with two-space indentation and write it atomically."""
    atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n", mode=mode)


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./zeyapi.json`` if present.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not valid JSON or not an object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


# --- Precedence resolution ---


def resolve_settings(
    cli_workspace: Optional[str] = None,
    cli_host: Optional[str] = None,
) -> Settings:
    """Build the effective :class:`Settings` from every configuration layer.

    Args:
        cli_workspace: ``--workspace`` flag value (highest precedence).
        cli_host: Host override from the command line.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If a layer holds invalid JSON or values that fail
            validation (e.g. a non-numeric ``ZEYAPI_CALLBACK_PORT``).
    """
    values: dict[str, Any] = {}

    project = load_project_config()
    if project is not None:
        values.update(project)

    for var, field in _ENV_OVERRIDES.items():
        env_value = os.environ.get(var)
        if env_value:
            values[field] = env_value

    if cli_workspace is not None:
        values["workspace"] = cli_workspace
    if cli_host is not None:
        values["host"] = cli_host

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
