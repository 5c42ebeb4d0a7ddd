"""Shared test fixtures for zeyapi.

Provides an isolated workspace, ready-made settings, a sample API
description, a stored credential record and output state management.
Fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from zeyapi.auth.credential_store import CredentialStore
from zeyapi.config import Settings
from zeyapi.models import CredentialRecord
from zeyapi.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager caches references to sys.stdout/sys.stderr when it is
    created; CliRunner swaps those streams per invocation, so a stale
    manager would write to closed files.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Workspace isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory with no ZEYAPI_* overrides.

    Also sets ``NO_COLOR`` so diagnostics are printed without Rich wrapping.

    Returns:
        The tmp_path root (also the working directory).
    """
    for var in [
        "ZEYAPI_WORKSPACE",
        "ZEYAPI_HOST",
        "ZEYAPI_DESCRIPTION_URL",
        "ZEYAPI_CALLBACK_PORT",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(isolated_workspace: Path) -> Settings:
    """Settings rooted in the isolated workspace, pointing at a fake host."""
    return Settings(
        host="https://zeyos.test",
        description_url=str(FIXTURES_DIR / "api.json"),
        workspace=isolated_workspace / "zeyos-api",
        callback_timeout=2.0,
        request_timeout=5.0,
    )


# ---------------------------------------------------------------------------
# Data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def api_description() -> dict[str, Any]:
    """Raw sample API description."""
    with open(FIXTURES_DIR / "api.json") as f:
        return json.load(f)


@pytest.fixture
def record() -> CredentialRecord:
    return CredentialRecord(
        instance="acme",
        client_id="cli-app",
        secret="s3cret",
        access_token="access-1",
        refresh_token="refresh-1",
    )


@pytest.fixture
def store(settings: Settings, record: CredentialRecord) -> CredentialStore:
    """A credential store already holding :func:`record`."""
    credential_store = CredentialStore(settings.config_path)
    credential_store.save(record)
    return credential_store


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a plain, quiet, colourless OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()
