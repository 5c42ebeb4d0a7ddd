"""Persistent store for the single :class:`~zeyapi.models.CredentialRecord`.

The record lives in ``<workspace>/config.json``. Writes are atomic (temp file
in the same directory, fsync, ``os.replace``) and the file is created with
``0o600`` permissions so the client secret and tokens are never
world-readable, even momentarily. A failed write leaves the previous file
byte-identical.

See Also:
    :class:`~zeyapi.auth.tokens.TokenManager` -- the only writer.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from zeyapi.config import write_json
from zeyapi.exceptions import StorageError
from zeyapi.models import CredentialRecord


class CredentialStore:
    """Read/write the credential file at *path*.

    Example::

        store = CredentialStore(settings.config_path)
        store.save(record)
        assert store.load() == record
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """The filesystem path of the credential file."""
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> CredentialRecord:
        """Load the stored record.

        Raises:
            StorageError: If the file is missing, unreadable, or does not
                hold a complete record.
        """
        if not self._path.is_file():
            raise StorageError(
                f"No credentials found at {self._path}. Run 'zeyapi link' first."
            )
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return CredentialRecord.model_validate(data)
        except (json.JSONDecodeError, OSError, ValidationError) as exc:
            raise StorageError(f"Invalid credential file {self._path}: {exc}") from exc

    def save(self, record: CredentialRecord) -> None:
        """Persist *record* atomically with ``0o600`` permissions.

        Raises:
            StorageError: If the file cannot be written.
        """
        try:
            write_json(self._path, record.to_file_data(), mode=0o600)
        except OSError as exc:
            raise StorageError(f"Could not save credentials to {self._path}: {exc}") from exc
