"""Tests for the credential store."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from zeyapi.auth.credential_store import CredentialStore
from zeyapi.exceptions import StorageError
from zeyapi.models import CredentialRecord


@pytest.fixture()
def empty_store(tmp_path: Path) -> CredentialStore:
    return CredentialStore(tmp_path / "zeyos-api" / "config.json")


class TestCredentialRecord:
    def test_file_keys(self, record: CredentialRecord) -> None:
        assert record.to_file_data() == {
            "instance": "acme",
            "clientId": "cli-app",
            "secret": "s3cret",
            "access_token": "access-1",
            "refresh_token": "refresh-1",
        }

    def test_accepts_alias(self) -> None:
        loaded = CredentialRecord.model_validate(
            {
                "instance": "acme",
                "clientId": "cli-app",
                "secret": "x",
                "access_token": "a",
                "refresh_token": "r",
            }
        )
        assert loaded.client_id == "cli-app"

    def test_with_tokens_replaces_both(self, record: CredentialRecord) -> None:
        updated = record.with_tokens("access-2", "refresh-2")
        assert updated.access_token == "access-2"
        assert updated.refresh_token == "refresh-2"
        assert updated.client_id == record.client_id
        # Original is untouched
        assert record.access_token == "access-1"


class TestCredentialStore:
    def test_missing_file(self, empty_store: CredentialStore) -> None:
        assert not empty_store.exists()
        with pytest.raises(StorageError, match="zeyapi link"):
            empty_store.load()

    def test_save_and_load(self, empty_store: CredentialStore, record: CredentialRecord) -> None:
        empty_store.save(record)
        assert empty_store.exists()
        assert empty_store.load() == record

    def test_creates_parent_directory(self, empty_store: CredentialStore, record: CredentialRecord) -> None:
        assert not empty_store.path.parent.exists()
        empty_store.save(record)
        assert empty_store.path.parent.is_dir()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_file_permissions(self, empty_store: CredentialStore, record: CredentialRecord) -> None:
        empty_store.save(record)
        mode = stat.S_IMODE(empty_store.path.stat().st_mode)
        assert mode == 0o600

    def test_file_is_pretty_json(self, empty_store: CredentialStore, record: CredentialRecord) -> None:
        empty_store.save(record)
        text = empty_store.path.read_text()
        assert text.endswith("\n")
        assert json.loads(text)["clientId"] == "cli-app"
        assert '\n  "instance"' in text

    def test_overwrite(self, empty_store: CredentialStore, record: CredentialRecord) -> None:
        empty_store.save(record)
        empty_store.save(record.with_tokens("a2", "r2"))
        assert empty_store.load().access_token == "a2"

    def test_invalid_json(self, empty_store: CredentialStore) -> None:
        empty_store.path.parent.mkdir(parents=True)
        empty_store.path.write_text("{not json")
        with pytest.raises(StorageError, match="Invalid credential file"):
            empty_store.load()

    def test_incomplete_record(self, empty_store: CredentialStore) -> None:
        empty_store.path.parent.mkdir(parents=True)
        empty_store.path.write_text(json.dumps({"instance": "acme"}))
        with pytest.raises(StorageError, match="Invalid credential file"):
            empty_store.load()

    def test_failed_write_keeps_previous_file(
        self, empty_store: CredentialStore, record: CredentialRecord
    ) -> None:
        empty_store.save(record)
        before = empty_store.path.read_bytes()
        with patch("zeyapi.config.os.fsync", side_effect=OSError("disk full")):
            with pytest.raises(StorageError, match="Could not save credentials"):
                empty_store.save(record.with_tokens("a2", "r2"))
        assert empty_store.path.read_bytes() == before
        # No temp files left behind
        assert [p.name for p in empty_store.path.parent.iterdir()] == ["config.json"]
