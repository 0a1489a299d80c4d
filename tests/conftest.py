"""Shared test fixtures for tc-secrets."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from tcsecrets.sync.backends import MemoryStore
from tcsecrets.sync.cipher import Cipher
from tcsecrets.sync.document import FIELD_ID_HEADER, SECRET_ID_HEADER, VERSION_HEADER
from tcsecrets.sync.engine import SyncEngine
from tcsecrets.sync.record import SecretRecord

PASSWORD = "test-password"
SECRET_ID = "app/prod"
FIELD_ID = "backend"


def env_text(
    version: Optional[int],
    body: str,
    secret_id: str = SECRET_ID,
    field_id: str = FIELD_ID,
) -> str:
    """Build secrets file text with all three headers on top."""
    lines = []
    if version is not None:
        lines.append(f"{VERSION_HEADER} {version}")
    lines.append(f"{SECRET_ID_HEADER} {secret_id}")
    lines.append(f"{FIELD_ID_HEADER} {field_id}")
    return "\n".join(lines) + "\n" + body


class RecordingStore(MemoryStore):
    """MemoryStore that remembers every put."""

    def __init__(self, secrets: Optional[dict[str, str]] = None) -> None:
        super().__init__(secrets)
        self.puts: list[str] = []

    def put(self, secret_id: str, payload: str) -> None:
        self.puts.append(secret_id)
        super().put(secret_id, payload)


@pytest.fixture
def tmp_secrets_home(tmp_path: Path) -> Path:
    """Provide a temporary tc-secrets home directory."""
    home = tmp_path / ".tc-secrets"
    home.mkdir()
    return home


@pytest.fixture
def cipher() -> Cipher:
    return Cipher(PASSWORD)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def engine(store: RecordingStore, cipher: Cipher) -> SyncEngine:
    return SyncEngine(store, cipher)


@pytest.fixture
def publish(store: RecordingStore, cipher: Cipher):
    """Store a document as an encrypted field of a remote secret."""

    def _publish(
        text: str,
        secret_id: str = SECRET_ID,
        field_id: str = FIELD_ID,
        **other_fields: str,
    ) -> None:
        if secret_id in store.secrets:
            record = SecretRecord.load(store, secret_id)
        else:
            record = SecretRecord(secret_id=secret_id)
        for name, value in other_fields.items():
            record.set_field(name, value)
        record.set_field(field_id, cipher.encrypt(text))
        store.secrets[secret_id] = record.serialize()

    return _publish
