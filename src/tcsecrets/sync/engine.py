"""
Sync Engine -- version-driven reconciliation of a secrets file with its remote field.

The engine compares the version header of the local file with the
version header inside the decrypted remote field and does exactly one
thing per run:

    local < remote   ->  pull: overwrite the local file
    local > remote   ->  push: encrypt and overwrite the remote field
    equal, differ    ->  conflict: touch nothing, a human decides
    equal, same      ->  up to date

There is no lock and no write-time version check. Two machines pushing
the same version race, and the second put wins.
"""

from __future__ import annotations

import difflib
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from ..errors import (
    InvalidEnvFileError,
    SecretFormatError,
    SecretsIOError,
    StoreOperationError,
)
from .backends import SecretStore
from .cipher import Cipher
from .document import EnvDocument, split_lines
from .models import SyncAction, SyncResult
from .record import SecretRecord

logger = logging.getLogger("tcsecrets.sync.engine")

# Callbacks the shell supplies for interactive selection.
SelectSecret = Callable[[list[str]], str]
SelectField = Callable[[str, list[str]], str]


def _require_refs(doc: EnvDocument) -> tuple[str, str]:
    """Return a document's secret and field ids, failing if either is unset."""
    if not doc.secret_id:
        raise InvalidEnvFileError("The secret file does not contain a secret ID.")
    if not doc.field_id:
        raise InvalidEnvFileError("The secret file does not contain a field ID.")
    return doc.secret_id, doc.field_id


def backup_file(path: Path) -> Path:
    """Copy a file to a timestamped sibling before it gets overwritten.

    Args:
        path: File to back up.

    Returns:
        Path of the backup copy (``<name>.<UTC timestamp>.bak``).

    Raises:
        SecretsIOError: If the copy fails.
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    backup = path.with_name(f"{path.name}.{stamp}.bak")
    counter = 1
    while backup.exists():
        backup = path.with_name(f"{path.name}.{stamp}-{counter}.bak")
        counter += 1

    try:
        shutil.copy2(path, backup)
    except OSError as exc:
        raise SecretsIOError(f"cannot back up {path}: {exc}") from exc

    logger.info("Backed up %s to %s", path, backup.name)
    return backup


class SyncEngine:
    """Reconciles secrets files with fields of remote secret records.

    Args:
        store: Secret store facade.
        cipher: Cipher keyed with the shared passphrase.
    """

    def __init__(self, store: SecretStore, cipher: Cipher) -> None:
        self.store = store
        self.cipher = cipher

    def load_remote(
        self,
        secret_id: str,
        field_id: str,
        create_missing: bool = False,
    ) -> tuple[SecretRecord, EnvDocument]:
        """Fetch a record and materialize one of its fields as a document.

        Args:
            secret_id: Remote secret to load.
            field_id: Field holding the document.
            create_missing: Treat an absent field as an empty document
                instead of failing.

        Returns:
            The record and the decrypted, parsed remote document. The
            document's ids default to the ones asked for.
        """
        record = SecretRecord.load(self.store, secret_id)

        if create_missing and not record.has_field(field_id):
            logger.info(
                "Field %s not present in secret %s; treating it as empty",
                field_id, secret_id,
            )
            text = ""
        else:
            text = self.cipher.decrypt(record.field(field_id))

        remote = EnvDocument(content=text, secret_id=secret_id, field_id=field_id)
        remote.parse()
        return record, remote

    @staticmethod
    def decide(local: EnvDocument, remote: EnvDocument) -> SyncAction:
        """Pick the reconciliation action for two documents.

        Versions decide. Only on equal versions are the bodies compared,
        ignoring header lines.
        """
        local_version = local.version or 0
        remote_version = remote.version or 0

        if local_version < remote_version:
            return SyncAction.PULL
        if local_version > remote_version:
            return SyncAction.PUSH
        if local.payload_lines() != remote.payload_lines():
            return SyncAction.CONFLICT
        return SyncAction.UP_TO_DATE

    def reconcile(
        self,
        local: EnvDocument,
        remote: EnvDocument,
        record: SecretRecord,
    ) -> SyncResult:
        """Apply the decided action.

        Pull rewrites ``local`` in place with the remote content and
        version. Push writes the encrypted local content into ``record``
        and puts the record back. Conflict and up-to-date write nothing.

        Args:
            local: Document loaded from disk.
            remote: Document decrypted from the record's field.
            record: Record the remote document came from.

        Returns:
            SyncResult describing the action taken.
        """
        secret_id, field_id = _require_refs(local)
        action = self.decide(local, remote)
        result = SyncResult(
            action=action,
            secret_id=secret_id,
            field_id=field_id,
            local_version=local.version or 0,
            remote_version=remote.version or 0,
            path=local.path,
        )

        if action == SyncAction.PULL:
            local.content = remote.content
            local.version = remote.version
            local.secret_id = remote.secret_id or local.secret_id
            local.field_id = remote.field_id or local.field_id
            local.write()
            logger.info(
                "Pulled %s/%s version %d into %s",
                secret_id, field_id, result.remote_version, local.path,
            )

        elif action == SyncAction.PUSH:
            record.secret_id = secret_id
            record.set_field(field_id, self.cipher.encrypt(local.content))
            record.save(self.store)
            logger.info(
                "Pushed version %d to %s/%s",
                result.local_version, secret_id, field_id,
            )

        elif action == SyncAction.CONFLICT:
            logger.warning(
                "Conflict on %s/%s: both at version %d with different content",
                secret_id, field_id, result.local_version,
            )

        else:
            logger.info("%s/%s is up to date", secret_id, field_id)

        return result

    def sync(self, local: EnvDocument, create_missing: bool = False) -> SyncResult:
        """Synchronize a local document with its remote field.

        Args:
            local: Document loaded from disk, headers parsed.
            create_missing: Push into a field that does not exist yet.

        Returns:
            SyncResult describing the single action taken.

        Raises:
            InvalidEnvFileError: If the document lacks a secret or field id.
        """
        secret_id, field_id = _require_refs(local)
        record, remote = self.load_remote(
            secret_id, field_id, create_missing=create_missing
        )
        return self.reconcile(local, remote, record)

    @staticmethod
    def bump(local: EnvDocument) -> int:
        """Increase a document's version by one and write it.

        Returns:
            The new version.
        """
        local.version = (local.version or 0) + 1
        local.write()
        logger.info("Bumped %s to version %d", local.path, local.version)
        return local.version

    def reset(
        self,
        path: Path,
        secret_id: Optional[str] = None,
        field_id: Optional[str] = None,
        backup: bool = True,
    ) -> SyncResult:
        """Overwrite a local file with the remote document, whatever the versions.

        Args:
            path: Local secrets file.
            secret_id: Remote secret; defaults to the file's header.
            field_id: Remote field; defaults to the file's header.
            backup: Copy an existing file aside before overwriting it.

        Returns:
            SyncResult with action PULL and the backup path, if any.
        """
        path = Path(path)
        local_version = 0
        if path.exists():
            try:
                existing = EnvDocument.from_path(path)
            except InvalidEnvFileError:
                # Explicit ids make the old headers irrelevant.
                if secret_id is None or field_id is None:
                    raise
                logger.debug("Ignoring unparsable headers in %s", path)
            else:
                secret_id = secret_id or existing.secret_id
                field_id = field_id or existing.field_id
                local_version = existing.version or 0

        refs = EnvDocument(secret_id=secret_id, field_id=field_id)
        secret_id, field_id = _require_refs(refs)

        _, remote = self.load_remote(secret_id, field_id)

        backup_path = None
        if backup and path.exists():
            backup_path = backup_file(path)

        remote.path = path
        if remote.version is None:
            remote.version = 1
        remote.write()
        logger.info("Reset %s from %s/%s", path, secret_id, field_id)

        return SyncResult(
            action=SyncAction.PULL,
            secret_id=secret_id,
            field_id=field_id,
            local_version=local_version,
            remote_version=remote.version,
            path=path,
            backup_path=backup_path,
        )

    def download(
        self,
        path: Path,
        select_secret: SelectSecret,
        select_field: SelectField,
    ) -> SyncResult:
        """Create a local file from a remote field picked by the caller.

        Args:
            path: Where to write the new secrets file.
            select_secret: Picks a secret id from the store's listing.
            select_field: Picks a field name of the chosen secret.

        Returns:
            SyncResult with action PULL.
        """
        secret_ids = self.store.list_secrets()
        if not secret_ids:
            raise StoreOperationError(f"No secrets found in the {self.store.name} store")
        secret_id = select_secret(secret_ids)

        record = SecretRecord.load(self.store, secret_id)
        field_names = sorted(record.field_names())
        if not field_names:
            raise SecretFormatError(f"Secret '{secret_id}' has no fields")
        field_id = select_field(secret_id, field_names)

        doc = EnvDocument(
            content=self.cipher.decrypt(record.field(field_id)),
            path=Path(path),
        )
        doc.parse()
        doc.secret_id = doc.secret_id or secret_id
        doc.field_id = doc.field_id or field_id
        if doc.version is None:
            doc.version = 1
        doc.write()
        logger.info("Downloaded %s/%s to %s", secret_id, field_id, path)

        return SyncResult(
            action=SyncAction.PULL,
            secret_id=doc.secret_id,
            field_id=doc.field_id,
            remote_version=doc.version,
            path=doc.path,
        )

    def diff(self, local: EnvDocument) -> list[str]:
        """Unified diff from the remote document to the local one.

        Returns:
            Diff lines without trailing newlines; empty when identical.
        """
        secret_id, field_id = _require_refs(local)
        _, remote = self.load_remote(secret_id, field_id)
        return list(difflib.unified_diff(
            split_lines(remote.content),
            split_lines(local.content),
            fromfile=f"{secret_id}/{field_id}",
            tofile=str(local.path or "local"),
            lineterm="",
        ))
