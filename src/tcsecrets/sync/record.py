"""
Remote secret records -- the field map stored under one secret id.

The store keeps a single opaque string per secret. tc-secrets stores a
JSON object in it, one key per field, each value the encrypted text of
one secrets file. A record never holds plaintext.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Optional

from ..errors import SecretFormatError

if TYPE_CHECKING:
    from .backends import SecretStore

logger = logging.getLogger("tcsecrets.sync.record")


class SecretRecord:
    """Field name to ciphertext mapping for one remote secret."""

    def __init__(
        self,
        fields: Optional[dict[str, str]] = None,
        secret_id: Optional[str] = None,
    ) -> None:
        self.fields: dict[str, str] = dict(fields or {})
        self.secret_id = secret_id

    @classmethod
    def from_json(cls, payload: str, secret_id: Optional[str] = None) -> "SecretRecord":
        """Decode a record from its JSON payload.

        Args:
            payload: JSON object of string to string.
            secret_id: Id the payload was fetched under.

        Returns:
            Decoded record.

        Raises:
            SecretFormatError: If the payload is not such an object.
        """
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, TypeError) as exc:
            raise SecretFormatError(str(exc)) from exc

        if not isinstance(data, dict):
            raise SecretFormatError(
                f"expected a JSON object, got {type(data).__name__}"
            )
        for name, value in data.items():
            if not isinstance(value, str):
                raise SecretFormatError(f"Field '{name}' is not a string")

        return cls(data, secret_id=secret_id)

    @classmethod
    def load(cls, store: "SecretStore", secret_id: str) -> "SecretRecord":
        """Fetch and decode a record from a store.

        Args:
            store: Store facade to read from.
            secret_id: Id of the secret.

        Returns:
            Decoded record.
        """
        logger.debug("Loading secret %s from %s", secret_id, store.name)
        return cls.from_json(store.fetch(secret_id), secret_id=secret_id)

    def field(self, name: str) -> str:
        """Return the ciphertext stored under ``name``.

        Raises:
            SecretFormatError: If the field does not exist.
        """
        try:
            return self.fields[name]
        except KeyError:
            raise SecretFormatError(f"Field '{name}' not found") from None

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def set_field(self, name: str, value: str) -> None:
        """Insert or replace a field's ciphertext."""
        self.fields[name] = value

    def field_names(self) -> set[str]:
        return set(self.fields)

    def serialize(self) -> str:
        """Encode the record as the JSON payload the store keeps."""
        return json.dumps(self.fields, sort_keys=True)

    def save(self, store: "SecretStore") -> None:
        """Write the record back to a store under its secret id.

        Raises:
            SecretFormatError: If the record has no secret id.
        """
        if not self.secret_id:
            raise SecretFormatError("Cannot save a secret record without a secret id")
        logger.debug("Saving secret %s to %s", self.secret_id, store.name)
        store.put(self.secret_id, self.serialize())
