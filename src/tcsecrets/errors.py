"""
Error taxonomy for tc-secrets.

Every failure is terminal for the current invocation. Nothing here is
retried: errors propagate to the CLI, get printed, and the process
exits non-zero.
"""

from __future__ import annotations


class SecretsError(Exception):
    """Base class for all tc-secrets failures."""

    prefix = "Error"

    def __str__(self) -> str:
        detail = super().__str__()
        return f"{self.prefix}: {detail}" if detail else self.prefix


class SecretsIOError(SecretsError):
    """Reading or writing a local file failed."""

    prefix = "IO error"


class EncryptionError(SecretsError):
    """Encrypting a payload failed."""

    prefix = "Failed to encrypt"


class DecryptionError(SecretsError):
    """Bad password, corrupt ciphertext, or an empty result."""

    prefix = "Failed to decrypt"


class StoreAuthError(SecretsError):
    """The secret store rejected or could not find credentials."""

    prefix = "Secret store authentication error"


class StoreOperationError(SecretsError):
    """A secret store call failed (missing secret, network, service)."""

    prefix = "Secret store error"


class SecretFormatError(SecretsError):
    """A remote secret is not a JSON object of strings, or lacks a field."""

    prefix = "Secret JSON format error"


class InvalidEnvFileError(SecretsError):
    """A secrets file has a malformed or missing metadata header."""

    prefix = "Failed to parse the secrets file"
