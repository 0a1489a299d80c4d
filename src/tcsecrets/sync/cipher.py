"""
Field cipher -- password-keyed encryption for remote secret fields.

The key is derived from the password with HKDF-SHA256 and used as a
Fernet key (AES-128-CBC + HMAC-SHA256). Derivation is deterministic:
whoever pulls must use the same password as whoever last pushed.

Empty text never touches the cipher. Encrypting ``""`` gives ``""`` and
decrypting ``""`` gives ``""``, so an empty remote field reads as an
empty, unversioned document.
"""

from __future__ import annotations

import base64
import logging

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..errors import DecryptionError, EncryptionError

logger = logging.getLogger("tcsecrets.sync.cipher")

KEY_INFO = b"tc-secrets:field-cipher:v1"


def _derive_key(password: str, info: bytes = KEY_INFO, length: int = 32) -> bytes:
    """Derive key material from a password using HKDF-SHA256.

    Args:
        password: Caller-supplied passphrase.
        info: Context string binding the key to this use.
        length: Desired key length in bytes.

    Returns:
        Derived key bytes.
    """
    hkdf = HKDF(
        algorithm=SHA256(),
        length=length,
        salt=None,
        info=info,
    )
    return hkdf.derive(password.encode("utf-8"))


class Cipher:
    """Symmetric encrypt/decrypt of text payloads.

    Ciphertext is a Fernet token: URL-safe base64, printable, safe to
    store inside a JSON string.
    """

    def __init__(self, password: str):
        """Build a cipher keyed by a password.

        Args:
            password: Passphrase used to derive the key.
        """
        self._fernet = Fernet(base64.urlsafe_b64encode(_derive_key(password)))

    @classmethod
    def from_key(cls, key_material: bytes) -> "Cipher":
        """Build a cipher from raw key material, skipping derivation.

        Args:
            key_material: At least 32 bytes; only the first 32 are used.

        Returns:
            Cipher using that key.
        """
        if len(key_material) < 32:
            raise ValueError("Key material must be at least 32 bytes")
        cipher = cls.__new__(cls)
        cipher._fernet = Fernet(base64.urlsafe_b64encode(key_material[:32]))
        return cipher

    def encrypt(self, plaintext: str) -> str:
        """Encrypt text.

        Args:
            plaintext: Text to protect.

        Returns:
            Printable ciphertext, or ``""`` for empty input.

        Raises:
            EncryptionError: If non-empty input produced no ciphertext.
        """
        if not plaintext:
            return ""

        token = self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        if not token:
            raise EncryptionError("Encrypted content is empty")
        return token

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt text produced by :meth:`encrypt`.

        Args:
            ciphertext: Token to decrypt.

        Returns:
            The original text, or ``""`` for empty input.

        Raises:
            DecryptionError: On a wrong password, a corrupt token, or an
                empty result.
        """
        if not ciphertext:
            return ""

        try:
            raw = self._fernet.decrypt(ciphertext.strip().encode("ascii"))
            content = raw.decode("utf-8")
        except InvalidToken:
            logger.debug("Fernet rejected token (%d chars)", len(ciphertext))
            raise DecryptionError(
                "invalid token (wrong password or corrupt ciphertext)"
            ) from None
        except ValueError as exc:
            raise DecryptionError(str(exc)) from exc

        if not content:
            raise DecryptionError("Decrypted content is empty")
        return content
