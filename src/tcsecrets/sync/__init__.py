"""
Secret sync -- versioned .env files against encrypted remote fields.

The file carries its own metadata. The field carries the encrypted file.
Whichever side has the higher version wins; equal versions with
different content are flagged for a human.
"""

from .backends import (
    AWSSecretsManagerStore,
    LocalStore,
    MemoryStore,
    SecretStore,
    create_store,
)
from .cipher import Cipher
from .document import EnvDocument
from .engine import SyncEngine
from .models import SyncAction, SyncResult, TcSecretsConfig
from .record import SecretRecord

__all__ = [
    "AWSSecretsManagerStore",
    "Cipher",
    "EnvDocument",
    "LocalStore",
    "MemoryStore",
    "SecretRecord",
    "SecretStore",
    "SyncAction",
    "SyncEngine",
    "SyncResult",
    "TcSecretsConfig",
    "create_store",
]
