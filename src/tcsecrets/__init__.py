"""
tc-secrets — keep .env secret files in sync with a remote secret store.

A local secrets file carries a few metadata header lines that point
at one field of a remote secret. The field holds the encrypted file.
Versions in the header decide who wins: pull, push, or flag a conflict.
"""

import os

__version__ = "1.0.0"

SECRETS_HOME = os.environ.get("TC_SECRETS_HOME", "~/.tc-secrets")
