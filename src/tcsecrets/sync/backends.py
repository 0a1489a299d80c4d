"""
Secret store backends -- where the encrypted record lives.

Each backend keeps one opaque string per secret id and knows how to
fetch, put and list them. The engine never manages credentials,
retries or connections; it only calls these three operations, one at
a time.

AWS: Secrets Manager via boto3, using a dedicated named profile.
Local: One file per secret in a directory. For USB drives, NAS, tests.
Memory: A dict. For tests and embedding.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote, unquote

from ..errors import StoreAuthError, StoreOperationError
from .models import StoreBackendType, TcSecretsConfig

logger = logging.getLogger("tcsecrets.sync.backends")

DEFAULT_REGION = "us-east-1"

# Error codes AWS returns when the credentials themselves are the problem.
AUTH_ERROR_CODES = frozenset({
    "AccessDeniedException",
    "ExpiredTokenException",
    "InvalidClientTokenId",
    "InvalidSignatureException",
    "UnrecognizedClientException",
})


class SecretStore(ABC):
    """Abstract secret store facade."""

    @abstractmethod
    def fetch(self, secret_id: str) -> str:
        """Return the raw payload stored under a secret id.

        Raises:
            StoreOperationError: If the secret is missing or unreachable.
            StoreAuthError: If the store rejects the credentials.
        """

    @abstractmethod
    def put(self, secret_id: str, payload: str) -> None:
        """Replace the payload stored under a secret id."""

    @abstractmethod
    def list_secrets(self) -> list[str]:
        """Return all secret ids visible to this store."""

    @abstractmethod
    def available(self) -> bool:
        """Check if this store is currently usable."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""


class AWSSecretsManagerStore(SecretStore):
    """AWS Secrets Manager backend using boto3.

    Credentials come from a dedicated named profile in ~/.aws so the
    tool never touches the user's default profile. The region falls
    back to the profile's region, then to us-east-1.

    Args:
        profile: Named AWS profile.
        region: Explicit region, overriding the profile's.
        client: Pre-built secretsmanager client (tests, custom sessions).
    """

    def __init__(
        self,
        profile: Optional[str] = "tc-secrets-cli-profile",
        region: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.profile = profile
        self.region = region
        self._client = client
        self._session: Any = None

    @property
    def name(self) -> str:
        return "aws"

    def _boto_session(self) -> Any:
        """Create (once) the boto3 session for the configured profile."""
        if self._session is None:
            import boto3
            from botocore.exceptions import ProfileNotFound

            try:
                session = boto3.Session(profile_name=self.profile)
            except ProfileNotFound as exc:
                raise StoreAuthError(
                    f"{exc}. Run 'tc-secrets auth' to configure it."
                ) from exc
            self.region = self.region or session.region_name or DEFAULT_REGION
            self._session = session
        return self._session

    def _secrets_client(self) -> Any:
        """Create (once) the boto3 Secrets Manager client."""
        if self._client is None:
            session = self._boto_session()
            self._client = session.client("secretsmanager", region_name=self.region)
        return self._client

    def _call(self, action: str, method: str, **params: Any) -> Any:
        """Invoke a client method and translate botocore failures."""
        from botocore.exceptions import (
            BotoCoreError,
            ClientError,
            NoCredentialsError,
            PartialCredentialsError,
        )

        client = self._secrets_client()
        try:
            return getattr(client, method)(**params)
        except (NoCredentialsError, PartialCredentialsError) as exc:
            logger.error("AWS credentials unavailable for %s: %s", action, exc)
            raise StoreAuthError(str(exc)) from exc
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            logger.error("AWS %s failed (%s): %s", action, code, exc)
            if code in AUTH_ERROR_CODES:
                raise StoreAuthError(str(exc)) from exc
            raise StoreOperationError(str(exc)) from exc
        except BotoCoreError as exc:
            logger.error("AWS %s failed: %s", action, exc)
            raise StoreOperationError(str(exc)) from exc

    def fetch(self, secret_id: str) -> str:
        resp = self._call("fetch", "get_secret_value", SecretId=secret_id)
        value = resp.get("SecretString")
        if value is None:
            raise StoreOperationError(
                f"cannot load secret value content for {secret_id}"
            )
        return value

    def put(self, secret_id: str, payload: str) -> None:
        self._call(
            "put", "put_secret_value", SecretId=secret_id, SecretString=payload
        )
        logger.info("Secret %s updated in AWS Secrets Manager", secret_id)

    def list_secrets(self) -> list[str]:
        names: list[str] = []
        params: dict[str, Any] = {}
        while True:
            resp = self._call("list", "list_secrets", **params)
            names.extend(
                s["Name"] for s in resp.get("SecretList", []) if s.get("Name")
            )
            token = resp.get("NextToken")
            if not token:
                return names
            params["NextToken"] = token

    def available(self) -> bool:
        if self._client is not None:
            return True
        try:
            self._boto_session()
        except StoreAuthError:
            return False
        return True

    def identity(self) -> dict[str, str]:
        """Look up the account behind the profile via STS.

        Returns:
            Dict with ``account``, ``user_id`` and ``arn``.

        Raises:
            StoreAuthError: If the credentials are missing or invalid.
        """
        from botocore.exceptions import BotoCoreError, ClientError

        session = self._boto_session()
        try:
            resp = session.client("sts", region_name=self.region).get_caller_identity()
        except (BotoCoreError, ClientError) as exc:
            raise StoreAuthError(str(exc)) from exc
        return {
            "account": resp.get("Account", "Unknown"),
            "user_id": resp.get("UserId", "Unknown"),
            "arn": resp.get("Arn", "Unknown"),
        }

    def configure(self) -> None:
        """Run ``aws configure`` interactively for the tool's profile.

        Drops any cached session and client so the next call picks up
        the new credentials.

        Raises:
            StoreAuthError: If the AWS CLI is missing or fails.
        """
        cmd = ["aws", "configure", "--profile", self.profile or "default"]
        try:
            result = subprocess.run(cmd, check=False)
        except FileNotFoundError as exc:
            raise StoreAuthError(
                "The AWS CLI is not installed (needed for 'aws configure')"
            ) from exc

        if result.returncode != 0:
            raise StoreAuthError("Failed to configure AWS profile.")

        self._session = None
        self._client = None


class LocalStore(SecretStore):
    """Directory-backed store: one ``<secret-id>.json`` file per secret.

    Secret ids are percent-encoded into file names so ids containing
    ``/`` stay inside the directory.
    """

    SUFFIX = ".json"

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    @property
    def name(self) -> str:
        return "local"

    def _secret_file(self, secret_id: str) -> Path:
        return self.path / (quote(secret_id, safe="") + self.SUFFIX)

    def fetch(self, secret_id: str) -> str:
        secret_file = self._secret_file(secret_id)
        if not secret_file.exists():
            raise StoreOperationError(
                f"Secret '{secret_id}' not found in {self.path}"
            )
        try:
            return secret_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreOperationError(str(exc)) from exc

    def put(self, secret_id: str, payload: str) -> None:
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            self._secret_file(secret_id).write_text(payload, encoding="utf-8")
        except OSError as exc:
            logger.error("Local store write failed: %s", exc)
            raise StoreOperationError(str(exc)) from exc
        logger.info("Secret %s written to %s", secret_id, self.path)

    def list_secrets(self) -> list[str]:
        if not self.path.is_dir():
            return []
        return sorted(
            unquote(f.name[: -len(self.SUFFIX)])
            for f in self.path.glob(f"*{self.SUFFIX}")
        )

    def available(self) -> bool:
        return self.path.is_dir()


class MemoryStore(SecretStore):
    """In-process store backed by a dict."""

    def __init__(self, secrets: Optional[dict[str, str]] = None) -> None:
        self.secrets: dict[str, str] = dict(secrets or {})

    @property
    def name(self) -> str:
        return "memory"

    def fetch(self, secret_id: str) -> str:
        try:
            return self.secrets[secret_id]
        except KeyError:
            raise StoreOperationError(f"Secret '{secret_id}' not found") from None

    def put(self, secret_id: str, payload: str) -> None:
        self.secrets[secret_id] = payload

    def list_secrets(self) -> list[str]:
        return sorted(self.secrets)

    def available(self) -> bool:
        return True


def create_store(config: TcSecretsConfig, home: Path) -> SecretStore:
    """Factory function to create the configured store.

    Args:
        config: Tool configuration.
        home: tc-secrets home directory.

    Returns:
        Instantiated SecretStore.

    Raises:
        ValueError: If the backend type is not supported.
    """
    if config.backend == StoreBackendType.AWS:
        return AWSSecretsManagerStore(
            profile=config.aws_profile, region=config.aws_region
        )
    if config.backend == StoreBackendType.LOCAL:
        return LocalStore(config.local_path or Path(home).expanduser() / "store")
    raise ValueError(f"Unsupported backend: {config.backend}")
