"""
Sync data models -- configuration and results for the sync system.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class StoreBackendType(str, Enum):
    """Supported secret store backends."""

    AWS = "aws"
    LOCAL = "local"


class SyncAction(str, Enum):
    """Outcome of reconciling a local document with its remote field."""

    PULL = "pull"
    PUSH = "push"
    CONFLICT = "conflict"
    UP_TO_DATE = "up-to-date"


class TcSecretsConfig(BaseModel):
    """Tool configuration, loaded from ``<home>/config.yaml``."""

    backend: StoreBackendType = StoreBackendType.AWS

    # AWS Secrets Manager
    aws_profile: str = "tc-secrets-cli-profile"
    aws_region: Optional[str] = None

    # Local directory store
    local_path: Optional[Path] = None

    backup_on_reset: bool = True


class SyncResult(BaseModel):
    """What a sync, reset or download actually did."""

    action: SyncAction
    secret_id: str
    field_id: str
    local_version: int = 0
    remote_version: int = 0
    path: Optional[Path] = None
    backup_path: Optional[Path] = None
