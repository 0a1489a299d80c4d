"""
Configuration loading for tc-secrets.

The config lives in ``<home>/config.yaml``. A missing or broken file
is never fatal: the tool falls back to defaults (AWS Secrets Manager
with the ``tc-secrets-cli-profile`` profile).
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .sync.models import TcSecretsConfig

logger = logging.getLogger("tcsecrets.config")

CONFIG_FILENAME = "config.yaml"


def config_path(home: Path) -> Path:
    """Return the config file path for a home directory."""
    return Path(home).expanduser() / CONFIG_FILENAME


def load_config(home: Path) -> TcSecretsConfig:
    """Load configuration from disk.

    Args:
        home: tc-secrets home directory.

    Returns:
        Parsed config, or defaults if the file is missing or invalid.
    """
    config_file = config_path(home)
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            return TcSecretsConfig(**data)
        except (yaml.YAMLError, OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)
    return TcSecretsConfig()


def save_config(home: Path, config: TcSecretsConfig) -> Path:
    """Persist configuration to disk.

    Args:
        home: tc-secrets home directory (created if needed).
        config: Config to write.

    Returns:
        Path of the written file.
    """
    config_file = config_path(home)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", exclude_none=True)
    config_file.write_text(
        yaml.dump(data, default_flow_style=False), encoding="utf-8"
    )
    logger.debug("Saved config to %s", config_file)
    return config_file
