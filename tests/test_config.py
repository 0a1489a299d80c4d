"""Tests for config loading and saving."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from tcsecrets.config import config_path, load_config, save_config
from tcsecrets.sync.models import StoreBackendType, TcSecretsConfig


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self, tmp_secrets_home: Path):
        config = load_config(tmp_secrets_home)
        assert config.backend == StoreBackendType.AWS
        assert config.aws_profile == "tc-secrets-cli-profile"
        assert config.backup_on_reset is True

    def test_reads_yaml(self, tmp_secrets_home: Path):
        config_path(tmp_secrets_home).write_text(
            "backend: local\nlocal_path: /srv/secrets\nbackup_on_reset: false\n"
        )
        config = load_config(tmp_secrets_home)
        assert config.backend == StoreBackendType.LOCAL
        assert config.local_path == Path("/srv/secrets")
        assert config.backup_on_reset is False

    def test_empty_file(self, tmp_secrets_home: Path):
        config_path(tmp_secrets_home).write_text("")
        assert load_config(tmp_secrets_home) == TcSecretsConfig()

    def test_broken_yaml_falls_back(self, tmp_secrets_home: Path, caplog):
        config_path(tmp_secrets_home).write_text("backend: [unclosed\n")
        with caplog.at_level(logging.WARNING, logger="tcsecrets.config"):
            config = load_config(tmp_secrets_home)
        assert config == TcSecretsConfig()
        assert "Failed to load config" in caplog.text

    def test_unknown_backend_falls_back(self, tmp_secrets_home: Path):
        config_path(tmp_secrets_home).write_text("backend: carrier-pigeon\n")
        assert load_config(tmp_secrets_home).backend == StoreBackendType.AWS


class TestSaveConfig:
    """Tests for save_config."""

    def test_save_then_load(self, tmp_secrets_home: Path):
        config = TcSecretsConfig(backend="local", aws_region="eu-central-1")
        path = save_config(tmp_secrets_home, config)
        assert path == config_path(tmp_secrets_home)
        assert load_config(tmp_secrets_home) == config

    def test_unset_values_omitted(self, tmp_secrets_home: Path):
        path = save_config(tmp_secrets_home, TcSecretsConfig())
        data = yaml.safe_load(path.read_text())
        assert data["backend"] == "aws"
        assert "aws_region" not in data
        assert "local_path" not in data

    def test_creates_home(self, tmp_path: Path):
        home = tmp_path / "new-home"
        save_config(home, TcSecretsConfig())
        assert config_path(home).exists()
