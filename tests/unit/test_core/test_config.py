#!/usr/bin/env python3
"""Tests for environment-based configuration."""

import pytest

from dindin.core.config import BACKUP_VERSION, Config, Environment, get_config, reload_config


class TestConfigFromEnvironment:
    """Test loading configuration from environment variables."""

    def test_test_environment_defaults(self, tmp_path):
        config = Config.from_environment()

        assert config.environment == Environment.TEST
        assert config.data_dir == tmp_path / "data"
        assert config.data_dir.exists()
        assert config.store_file == config.data_dir / "store.json"
        assert config.backup.version == BACKUP_VERSION
        assert config.imports.max_installments == 48
        assert config.fuzzy.similarity_threshold == 0.80
        assert config.validate() == []

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DINDIN_STORE_FILE", str(tmp_path / "custom.json"))
        monkeypatch.setenv("DINDIN_OWNER_ID", "owner-1")
        monkeypatch.setenv("DINDIN_FUZZY_DATE_WINDOW_DAYS", "5")
        monkeypatch.setenv("DINDIN_BACKUP_FETCH_WORKERS", "2")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Config.from_environment()

        assert config.store_file == tmp_path / "custom.json"
        assert config.owner_id == "owner-1"
        assert config.fuzzy.date_window_days == 5
        assert config.backup.fetch_workers == 2
        assert config.log_level == "DEBUG"

    def test_validate_reports_problems(self, monkeypatch):
        monkeypatch.setenv("DINDIN_MAX_INSTALLMENTS", "60")
        monkeypatch.setenv("DINDIN_FUZZY_SIMILARITY", "1.5")

        errors = Config.from_environment().validate()

        assert any("installments" in e for e in errors)
        assert any("similarity" in e for e in errors)

    def test_invalid_config_rejected_by_get_config(self, monkeypatch):
        monkeypatch.setenv("DINDIN_BACKUP_FETCH_WORKERS", "0")
        with pytest.raises(ValueError, match="Configuration validation failed"):
            reload_config()

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_to_dict_redacts_sensitive_fields(self, monkeypatch):
        monkeypatch.setenv("DINDIN_OWNER_EMAIL", "ana@example.com")
        config = Config.from_environment()

        assert config.to_dict()["owner_email"] == "***REDACTED***"
        assert config.to_dict(include_sensitive=True)["owner_email"] == "ana@example.com"
        assert config.to_dict()["environment"] == "test"
