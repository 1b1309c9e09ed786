"""Tests for mode resolution and settings."""

from pathlib import Path

import pytest

from stackctl.config import DatabaseSettings, Mode, UsageError


class TestModeParse:
    @pytest.mark.parametrize("value", ["development", "dev", "DEV", " Development "])
    def test_development_spellings(self, value):
        assert Mode.parse(value) is Mode.DEVELOPMENT

    @pytest.mark.parametrize("value", ["production", "prod", "PROD"])
    def test_production_spellings(self, value):
        assert Mode.parse(value) is Mode.PRODUCTION

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(UsageError, match="staging"):
            Mode.parse("staging")

    def test_empty_mode_is_rejected(self):
        with pytest.raises(UsageError):
            Mode.parse("")

    def test_mode_passes_through(self):
        assert Mode.parse(Mode.PRODUCTION) is Mode.PRODUCTION


class TestComposeFiles:
    def test_mapping_is_total_and_distinct(self, settings):
        files = settings.compose_files()
        assert set(files) == set(Mode)
        assert len(set(files.values())) == len(Mode)

    def test_paths(self, settings):
        files = settings.compose_files()
        assert files[Mode.DEVELOPMENT] == Path("docker/compose.development.yaml")
        assert files[Mode.PRODUCTION] == Path("docker/compose.production.yaml")

    def test_env_override(self, monkeypatch):
        from stackctl.config import StackSettings

        monkeypatch.setenv("STACKCTL_PRODUCTION_COMPOSE_FILE", "deploy/prod.yaml")
        settings = StackSettings(_env_file=None)
        assert settings.compose_files()[Mode.PRODUCTION] == Path("deploy/prod.yaml")


class TestDatabaseCredentials:
    def test_returns_configured_credentials(self, database):
        assert database.credentials() == ("admin", "s3cret")

    def test_missing_password(self):
        db = DatabaseSettings(_env_file=None, user="admin", password=None)
        with pytest.raises(UsageError, match="MONGO_PASSWORD"):
            db.credentials()

    def test_missing_both(self):
        db = DatabaseSettings(_env_file=None, user=None, password=None)
        with pytest.raises(UsageError, match="MONGO_USER, MONGO_PASSWORD"):
            db.credentials()

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("MONGO_USER", "root")
        monkeypatch.setenv("MONGO_PASSWORD", "hunter2")
        db = DatabaseSettings(_env_file=None)
        assert db.credentials() == ("root", "hunter2")
