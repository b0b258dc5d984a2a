"""Tests for environment-driven settings."""

from datetime import timedelta

import pytest

from vgla_engine.config import AssessmentSettings, get_settings, validate_all_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAssessmentSettings:
    """Tests for the VGLA_ settings."""

    def test_defaults(self, monkeypatch):
        for name in ("VGLA_SNAPSHOT_MAX_AGE_DAYS", "VGLA_STORAGE_BACKEND", "VGLA_DEFAULT_USER_ID"):
            monkeypatch.delenv(name, raising=False)
        settings = AssessmentSettings(_env_file=None)
        assert settings.snapshot_max_age == timedelta(days=30)
        assert settings.storage_backend == "memory"
        assert settings.default_user_id == "local-user"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("VGLA_SNAPSHOT_MAX_AGE_DAYS", "7")
        monkeypatch.setenv("VGLA_STORAGE_BACKEND", "google_sheets")
        settings = AssessmentSettings(_env_file=None)
        assert settings.snapshot_max_age == timedelta(days=7)
        assert settings.storage_backend == "google_sheets"

    def test_unknown_backend_is_rejected(self, monkeypatch):
        monkeypatch.setenv("VGLA_STORAGE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            AssessmentSettings(_env_file=None)


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_missing_sheets_config_is_reported(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        monkeypatch.chdir("/")  # no .env here

        status = validate_all_settings()

        assert status["assessment"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
