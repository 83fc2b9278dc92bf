# tests/unit/config/test_settings.py
"""Tests for config/settings.py: typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from newsforge.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_step_api(self):
        s = Settings(_env_file=None)
        assert s.step_api_base_url == ""
        assert s.step_timeout_s == 300.0

    def test_default_pipeline(self):
        s = Settings(_env_file=None)
        assert s.min_aggregate_article_chars == 100
        assert s.pricing_file is None

    def test_default_notifications_disabled(self):
        s = Settings(_env_file=None)
        assert s.notifications_enabled is False
        assert s.notify_name == "User"

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_format == "json"
        assert s.pipeline_log_dir == Path("logs")
        assert s.pipeline_file_logging is True


class TestSettingsValidation:
    def test_notifications_without_app_url(self):
        with pytest.raises(ConfigurationError, match="APP_BASE_URL"):
            Settings(_env_file=None, notifications_enabled=True)

    def test_notifications_with_app_url(self):
        s = Settings(
            _env_file=None,
            notifications_enabled=True,
            app_base_url="https://app.example.com/",
        )
        assert s.app_base_url == "https://app.example.com"

    def test_non_positive_timeout(self):
        with pytest.raises(ValueError, match="step_timeout_s"):
            Settings(_env_file=None, step_timeout_s=0)

    def test_negative_min_chars(self):
        with pytest.raises(ValueError, match="min_aggregate_article_chars"):
            Settings(_env_file=None, min_aggregate_article_chars=-1)

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, log_level="LOUD")

    def test_env_variables(self, monkeypatch):
        monkeypatch.setenv("STEP_API_BASE_URL", "https://steps.example.com/api/")
        monkeypatch.setenv("MIN_AGGREGATE_ARTICLE_CHARS", "250")
        s = Settings(_env_file=None)
        assert s.step_api_base_url == "https://steps.example.com/api"
        assert s.min_aggregate_article_chars == 250


class TestLoadSettings:
    def test_with_overrides(self):
        s = load_settings(log_level="DEBUG", step_timeout_s=30)
        assert s.log_level == "DEBUG"
        assert s.step_timeout_s == 30.0
