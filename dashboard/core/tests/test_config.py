"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from dashboard.core.config import Settings, get_settings


def test_settings_has_defaults():
    """Settings should have sensible defaults."""
    settings = Settings()

    assert settings.app_name == "ChatAnalyticsDashboard"
    assert settings.app_env == "development"
    assert settings.debug is False
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.db_table_prefix == "agent-frontend_"


def test_settings_analytics_thresholds_default():
    """The free tier cap is 5 messages and heavy users send more than 10."""
    settings = Settings()

    assert settings.analytics_daily_message_limit == 5
    assert settings.analytics_heavy_user_threshold == 10


def test_settings_rejects_non_positive_threshold():
    """Thresholds below 1 make no sense and are rejected."""
    with pytest.raises(ValidationError):
        Settings(analytics_daily_message_limit=0)


def test_settings_is_development_property():
    """is_development should return True for development env."""
    settings = Settings(app_env="development")
    assert settings.is_development is True
    assert settings.is_production is False


def test_settings_is_production_property():
    """is_production should return True for production env."""
    settings = Settings(app_env="production")
    assert settings.is_development is False
    assert settings.is_production is True


def test_get_settings_returns_singleton():
    """get_settings should return cached singleton."""
    assert get_settings() is get_settings()


def test_settings_from_environment(monkeypatch):
    """Settings should load from environment variables."""
    monkeypatch.setenv("APP_NAME", "TestApp")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("ANALYTICS_DAILY_MESSAGE_LIMIT", "8")

    settings = Settings()

    assert settings.app_name == "TestApp"
    assert settings.debug is True
    assert settings.analytics_daily_message_limit == 8
