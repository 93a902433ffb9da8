"""
Unit Tests for Configuration
============================

Tests for relay/app/config.py
"""

import pytest
from pydantic import ValidationError

from relay.app.config import Settings, validate_configuration

from conftest import TEST_API_URL, TEST_TOKEN


def test_defaults(monkeypatch):
    for name in ("TELEGRAM_TOKEN", "TELEGRAM_CHAT_ID", "TELEGRAM_API_URL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.TELEGRAM_TOKEN == ""
    assert settings.telegram_api_url_str == "https://api.telegram.org"
    assert settings.GET_UPDATES_TIMEOUT == 25
    assert settings.allowed_origins_list == ["*"]


def test_loaded_from_environment(monkeypatch):
    monkeypatch.setenv("TELEGRAM_TOKEN", " 42:env-token ")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "777")

    settings = Settings(_env_file=None)

    assert settings.TELEGRAM_TOKEN == "42:env-token"
    assert settings.TELEGRAM_CHAT_ID == "777"


def test_base_urls(mock_settings):
    assert mock_settings.api_base == f"{TEST_API_URL}/bot{TEST_TOKEN}"
    assert mock_settings.file_base == f"{TEST_API_URL}/file/bot{TEST_TOKEN}"


def test_allowed_origins_list():
    settings = Settings(_env_file=None, ALLOWED_ORIGINS="http://a.test, http://b.test,,")

    assert settings.allowed_origins_list == ["http://a.test", "http://b.test"]


def test_log_level_normalized():
    assert Settings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


def test_invalid_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, LOG_LEVEL="LOUD")


def test_redact(mock_settings):
    assert mock_settings.redact(f"url /bot{TEST_TOKEN}/x") == "url /bot<redacted>/x"
    assert Settings(_env_file=None, TELEGRAM_TOKEN="").redact("text") == "text"


def test_validate_configuration_missing_values():
    report = validate_configuration(Settings(_env_file=None, TELEGRAM_TOKEN="", TELEGRAM_CHAT_ID=""))

    assert report["valid"] is False
    assert "TELEGRAM_TOKEN is not set" in report["errors"]
    assert "TELEGRAM_CHAT_ID is not set" in report["errors"]


def test_validate_configuration_ok(mock_settings):
    report = validate_configuration(mock_settings)

    assert report["valid"] is True
    assert report["errors"] == []


def test_validate_configuration_timeout_warning(mock_settings):
    settings = mock_settings.model_copy(update={"HTTP_TIMEOUT_SECONDS": 10.0})

    report = validate_configuration(settings)

    assert any("GET_UPDATES_TIMEOUT" in warning for warning in report["warnings"])
