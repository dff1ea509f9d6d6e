"""Tests for core/config.py -- Settings validation and derived cookie policy.

Settings are built with explicit keyword arguments, which take precedence
over the DEBUG/BCRYPT_ROUNDS values conftest puts in the environment.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings

_KEY = "k" * 32


def test_debug_generates_secret_key():
    s = Settings(debug=True, secret_key="")
    assert len(s.secret_key) >= 32


def test_missing_secret_key_outside_debug_is_fatal():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(debug=True, secret_key="too-short")


def test_unknown_environment_rejected():
    with pytest.raises(ValidationError, match="ENVIRONMENT"):
        Settings(secret_key=_KEY, environment="staging")


def test_bcrypt_rounds_range():
    with pytest.raises(ValidationError, match="BCRYPT_ROUNDS"):
        Settings(secret_key=_KEY, bcrypt_rounds=3)


def test_development_cookie_policy():
    s = Settings(secret_key=_KEY, environment="Development")
    assert s.environment == "development"
    assert s.is_production is False
    assert s.cookie_samesite == "strict"


def test_production_cookie_policy():
    s = Settings(secret_key=_KEY, environment="production")
    assert s.is_production is True
    assert s.cookie_samesite == "none"


def test_defaults():
    s = Settings(secret_key=_KEY, bcrypt_rounds=10)
    assert s.token_expire_seconds == 7 * 24 * 60 * 60
    assert s.verify_otp_ttl_seconds == 24 * 60 * 60
    assert s.reset_otp_ttl_seconds == 15 * 60
    assert s.client_origin == "http://localhost:5173"


def test_environment_variables_are_read(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", _KEY)
    monkeypatch.setenv("CLIENT_ORIGIN", "https://app.example.com")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    s = Settings()
    assert s.secret_key == _KEY
    assert s.client_origin == "https://app.example.com"
    assert s.smtp_host == "smtp.example.com"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
