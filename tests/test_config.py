"""
tests/test_config.py -- Unit tests for core/config.py Settings.

Settings are built with explicit keyword arguments so the DEBUG=true default
that conftest.py places in the environment does not mask the policy under test.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import DEFAULT_ADMIN_PASSWORD, Settings

GOOD_SECRET = "x" * 32


class TestSecretKeyPolicy:
    def test_production_without_secret_refuses_to_start(self) -> None:
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            Settings(debug=False, secret_key="")

    def test_debug_without_secret_generates_one(self) -> None:
        settings = Settings(debug=True, secret_key="")
        assert len(settings.secret_key) >= 32

    def test_generated_secrets_differ(self) -> None:
        assert Settings(debug=True, secret_key="").secret_key != Settings(debug=True, secret_key="").secret_key

    def test_short_secret_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least 32"):
            Settings(debug=True, secret_key="too-short")

    def test_explicit_secret_kept(self) -> None:
        assert Settings(debug=False, secret_key=GOOD_SECRET).secret_key == GOOD_SECRET


class TestDefaults:
    def test_defaults(self) -> None:
        settings = Settings(secret_key=GOOD_SECRET)
        assert settings.port == 5000
        assert settings.bcrypt_rounds == 10
        assert settings.default_admin_username == "admin"
        assert settings.default_admin_password == DEFAULT_ADMIN_PASSWORD == "adminpass"
        assert settings.max_body_bytes == 10 * 1024 * 1024
        assert settings.database_url.startswith("sqlite:///")

    def test_env_vars_override(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("BCRYPT_ROUNDS", "6")
        settings = Settings(secret_key=GOOD_SECRET)
        assert settings.port == 8080
        assert settings.bcrypt_rounds == 6


class TestCorsOrigins:
    def test_wildcard(self) -> None:
        assert Settings(secret_key=GOOD_SECRET).cors_origin_list == ["*"]

    def test_comma_separated_list_is_trimmed(self) -> None:
        settings = Settings(secret_key=GOOD_SECRET, cors_origins=" https://a.example , https://b.example,, ")
        assert settings.cors_origin_list == ["https://a.example", "https://b.example"]
