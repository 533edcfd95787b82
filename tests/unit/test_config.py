"""Unit tests for configuration module."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.core.config import Settings, get_settings

REQUIRED_ENV = {
    "SUPABASE_URL": "https://test.supabase.co",
    "SUPABASE_SECRET_KEY": "test-secret",
}


class TestSettings:
    """Tests for Settings class."""

    def test_settings_loads_from_environment(self) -> None:
        """Test that Settings loads values from environment variables."""
        env_vars = {
            **REQUIRED_ENV,
            "APP_NAME": "test-app",
            "APP_ENV": "testing",
            "DEBUG": "true",
            "PORT": "9000",
            "STRIPE_CURRENCY": "eur",
            "CHECKOUT_TIMEOUT_SECONDS": "2.5",
            "CHECKOUT_RETRY_ON_TIMEOUT": "false",
            "NOTIFICATION_LIST_MAX_LIMIT": "25",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings()

            assert settings.app_name == "test-app"
            assert settings.app_env == "testing"
            assert settings.debug is True
            assert settings.port == 9000
            assert settings.stripe_currency == "eur"
            assert settings.checkout_timeout_seconds == 2.5
            assert settings.checkout_retry_on_timeout is False
            assert settings.notification_list_max_limit == 25

    def test_settings_default_values(self) -> None:
        """Test that default values are applied correctly."""
        with patch.dict(os.environ, REQUIRED_ENV, clear=True):
            settings = Settings(_env_file=None)

            assert settings.app_name == "bookswap-backend"
            assert settings.app_env == "development"
            assert settings.debug is False
            assert settings.port == 8080
            assert settings.stripe_currency == "usd"
            assert settings.checkout_timeout_seconds == 10.0
            assert settings.checkout_retry_on_timeout is True
            assert settings.notification_list_max_limit == 100

    def test_settings_cors_origins_list(self) -> None:
        """Test that CORS origins are correctly parsed into a list."""
        env_vars = {**REQUIRED_ENV, "CORS_ORIGINS": "http://localhost:3000, http://example.com ,"}

        with patch.dict(os.environ, env_vars, clear=False):
            assert Settings().cors_origins_list == ["http://localhost:3000", "http://example.com"]

    def test_checkout_redirect_urls(self) -> None:
        """Test the default checkout redirects built from FRONTEND_URL."""
        env_vars = {**REQUIRED_ENV, "FRONTEND_URL": "https://books.example.com/"}

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings()

            assert settings.default_success_url == (
                "https://books.example.com/purchases/success?session_id={CHECKOUT_SESSION_ID}"
            )
            assert settings.default_cancel_url("book-1") == "https://books.example.com/books/book-1"

    def test_stripe_test_mode(self) -> None:
        with patch.dict(os.environ, {**REQUIRED_ENV, "STRIPE_SECRET_KEY": "sk_live_abc"}, clear=False):
            assert Settings().is_stripe_test_mode is False
        with patch.dict(os.environ, {**REQUIRED_ENV, "STRIPE_SECRET_KEY": "sk_test_abc"}, clear=False):
            assert Settings().is_stripe_test_mode is True

    def test_non_positive_timeout_is_rejected(self) -> None:
        with patch.dict(os.environ, {**REQUIRED_ENV, "CHECKOUT_TIMEOUT_SECONDS": "0"}, clear=False):
            with pytest.raises(ValidationError):
                Settings()

    def test_settings_validation_error_missing_required(self) -> None:
        """Test that validation errors are raised for missing required fields."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            error_fields = [e["loc"][0] for e in exc_info.value.errors()]
            assert "supabase_url" in error_fields
            assert "supabase_secret_key" in error_fields


class TestGetSettings:
    """Tests for get_settings function."""

    def test_get_settings_returns_cached_singleton(self) -> None:
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert isinstance(settings1, Settings)
        assert settings1 is settings2

        get_settings.cache_clear()
