"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="bookswap-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_signing_key_jwk: str = Field(
        default="",
        description="Supabase signing key JWK (JSON string) for JWT token verification",
    )

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_webhook_secret: str = Field(default="", description="Stripe webhook signing secret")
    stripe_publishable_key: str = Field(default="", description="Stripe publishable key (for frontend)")
    stripe_currency: str = Field(default="usd", description="ISO currency code used for checkout sessions")

    # Checkout
    checkout_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for a single checkout session creation call",
    )
    checkout_retry_on_timeout: bool = Field(
        default=True,
        description="Retry checkout session creation once (same idempotency key) after a timeout",
    )

    # Notifications
    notification_list_max_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum number of notifications returned by a single list call",
    )

    # Frontend
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend application URL used for checkout redirects",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_stripe_test_mode(self) -> bool:
        """Check if using Stripe test keys."""
        return self.stripe_secret_key.startswith("sk_test_")

    @property
    def default_success_url(self) -> str:
        """Checkout success redirect; Stripe substitutes the session id placeholder."""
        return f"{self.frontend_url.rstrip('/')}/purchases/success?session_id={{CHECKOUT_SESSION_ID}}"

    def default_cancel_url(self, book_id: str) -> str:
        """Checkout cancel redirect back to the book page."""
        return f"{self.frontend_url.rstrip('/')}/books/{book_id}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
