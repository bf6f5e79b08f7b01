"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set STRIPE_SECRET_KEY and PRICE_GATEWAY=stripe.

    Environment Variables:
        DATABASE_URL: SQLAlchemy connection string (SQLite or PostgreSQL)
        STRIPE_SECRET_KEY: Stripe API secret key
        STRIPE_TIMEOUT_SECONDS: Per-request timeout for Stripe calls
        STRIPE_MAX_NETWORK_RETRIES: Retries performed by the Stripe SDK
        PRICE_GATEWAY: Remote price backend ("stripe" or "memory")
        DEFAULT_CURRENCY: Currency used when a tier omits one
        MAX_TIERS_PER_ITEM: Upper bound on tiers in one replace request
        REPLACE_LOCK_TIMEOUT_SECONDS: Wait for a concurrent replace on the same item
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./data/lts.sqlite"

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_TIMEOUT_SECONDS: int = 20
    STRIPE_MAX_NETWORK_RETRIES: int = 2
    PRICE_GATEWAY: str = "memory"

    # Pricing
    DEFAULT_CURRENCY: str = "usd"
    MAX_TIERS_PER_ITEM: int = 50
    REPLACE_LOCK_TIMEOUT_SECONDS: float = 30.0

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
