"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded, except the
      clearly-named development token fallback)
    - Production without CHECKOUT_TOKEN_SECRET fails validation: the process cannot start
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Dev origins appended only outside production; allowlist order preserved, de-duplicated
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from checkout_guard.core.domain_types import Environment

DEV_TOKEN_SECRET = "dev-only-insecure-fallback-token-secret"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    environment: Environment = Environment.DEVELOPMENT

    # Checkout token
    checkout_token_secret: str | None = None

    # Rate limiting
    redis_url: str | None = None
    redis_timeout_ms: int = 250
    rate_limit_sweep_interval_seconds: float = 60.0

    # Origin guard
    site_url: str | None = None
    canonical_origins: list[str] = [
        "https://dotty.no",
        "https://www.dotty.no",
        "https://dottyartwork.no",
        "https://www.dottyartwork.no",
        "https://dottyartwork.com",
        "https://www.dottyartwork.com",
    ]
    dev_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    server_api_secret: str | None = None

    # Catalog / discount store
    database_url: str = (
        "postgresql+asyncpg://shop:shop@db:5432/shop"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Managed Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    store_timeout_ms: int = 3000

    # Payment provider
    payment_api_url: str = "https://payments.invalid/api/v1"
    payment_api_key: str = "pay-placeholder"
    payment_timeout_seconds: float = 10.0
    payment_return_url: str = "https://dotty.no/api/payments/callback"

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @model_validator(mode="after")
    def require_token_secret_in_production(self):
        if self.is_production and not self.checkout_token_secret:
            raise ValueError(
                "CHECKOUT_TOKEN_SECRET is required in production. "
                "Generate a random string of 32+ characters."
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @property
    def uses_insecure_token_secret(self) -> bool:
        return not self.checkout_token_secret

    @property
    def token_secret(self) -> str:
        return self.checkout_token_secret or DEV_TOKEN_SECRET

    @property
    def allowed_origins(self) -> list[str]:
        candidates = [self.site_url, *self.canonical_origins]
        if not self.is_production:
            candidates.extend(self.dev_origins)
        return list(dict.fromkeys(o.rstrip("/") for o in candidates if o))

    @property
    def server_secrets(self) -> list[str]:
        return [self.server_api_secret] if self.server_api_secret else []


@lru_cache
def get_settings() -> Settings:
    return Settings()
