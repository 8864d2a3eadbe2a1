"""Faucet Configuration — claim policy, relay, verification and storage settings.

Invariants:
    - claim_amount and the cooldown window are fixed for the life of the
      process; no request can change what or how often a wallet is paid
    - The disbursement bound (disbursement_timeout_seconds) covers the whole
      relay call including its retries, so it must exceed a single request's
      timeout; violating that is a startup error, not a runtime surprise
    - get_settings() is cached (lru_cache): one Settings per process

Design Decisions:
    - pydantic-settings: env vars / .env, validated and typed at startup
    - Secrets default to placeholders so docker-compose and tests boot; the
      relay and callback secrets must be set in any real deployment
"""

from datetime import timedelta
from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def asyncpg_url(url: str) -> str:
    """Hosted Postgres hands out postgresql:// but the async engine needs +asyncpg."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage
    database_url: str = "postgresql+asyncpg://faucet:faucet@db:5432/faucet"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Claim policy
    claim_amount: Decimal = Field(Decimal("0.05"), gt=0)
    cooldown_hours: float = Field(24.0, gt=0)
    token_symbol: str = "MON"
    chain_id: int = 10143
    claim_conflict_retries: int = Field(1, ge=0)

    # Transfer relay
    disbursement_url: str = "http://relay:8080"
    disbursement_api_key: str = "relay-placeholder"
    disbursement_timeout_seconds: float = Field(15.0, gt=0)
    disbursement_request_timeout_seconds: float = Field(10.0, gt=0)
    disbursement_max_retries: int = Field(2, ge=0)

    # Identity-provider callback
    verification_secret: str = "verification-placeholder"
    verification_max_age_seconds: int = Field(600, gt=0)
    verification_clock_skew_seconds: int = Field(60, ge=0)

    # HTTP / logging
    cors_origins: list[str] = ["http://localhost:5173"]
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def _async_driver(cls, v):
        return asyncpg_url(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def _relay_bound_covers_one_request(self) -> "Settings":
        if self.disbursement_timeout_seconds < self.disbursement_request_timeout_seconds:
            raise ValueError(
                "disbursement_timeout_seconds must be >= "
                "disbursement_request_timeout_seconds",
            )
        return self

    @property
    def cooldown_window(self) -> timedelta:
        return timedelta(hours=self.cooldown_hours)


@lru_cache
def get_settings() -> Settings:
    return Settings()
