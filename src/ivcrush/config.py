"""Application configuration via pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ivcrush.core.constants import (
    CALENDAR_CACHE_TTL_SECONDS,
    HISTORY_CACHE_TTL_SECONDS,
    YAHOO_SESSION_TTL_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="IVCRUSH_ENV"
    )
    debug: bool = Field(default=False, alias="IVCRUSH_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="IVCRUSH_LOG_LEVEL"
    )

    # Optional shared cache backend. In-process memory caches are used when unset.
    redis_url: str | None = Field(default=None, alias="IVCRUSH_REDIS_URL")

    # Earnings calendar (primary, fallback)
    finnhub_api_key: SecretStr | None = Field(
        default=None,
        description="Finnhub API key: earnings calendar, EPS surprises, quotes",
    )
    fmp_api_key: SecretStr | None = Field(
        default=None,
        description="Financial Modeling Prep API key: fallback earnings calendar",
    )

    # Historical moves + implied move (primary), implied move (fallback)
    orats_api_token: SecretStr | None = Field(
        default=None,
        description="ORATS token: actual earnings moves and implied earnings move",
    )
    alpha_vantage_api_key: SecretStr | None = Field(
        default=None,
        description="Alpha Vantage key: options chain for implied move fallback",
    )

    # Yahoo Finance needs no key (cookie/crumb session), but can be switched off
    yahoo_enabled: bool = Field(default=True)

    # Cache TTLs (seconds)
    calendar_cache_ttl: int = Field(default=CALENDAR_CACHE_TTL_SECONDS)
    history_cache_ttl: int = Field(default=HISTORY_CACHE_TTL_SECONDS)
    yahoo_session_ttl: int = Field(default=YAHOO_SESSION_TTL_SECONDS)

    # Enrichment pacing. Each ticker costs ~3 Finnhub calls (quote, profile,
    # surprises); 5 tickers per 1.2s stays under 60 calls/minute.
    enrich_batch_size: int = Field(default=5, ge=1)
    enrich_batch_delay: float = Field(default=1.2, ge=0.0)

    # Filtering / derivation
    min_price: float = Field(default=5.0, description="Drop penny stocks below this price")
    weekly_options_min_market_cap: float = Field(
        default=10_000_000_000.0,
        description="Market cap at or above which weekly options are assumed listed",
    )
    estimate_implied_move: bool = Field(
        default=True,
        description="Estimate implied move from recent history when no options data exists",
    )
    history_limit: int = Field(default=20, ge=1, le=40)

    # HTTP timeouts (seconds)
    finnhub_timeout: float = Field(default=10.0)
    fmp_timeout: float = Field(default=10.0)
    yahoo_timeout: float = Field(default=15.0)
    orats_timeout: float = Field(default=15.0)
    alpha_vantage_timeout: float = Field(default=20.0)

    @field_validator(
        "finnhub_api_key",
        "fmp_api_key",
        "orats_api_token",
        "alpha_vantage_api_key",
        mode="before",
    )
    @classmethod
    def blank_secret_to_none(cls, v: str | SecretStr | None) -> str | SecretStr | None:
        """Treat empty env vars (FINNHUB_API_KEY=) as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def has_calendar_provider(self) -> bool:
        return bool(self.finnhub_api_key or self.fmp_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def secret_value(secret: SecretStr | None) -> str | None:
    """Unwrap an optional secret."""
    return secret.get_secret_value() if secret else None
