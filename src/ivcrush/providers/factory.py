"""Provider factory: build ordered provider lists from settings.

A provider without credentials is simply left out of its list, so the
orchestrator never sees a client it cannot call.

Fallback order per capability:
    calendar:      Finnhub -> FMP
    quote:         Yahoo (free) or Finnhub when Yahoo is disabled
    profile:       Finnhub, fills market cap and sector missing from the Yahoo chart
    EPS surprises: Finnhub
    history:       ORATS -> Yahoo
    implied move:  ORATS -> Yahoo -> Alpha Vantage

Usage:
    providers = create_providers(get_settings(), redis=get_redis())
    orchestrator = EarningsOrchestrator.from_providers(providers, settings)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ivcrush.config import Settings, secret_value
from ivcrush.core.logging import get_logger
from ivcrush.providers.alpha_vantage import AlphaVantageClient
from ivcrush.providers.base import (
    CalendarProvider,
    HistoricalMovesProvider,
    ImpliedMoveProvider,
    ProfileProvider,
    QuoteProvider,
)
from ivcrush.providers.finnhub import FinnhubClient
from ivcrush.providers.fmp import FMPClient
from ivcrush.providers.orats import OratsClient
from ivcrush.providers.yahoo import (
    YahooEarningsClient,
    YahooOptionsClient,
    YahooQuoteClient,
    YahooSession,
)
from ivcrush.storage.cache import create_cache

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = get_logger(__name__)


@dataclass
class ProviderSet:
    """Ordered providers per capability."""

    calendar: list[CalendarProvider] = field(default_factory=list)
    quote: QuoteProvider | None = None
    profile: ProfileProvider | None = None
    surprises: HistoricalMovesProvider | None = None
    history: list[HistoricalMovesProvider] = field(default_factory=list)
    implied_move: list[ImpliedMoveProvider] = field(default_factory=list)

    @property
    def names(self) -> dict[str, list[str]]:
        """Configured provider names per capability (for /system/config)."""
        return {
            "calendar": [p.name for p in self.calendar],
            "quote": [self.quote.name] if self.quote else [],
            "profile": [self.profile.name] if self.profile else [],
            "surprises": [self.surprises.name] if self.surprises else [],
            "history": [p.name for p in self.history],
            "implied_move": [p.name for p in self.implied_move],
        }


def create_providers(settings: Settings, redis: Redis | None = None) -> ProviderSet:
    """Create every provider the settings have credentials for."""
    providers = ProviderSet()
    history_ttl = settings.history_cache_ttl

    finnhub: FinnhubClient | None = None
    if key := secret_value(settings.finnhub_api_key):
        finnhub = FinnhubClient(
            api_key=key,
            history_cache=create_cache("finnhub_surprises", history_ttl, redis),
            quote_cache=create_cache("finnhub_quotes", settings.calendar_cache_ttl, redis),
            timeout=settings.finnhub_timeout,
        )
        providers.calendar.append(finnhub)
        providers.surprises = finnhub

    if key := secret_value(settings.fmp_api_key):
        providers.calendar.append(FMPClient(api_key=key, timeout=settings.fmp_timeout))

    if token := secret_value(settings.orats_api_token):
        orats = OratsClient(
            api_token=token,
            cache=create_cache("orats", history_ttl, redis),
            history_limit=settings.history_limit,
            timeout=settings.orats_timeout,
        )
        providers.history.append(orats)
        providers.implied_move.append(orats)

    if settings.yahoo_enabled:
        session = YahooSession(ttl=settings.yahoo_session_ttl, timeout=settings.yahoo_timeout)
        providers.quote = YahooQuoteClient(session)
        providers.history.append(
            YahooEarningsClient(session, cache=create_cache("yahoo_history", history_ttl, redis))
        )
        providers.implied_move.append(YahooOptionsClient(session))
        providers.profile = finnhub
    elif finnhub is not None:
        providers.quote = finnhub

    if key := secret_value(settings.alpha_vantage_api_key):
        providers.implied_move.append(
            AlphaVantageClient(
                api_key=key,
                cache=create_cache("alpha_vantage", history_ttl, redis),
                timeout=settings.alpha_vantage_timeout,
            )
        )

    logger.info("Providers configured", **providers.names)
    return providers
