"""Earnings orchestrator: calendar fallback, per-ticker enrichment, caching.

Flow for one date:
    calendar cache -> Finnhub -> FMP -> "none"
    timing filter -> batched enrichment -> penny-stock filter -> cache

Enrichment per ticker:
    quote + EPS surprises (concurrently), profile fill-in when the quote has no market cap
    -> actual-move history (first provider with data wins)
    -> implied move (first provider with data wins, else estimated from history)
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import date, datetime

from ivcrush.config import Settings
from ivcrush.core.calendar import current_trading_day, day_name, market_today, next_trading_day
from ivcrush.core.constants import ESTIMATE_LOOKBACK_QUARTERS
from ivcrush.core.exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderMalformed,
    ProviderRateLimited,
)
from ivcrush.core.logging import get_logger
from ivcrush.earnings.models import (
    EarningsEntry,
    EarningsResult,
    EnrichedStock,
    HistoricalMove,
    HistorySource,
    ImpliedMove,
    Quote,
    Timing,
    TodaysPlays,
)
from ivcrush.providers.base import (
    CalendarProvider,
    HistoricalMovesProvider,
    ImpliedMoveProvider,
    ProfileProvider,
    QuoteProvider,
)
from ivcrush.providers.factory import ProviderSet
from ivcrush.storage.cache import Cache, MemoryCache

logger = get_logger(__name__)

NOT_CONFIGURED = "No API keys configured"

# Parsing code raises these on payloads of an unexpected shape
PROVIDER_FAILURES = (ProviderError, ValueError, TypeError, KeyError, IndexError, AttributeError)


def as_provider_error(error: Exception, provider: str) -> ProviderError:
    """Treat anything a provider raises that is not a ProviderError as a malformed response."""
    if isinstance(error, ProviderError):
        return error
    return ProviderMalformed(provider, f"unparseable response: {type(error).__name__}: {error}")


class EarningsOrchestrator:
    """Resolves earnings for a date across unreliable providers.

    Provider failures never escape: each call is caught at this boundary,
    logged, and the next provider in the list is tried. Only a missing
    calendar configuration is reported to the caller, as the
    ``source="error"`` sentinel result.
    """

    def __init__(
        self,
        calendar_providers: Sequence[CalendarProvider],
        quote_provider: QuoteProvider | None,
        surprise_provider: HistoricalMovesProvider | None,
        history_providers: Sequence[HistoricalMovesProvider],
        implied_move_providers: Sequence[ImpliedMoveProvider],
        calendar_cache: Cache,
        settings: Settings,
        profile_provider: ProfileProvider | None = None,
    ) -> None:
        self._calendar_providers = list(calendar_providers)
        self._quote_provider = quote_provider
        self._profile_provider = profile_provider
        self._surprise_provider = surprise_provider
        self._history_providers = list(history_providers)
        self._implied_move_providers = list(implied_move_providers)
        self._calendar_cache = calendar_cache
        self._settings = settings

    @classmethod
    def from_providers(
        cls,
        providers: ProviderSet,
        settings: Settings,
        calendar_cache: Cache | None = None,
    ) -> EarningsOrchestrator:
        return cls(
            calendar_providers=providers.calendar,
            quote_provider=providers.quote,
            profile_provider=providers.profile,
            surprise_provider=providers.surprises,
            history_providers=providers.history,
            implied_move_providers=providers.implied_move,
            calendar_cache=calendar_cache
            or MemoryCache("calendar", settings.calendar_cache_ttl),
            settings=settings,
        )

    # ─────────────────────────────────────────────────────────────
    # Calendar
    # ─────────────────────────────────────────────────────────────

    async def resolve_earnings(self, day: date, timing: Timing | None = None) -> EarningsResult:
        """Get enriched earnings for one date, optionally filtered by timing."""
        cache_key = f"cal:{day.isoformat()}:{day.isoformat()}:{timing or 'all'}"
        cached = await self._calendar_cache.get(cache_key)
        if cached is not None:
            logger.debug("Calendar cache hit", date=day.isoformat(), timing=timing or "all")
            return EarningsResult.model_validate(cached)

        if not self._calendar_providers:
            logger.warning("No calendar provider configured")
            return EarningsResult(
                date=day, timing=timing or "all", source="error", error=NOT_CONFIGURED
            )

        entries, source = await self._fetch_calendar(day)

        if timing is not None:
            entries = [e for e in entries if e.timing == timing]

        enriched = await self._enrich_all(entries)
        earnings = [s for s in enriched if s.price >= self._settings.min_price]

        result = EarningsResult(
            date=day,
            timing=timing or "all",
            source=source,
            count=len(earnings),
            earnings=earnings,
        )
        await self._calendar_cache.set(cache_key, result.model_dump(mode="json"))
        logger.info(
            "Resolved earnings",
            date=day.isoformat(),
            timing=timing or "all",
            source=source,
            count=len(earnings),
            dropped=len(enriched) - len(earnings),
        )
        return result

    async def _fetch_calendar(self, day: date) -> tuple[list[EarningsEntry], str]:
        """First non-empty calendar wins; ``("none")`` when every provider fails."""
        for provider in self._calendar_providers:
            try:
                entries = await provider.fetch_calendar(day, day)
            except PROVIDER_FAILURES as e:
                _log_provider_error(e, provider.name, capability="calendar")
                continue

            if entries:
                logger.debug("Calendar fetched", provider=provider.name, count=len(entries))
                return _dedupe(entries), provider.name
            logger.debug("Calendar empty", provider=provider.name, date=day.isoformat())

        return [], "none"

    async def find_stock(self, ticker: str, day: date) -> EnrichedStock | None:
        """The enriched stock for ``ticker`` if it reports on ``day``."""
        symbol = ticker.strip().upper()
        result = await self.resolve_earnings(day)
        return next((s for s in result.earnings if s.ticker.upper() == symbol), None)

    async def resolve_todays_plays(self, now: datetime | None = None) -> TodaysPlays:
        """Tonight's AMC reporters and the next trading day's BMO reporters.

        On weekends and holidays "tonight" rolls back to the last trading day,
        so Saturday shows Friday AMC and Monday BMO.
        """
        amc_day = current_trading_day(market_today(now))
        bmo_day = next_trading_day(amc_day)
        logger.debug("Today's plays", amc=amc_day.isoformat(), bmo=bmo_day.isoformat())

        amc, bmo = await asyncio.gather(
            self.resolve_earnings(amc_day, "AMC"),
            self.resolve_earnings(bmo_day, "BMO"),
        )
        return TodaysPlays(
            today=amc_day,
            next_trading_day=bmo_day,
            amc_earnings=amc.earnings,
            bmo_earnings=bmo.earnings,
            sources={"amc": amc.source, "bmo": bmo.source},
            amc_label=f"{day_name(amc_day)} Evening (AMC)",
            bmo_label=f"{day_name(bmo_day)} Morning (BMO)",
        )

    # ─────────────────────────────────────────────────────────────
    # Enrichment
    # ─────────────────────────────────────────────────────────────

    async def _enrich_all(self, entries: list[EarningsEntry]) -> list[EnrichedStock]:
        """Enrich in fixed-size batches, pausing between batches for rate limits."""
        size = self._settings.enrich_batch_size
        enriched: list[EnrichedStock] = []

        for start in range(0, len(entries), size):
            batch = entries[start : start + size]
            results = await asyncio.gather(
                *(self.enrich(entry) for entry in batch), return_exceptions=True
            )
            for entry, result in zip(batch, results, strict=True):
                if isinstance(result, EnrichedStock):
                    enriched.append(result)
                elif isinstance(result, Exception):
                    logger.warning(
                        "Enrichment failed, dropping ticker",
                        ticker=entry.ticker,
                        error=str(result),
                        error_type=type(result).__name__,
                    )
                else:
                    # CancelledError and other BaseExceptions are not ours to keep
                    raise result

            if start + size < len(entries) and self._settings.enrich_batch_delay > 0:
                await asyncio.sleep(self._settings.enrich_batch_delay)

        return enriched

    async def enrich(self, entry: EarningsEntry) -> EnrichedStock:
        """Join one calendar entry with quote, history and implied move."""
        ticker = entry.ticker
        quote, surprises = await asyncio.gather(
            self._fetch_quote(ticker),
            self._fetch_surprises(ticker),
        )

        moves, history_source = await self._fetch_history(ticker)
        if not moves and surprises:
            moves, history_source = surprises, "eps_surprise"
        moves = moves[: self._settings.history_limit]

        implied = await self._fetch_implied_move(ticker, quote.price) if quote.price > 0 else None
        implied_move, iv, iv_source = 0.0, 0.0, "none"
        if implied is not None:
            implied_move, iv, iv_source = implied.implied_move, implied.iv, implied.source
        elif moves and self._settings.estimate_implied_move:
            implied_move, iv_source = estimate_implied_move(moves), "estimated"

        market_cap = quote.market_cap
        return EnrichedStock(
            ticker=ticker,
            company=quote.name or ticker,
            price=quote.price,
            market_cap=format_market_cap(market_cap),
            market_cap_value=market_cap,
            sector=quote.sector,
            date=entry.date,
            timing=entry.timing,
            implied_move=implied_move,
            iv=iv,
            iv_source=iv_source,
            historical_moves=moves,
            history_source=history_source,
            eps_estimate=entry.eps_estimate,
            eps_prior=entry.eps_prior,
            revenue_estimate=format_revenue(entry.revenue_estimate),
            revenue_actual=format_revenue(entry.revenue_actual),
            quarter=entry.quarter,
            year=entry.year,
            has_weekly_options=bool(
                market_cap and market_cap >= self._settings.weekly_options_min_market_cap
            ),
        )

    async def _fetch_quote(self, ticker: str) -> Quote:
        """Quote, or a zero-price placeholder (later dropped by the price filter).

        A quote without a market cap (the Yahoo chart carries none) gets market
        cap and sector from the profile provider, for stocks that pass the
        price filter.
        """
        placeholder = Quote(name=ticker)
        if self._quote_provider is None:
            return placeholder
        try:
            quote = await self._quote_provider.fetch_quote(ticker)
        except PROVIDER_FAILURES as e:
            _log_provider_error(e, self._quote_provider.name, capability="quote", ticker=ticker)
            return placeholder
        if quote is None:
            return placeholder
        if quote.market_cap is None and quote.price >= self._settings.min_price:
            quote = await self._fill_profile(ticker, quote)
        return quote

    async def _fill_profile(self, ticker: str, quote: Quote) -> Quote:
        if self._profile_provider is None:
            return quote
        try:
            profile = await self._profile_provider.fetch_profile(ticker)
        except PROVIDER_FAILURES as e:
            _log_provider_error(e, self._profile_provider.name, "profile", ticker=ticker)
            return quote
        if profile is None:
            return quote
        return quote.model_copy(
            update={"market_cap": profile.market_cap, "sector": quote.sector or profile.sector}
        )

    async def _fetch_surprises(self, ticker: str) -> list[HistoricalMove]:
        if self._surprise_provider is None:
            return []
        try:
            return await self._surprise_provider.fetch_historical_moves(ticker)
        except PROVIDER_FAILURES as e:
            _log_provider_error(e, self._surprise_provider.name, "surprises", ticker=ticker)
            return []

    async def _fetch_history(self, ticker: str) -> tuple[list[HistoricalMove], HistorySource]:
        for provider in self._history_providers:
            try:
                moves = await provider.fetch_historical_moves(ticker)
            except PROVIDER_FAILURES as e:
                _log_provider_error(e, provider.name, capability="history", ticker=ticker)
                continue
            if moves:
                return moves, provider.name  # type: ignore[return-value]
        return [], "none"

    async def _fetch_implied_move(self, ticker: str, price: float) -> ImpliedMove | None:
        for provider in self._implied_move_providers:
            try:
                implied = await provider.fetch_implied_move(ticker, price)
            except PROVIDER_FAILURES as e:
                _log_provider_error(e, provider.name, "implied_move", ticker=ticker)
                continue
            if implied is not None and implied.implied_move > 0:
                return implied
        return None

    async def close(self) -> None:
        """Close every provider once (one client can serve several capabilities)."""
        seen: set[int] = set()
        providers = [
            *self._calendar_providers,
            self._quote_provider,
            self._profile_provider,
            self._surprise_provider,
            *self._history_providers,
            *self._implied_move_providers,
        ]
        for provider in providers:
            if provider is None or id(provider) in seen:
                continue
            seen.add(id(provider))
            await provider.close()


# =============================================================================
# Helpers
# =============================================================================


def _log_provider_error(
    error: Exception, provider: str, capability: str, ticker: str | None = None
) -> None:
    e = as_provider_error(error, provider)
    context = {
        "provider": e.provider,
        "capability": capability,
        "status_code": e.status_code,
        "error_type": e.error_type,
        "error": str(e),
    }
    if ticker:
        context["ticker"] = ticker

    if isinstance(e, ProviderAuthError):
        logger.error("Provider rejected credentials", **context)
    elif isinstance(e, ProviderRateLimited):
        logger.warning("Provider rate limited", **context)
    elif isinstance(e, ProviderMalformed):
        logger.warning("Provider returned malformed data", **context)
    else:
        logger.warning("Provider unavailable", **context)


def _dedupe(entries: list[EarningsEntry]) -> list[EarningsEntry]:
    """Keep the first row per (ticker, date)."""
    seen: set[tuple[str, date]] = set()
    unique = []
    for entry in entries:
        key = (entry.ticker, entry.date)
        if key not in seen:
            seen.add(key)
            unique.append(entry)
    return unique


def estimate_implied_move(moves: list[HistoricalMove]) -> float:
    """Average of the most recent absolute moves, as a stand-in for the straddle."""
    recent = moves[:ESTIMATE_LOOKBACK_QUARTERS]
    return round(sum(m.actual for m in recent) / len(recent), 1)


def format_market_cap(value: float | None) -> str:
    """1.5e12 -> "1.50T", 7.4e11 -> "740.0B", 3.2e8 -> "320M"."""
    if not value:
        return ""
    if value >= 1e12:
        return f"{value / 1e12:.2f}T"
    if value >= 1e9:
        return f"{value / 1e9:.1f}B"
    if value >= 1e6:
        return f"{value / 1e6:.0f}M"
    return f"{value:.0f}"


def format_revenue(value: float | None) -> str | None:
    """2.45e9 -> "2.5B", 3.2e8 -> "320M"; None/0 stays None."""
    if not value:
        return None
    if value >= 1e9:
        return f"{value / 1e9:.1f}B"
    if value >= 1e6:
        return f"{value / 1e6:.0f}M"
    return f"{value:.0f}"
