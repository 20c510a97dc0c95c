"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ivcrush.api import api_router
from ivcrush.config import get_settings
from ivcrush.core.logging import get_logger, setup_logging
from ivcrush.earnings.orchestrator import EarningsOrchestrator
from ivcrush.providers.factory import create_providers
from ivcrush.storage.cache import create_cache
from ivcrush.storage.redis import close_redis, init_redis

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: build providers and the orchestrator, close them on shutdown."""
    settings = get_settings()
    setup_logging(settings)

    redis = await init_redis(settings.redis_url)
    providers = create_providers(settings, redis=redis)
    orchestrator = EarningsOrchestrator.from_providers(
        providers,
        settings,
        calendar_cache=create_cache("calendar", settings.calendar_cache_ttl, redis),
    )
    app.state.providers = providers
    app.state.orchestrator = orchestrator

    if not settings.has_calendar_provider:
        logger.warning("No calendar API key set; /earnings will report source=error")
    logger.info("ivcrush ready", env=settings.env, redis=redis is not None)

    try:
        yield
    finally:
        await orchestrator.close()
        await close_redis()
        logger.info("ivcrush stopped")


app = FastAPI(
    title="ivcrush",
    description="Earnings IV-crush aggregator and options strategy engine",
    version="0.1.0",
    lifespan=lifespan,
)

# Infrastructure (no prefix, not versioned)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: always ok if the process is running."""
    return {"status": "ok"}


# Domain API
app.include_router(api_router, prefix="/api/v1")
