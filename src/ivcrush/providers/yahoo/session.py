"""Shared Yahoo Finance cookie/crumb session.

Yahoo requires cookie + crumb auth on its finance endpoints:

1. GET fc.yahoo.com -> Set-Cookie (consent cookie)
2. GET query2.finance.yahoo.com/v1/test/getcrumb with that cookie -> crumb
3. Send the cookie header and ``crumb`` query param on every content call

The session is cached for ``ttl`` seconds and dropped on any 401/403 so the
next call rebuilds it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ivcrush.core.constants import (
    SESSION_PROBE_TIMEOUT_SECONDS,
    YAHOO_COOKIE_URL,
    YAHOO_CRUMB_URL,
    YAHOO_SESSION_TTL_SECONDS,
    YAHOO_USER_AGENT,
)
from ivcrush.core.exceptions import ProviderUnavailable
from ivcrush.core.logging import get_logger
from ivcrush.providers.base import check_response, parse_json

logger = get_logger(__name__)

PROVIDER = "yahoo"


@dataclass(frozen=True)
class YahooCredentials:
    cookie: str
    crumb: str
    fetched_at: float


class YahooSession:
    """Cookie/crumb session shared by the Yahoo clients.

    Owns the single ``httpx.AsyncClient`` used for every Yahoo request.
    """

    def __init__(
        self,
        ttl: float = YAHOO_SESSION_TTL_SECONDS,
        timeout: float = 15.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._timeout = timeout
        self._clock = clock
        self._credentials: YahooCredentials | None = None
        self._lock = asyncio.Lock()
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": YAHOO_USER_AGENT},
            )
        return self._http_client

    def _is_fresh(self) -> bool:
        return (
            self._credentials is not None
            and self._clock() - self._credentials.fetched_at < self._ttl
        )

    async def get(self) -> YahooCredentials | None:
        """Return a valid session, building one if needed. None if Yahoo refuses."""
        if self._is_fresh():
            return self._credentials

        async with self._lock:
            # Another task may have rebuilt it while we waited
            if self._is_fresh():
                return self._credentials

            cookie = await self._fetch_cookie()
            if not cookie:
                logger.warning("Could not obtain Yahoo cookie")
                return None

            crumb = await self._fetch_crumb(cookie)
            if not crumb:
                logger.warning("Could not obtain Yahoo crumb")
                return None

            self._credentials = YahooCredentials(
                cookie=cookie, crumb=crumb, fetched_at=self._clock()
            )
            logger.debug("Yahoo session established")
            return self._credentials

    def invalidate(self) -> None:
        """Drop the cached session (called on 401/403)."""
        self._credentials = None

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a Yahoo endpoint with cookie + crumb attached.

        Raises:
            ProviderUnavailable: If no session can be established or the call fails.
            ProviderAuthError: On 401/403 (the session is invalidated first).
        """
        credentials = await self.get()
        if credentials is None:
            raise ProviderUnavailable(PROVIDER, "session unavailable")

        try:
            response = await self._get_http_client().get(
                url,
                params={**(params or {}), "crumb": credentials.crumb},
                headers={"Cookie": credentials.cookie, "Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(PROVIDER, "timeout") from e
        except httpx.TransportError as e:
            raise ProviderUnavailable(PROVIDER, f"transport error: {e}") from e

        if response.status_code in (401, 403):
            self.invalidate()
        check_response(PROVIDER, response)
        return parse_json(PROVIDER, response)

    async def _fetch_cookie(self) -> str | None:
        try:
            response = await self._get_http_client().get(
                YAHOO_COOKIE_URL, timeout=SESSION_PROBE_TIMEOUT_SECONDS
            )
        except httpx.HTTPError as e:
            logger.debug("Yahoo cookie request failed", error=str(e))
            return None

        # fc.yahoo.com usually answers 404 but still sets the cookie
        cookies = response.headers.get_list("set-cookie")
        if not cookies:
            return None
        return "; ".join(c.split(";")[0] for c in cookies)

    async def _fetch_crumb(self, cookie: str) -> str | None:
        try:
            response = await self._get_http_client().get(
                YAHOO_CRUMB_URL,
                headers={"Cookie": cookie},
                timeout=SESSION_PROBE_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as e:
            logger.debug("Yahoo crumb request failed", error=str(e))
            return None

        if response.status_code != 200:
            return None
        return response.text.strip() or None

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("YahooSession closed")
