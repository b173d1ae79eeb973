"""HTTP fetching with bounded retries and escalating timeouts."""

from __future__ import annotations

import asyncio
import math
from typing import Mapping

import aiohttp

from ..domain.errors import (
    EnhancerDomainError,
    FetchTimeoutError,
    InvalidInputError,
    NotFoundError,
    ServerUnavailableError,
    TransportError,
)
from ..domain.models import FetchResponse
from ..observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
}


class HttpTransport:
    """Raw GET. Returns any response it receives; raises only when none was received."""

    async def get(self, url: str, *, timeout_ms: int, headers: Mapping[str, str]) -> FetchResponse:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None


class AiohttpTransport(HttpTransport):
    def __init__(self, *, max_redirects: int = 5, session: aiohttp.ClientSession | None = None):
        self._max_redirects = int(max_redirects)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def get(self, url: str, *, timeout_ms: int, headers: Mapping[str, str]) -> FetchResponse:
        timeout = aiohttp.ClientTimeout(total=max(0.001, timeout_ms / 1000.0))
        session = self._get_session()
        try:
            async with session.get(
                url,
                headers=dict(headers),
                timeout=timeout,
                allow_redirects=True,
                max_redirects=self._max_redirects,
            ) as resp:
                body = await resp.text(errors="replace")
                return FetchResponse(
                    url=str(resp.url),
                    status=resp.status,
                    headers=dict(resp.headers),
                    body=body,
                )
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError(f"Request timed out after {timeout_ms}ms", detail=url) from e
        except aiohttp.InvalidURL as e:
            raise InvalidInputError("Invalid URL provided. Please include http:// or https://", detail=url) from e
        except aiohttp.TooManyRedirects as e:
            raise InvalidInputError("The URL redirects too many times", detail=url) from e
        except aiohttp.ClientError as e:
            raise TransportError("No response received from the server", detail=f"{url}: {e}") from e

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()


class Fetcher:
    """Scraping layer.

    Responsibilities:
    - Send a browser-like GET through the transport
    - Retry retryable failures (no response / client timeout) with a fixed delay;
      after a timeout the next attempt gets ``timeout_multiplier`` times more time
    - Classify terminal responses: 404 -> NotFoundError, >=500 -> ServerUnavailableError,
      both raised immediately without retry
    - Return every other response untouched (callers check status / content-type)
    """

    def __init__(
        self,
        transport: HttpTransport,
        *,
        default_timeout_ms: int = 30000,
        max_retries: int = 2,
        retry_delay_ms: int = 1000,
        timeout_multiplier: float = 1.5,
        user_agent: str | None = None,
    ):
        self._transport = transport
        self._timeout_ms = int(default_timeout_ms)
        self._max_retries = max(0, int(max_retries))
        self._retry_delay_s = max(0.0, retry_delay_ms / 1000.0)
        self._timeout_multiplier = max(1.0, float(timeout_multiplier))
        self._headers = dict(DEFAULT_HEADERS)
        if user_agent:
            self._headers["User-Agent"] = user_agent

    async def fetch(self, url: str, timeout_ms: int | None = None) -> FetchResponse:
        timeout: float = float(timeout_ms or self._timeout_ms)
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = await self._transport.get(
                    url,
                    timeout_ms=math.ceil(timeout),
                    headers=self._headers,
                )
            except EnhancerDomainError as e:
                if not e.retryable:
                    raise
                if attempt >= attempts:
                    logger.error("fetch_failed", url=url, attempts=attempt, error=str(e))
                    raise
                if isinstance(e, FetchTimeoutError):
                    timeout *= self._timeout_multiplier
                logger.warning(
                    "fetch_retrying",
                    url=url,
                    attempt=attempt,
                    attempts_left=attempts - attempt,
                    next_timeout_ms=math.ceil(timeout),
                    error=str(e),
                )
                await asyncio.sleep(self._retry_delay_s)
                continue
            return self._classify(url, response)
        raise TransportError("failed to fetch url", detail=url)  # unreachable: loop always returns or raises

    def _classify(self, url: str, response: FetchResponse) -> FetchResponse:
        if response.status == 404:
            raise NotFoundError("The requested article was not found (404)", detail=url)
        if response.status >= 500:
            raise ServerUnavailableError(
                "The website is currently unavailable (server error)",
                detail=f"{url}: status={response.status}",
            )
        return response

    async def close(self) -> None:
        await self._transport.close()
