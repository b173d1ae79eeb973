"""Google Custom Search JSON API client."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from ..domain.errors import (
    AuthError,
    FetchTimeoutError,
    InvalidInputError,
    RateLimitedError,
    ServerUnavailableError,
    TransportError,
)
from ..domain.models import Reference
from ..observability.logger import get_logger
from .runtime import SearchProvider

logger = get_logger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"


def parse_items(payload: Any) -> list[Reference]:
    """Convert a Custom Search response body into references. Items without a link are dropped."""
    if not isinstance(payload, dict):
        return []
    items = payload.get("items") or []
    references: list[Reference] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        link = item.get("link")
        if not isinstance(link, str) or not link.strip():
            continue
        references.append(
            Reference(
                title=str(item.get("title") or ""),
                link=link.strip(),
                snippet=str(item.get("snippet") or ""),
            )
        )
    return references


def _retry_after(headers: Any) -> float | None:
    raw = headers.get("Retry-After") if headers is not None else None
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None


class GoogleSearchClient(SearchProvider):
    """Search provider backed by a Programmable Search Engine.

    Raises:
        InvalidInputError: API key or engine id missing.
        AuthError: HTTP 401 or 403.
        RateLimitedError: HTTP 429 (``retry_after`` from the response header).
        ServerUnavailableError: Any other HTTP status >= 400.
        FetchTimeoutError: The request timed out.
        TransportError: Network failure.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        cse_id: str | None,
        num_results: int = 5,
        timeout_seconds: float = 10,
        endpoint: str = GOOGLE_CSE_URL,
        session: aiohttp.ClientSession | None = None,
    ):
        self._api_key = api_key
        self._cse_id = cse_id
        self._num = int(num_results)
        self._timeout = aiohttp.ClientTimeout(total=float(timeout_seconds))
        self._endpoint = endpoint
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def search(self, query: str) -> list[Reference]:
        if not self._api_key or not self._cse_id:
            raise InvalidInputError("Search is not configured (GOOGLE_API_KEY / GOOGLE_CSE_ID missing)")
        if not query or not query.strip():
            return []

        params = {"key": self._api_key, "cx": self._cse_id, "q": query.strip(), "num": str(self._num)}
        try:
            async with self._get_session().get(self._endpoint, params=params, timeout=self._timeout) as resp:
                if resp.status in (401, 403):
                    raise AuthError(f"Search request rejected: HTTP {resp.status} (invalid API key)")
                if resp.status == 429:
                    raise RateLimitedError(
                        "Search rate limit exceeded (HTTP 429)",
                        retry_after=_retry_after(resp.headers),
                    )
                if resp.status >= 400:
                    body = await resp.text(errors="replace")
                    raise ServerUnavailableError(f"Search request failed: HTTP {resp.status}", detail=body[:200])
                payload = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError("Search request timed out", detail=query) from e
        except aiohttp.ClientError as e:
            raise TransportError("Search request failed: network error", detail=str(e)) from e
        except ValueError as e:
            raise ServerUnavailableError("Search response was not valid JSON", detail=str(e)) from e

        references = parse_items(payload)
        logger.info("search_completed", query=query, results=len(references))
        return references

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
