"""Candidate article links on a listing page."""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from ..domain.errors import InvalidInputError
from ..observability.logger import get_logger
from ..scraping.http_fetcher import Fetcher
from ..utils.validators import is_valid_http_url, origin_of
from .content_extractor import parse_html

logger = get_logger(__name__)

LINK_SELECTORS: tuple[str, ...] = (
    'a[href*="/blog/"]',
    'a[href*="/blogs/"]',
    "article a[href]",
    ".post a[href]",
    ".article a[href]",
    ".entry-title a[href]",
    "h2 a[href]",
    "h3 a[href]",
    ".post-title a[href]",
    ".post-header a[href]",
    'a[href*="/article/"]',
    'a[href*="/post/"]',
    'a[href*="/news/"]',
)

EXCLUDED_SEGMENTS: tuple[str, ...] = ("/author/", "/tag/", "/category/", "/page/")

_LISTING_PATH_RE = re.compile(r"/blogs?/?$|/blogs?/page/\d+/?$", re.IGNORECASE)


def is_listing_url(url: str) -> bool:
    """True for ``/blog``, ``/blogs/`` and ``/blog/page/<n>`` style URLs."""
    if not url:
        return False
    try:
        path = urlparse(url).path
    except ValueError:
        return False
    return bool(_LISTING_PATH_RE.search(path))


def _same_page(a: str, b: str) -> bool:
    return a.rstrip("/") == b.rstrip("/")


class _LinkFilter:
    def __init__(self, listing_url: str, excluded_segments: Iterable[str]):
        self._listing_url = urldefrag(listing_url)[0]
        self._origin = origin_of(listing_url)
        self._excluded = tuple(excluded_segments)

    def accept(self, href: str | None) -> str | None:
        """Return the absolute URL for ``href`` if it is an acceptable article link."""
        if not isinstance(href, str):
            return None
        href = href.strip()
        if not href or href.startswith("#"):
            return None
        try:
            absolute = urljoin(self._listing_url, href)
        except ValueError:
            return None
        absolute = urldefrag(absolute)[0]
        if not is_valid_http_url(absolute) or origin_of(absolute) != self._origin:
            return None
        if _same_page(absolute, self._listing_url):
            return None
        if any(segment in absolute for segment in self._excluded):
            return None
        return absolute


def extract_article_links(
    soup: BeautifulSoup,
    listing_url: str,
    *,
    selectors: Iterable[str] = LINK_SELECTORS,
    excluded_segments: Iterable[str] = EXCLUDED_SEGMENTS,
) -> list[str]:
    """Deduplicated same-origin article links, in first-seen order. No cap is applied."""
    link_filter = _LinkFilter(listing_url, excluded_segments)
    found: dict[str, None] = {}

    for selector in selectors:
        for anchor in soup.select(selector):
            url = link_filter.accept(anchor.get("href"))
            if url is not None:
                found.setdefault(url, None)

    if found:
        return list(found)

    # Last resort: any relative anchor on the page.
    for anchor in soup.select("a[href]"):
        href = anchor.get("href")
        if not isinstance(href, str) or href.startswith(("#", "http")):
            continue
        url = link_filter.accept(href)
        if url is not None:
            found.setdefault(url, None)
    return list(found)


class LinkDiscoverer:
    def __init__(self, fetcher: Fetcher, *, timeout_ms: int | None = None):
        self._fetcher = fetcher
        self._timeout_ms = timeout_ms

    async def discover(self, listing_url: str) -> list[str]:
        if not is_valid_http_url(listing_url or ""):
            raise InvalidInputError("Invalid URL provided. Please include http:// or https://", detail=listing_url)

        response = await self._fetcher.fetch(listing_url, self._timeout_ms)
        if not response.ok:
            raise InvalidInputError(
                f"The listing page could not be fetched (HTTP {response.status})",
                detail=f"{listing_url}: status={response.status}",
            )
        links = extract_article_links(parse_html(response.body), listing_url)
        logger.info("article_links_discovered", url=listing_url, count=len(links))
        return links
