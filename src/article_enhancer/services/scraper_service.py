"""Article scraping orchestration (fetch -> parse -> metadata + content)."""

from __future__ import annotations

import asyncio
from typing import Sequence

from ..domain.errors import EnhancerDomainError, InvalidInputError, NoContentExtractedError
from ..domain.models import BatchScrapeResult, ScrapedArticle
from ..observability.logger import get_logger
from ..scraping.http_fetcher import Fetcher
from ..utils.time import elapsed_ms, monotonic_ms, utc_now
from ..utils.validators import is_valid_http_url
from .content_extractor import ContentExtractor, parse_html
from .link_discoverer import LinkDiscoverer
from .metadata_extractor import MetadataExtractor

logger = get_logger(__name__)


class ArticleScraperService:
    """Service layer for single-page and batch scraping.

    Responsibilities:
    - Validate the URL
    - Fetch the page and reject non-2xx or non-HTML responses
    - Resolve metadata, then extract main content from the same document
    - Fan batch requests out concurrently, keeping results in input order
    """

    def __init__(
        self,
        fetcher: Fetcher,
        content_extractor: ContentExtractor,
        metadata_extractor: MetadataExtractor,
        link_discoverer: LinkDiscoverer,
        *,
        suspect_content_length: int = 50,
        timeout_ms: int | None = None,
    ):
        self._fetcher = fetcher
        self._content = content_extractor
        self._metadata = metadata_extractor
        self._links = link_discoverer
        self._suspect_length = int(suspect_content_length)
        self._timeout_ms = timeout_ms

    async def scrape_article(self, url: str, *, timeout_ms: int | None = None) -> ScrapedArticle:
        if not url or not isinstance(url, str):
            raise InvalidInputError("URL is required")
        url = url.strip()
        if not is_valid_http_url(url):
            raise InvalidInputError("Invalid URL provided. Please include http:// or https://", detail=url)

        start_ms = monotonic_ms()
        response = await self._fetcher.fetch(url, timeout_ms or self._timeout_ms)
        if not response.ok:
            raise InvalidInputError(
                f"The page could not be scraped (HTTP {response.status})",
                detail=f"{url}: status={response.status}",
            )

        content_type = response.content_type.lower()
        if "text/html" not in content_type:
            raise InvalidInputError(
                "The URL does not point to an HTML page",
                detail=f"{url}: content-type={content_type or 'missing'}",
            )

        soup = parse_html(response.body)
        # Metadata first: noise removal drops <meta> tags.
        meta = self._metadata.extract(soup, url)
        content = self._content.extract(soup)

        if not content.strip():
            raise NoContentExtractedError("No content could be extracted from the page", detail=url)
        if len(content) < self._suspect_length:
            logger.warning("content_suspiciously_short", url=url, length=len(content))

        logger.info(
            "article_scraped",
            url=url,
            title=meta.title,
            content_length=len(content),
            elapsed_ms=elapsed_ms(start_ms),
        )
        return ScrapedArticle(
            title=meta.title,
            content=content,
            author=meta.author,
            image=meta.image,
            source_url=url,
            scraped_at=utc_now(),
        )

    async def scrape_many(self, urls: Sequence[str]) -> list[BatchScrapeResult]:
        """Scrape ``urls`` concurrently. One result per input, in input order."""
        if not urls:
            return []
        return list(await asyncio.gather(*(self._scrape_one(u) for u in urls)))

    async def _scrape_one(self, url: str) -> BatchScrapeResult:
        try:
            article = await self.scrape_article(url)
        except EnhancerDomainError as e:
            logger.warning("batch_scrape_failed", url=url, code=e.info.code.value, error=e.message)
            return BatchScrapeResult(url=url, success=False, error=e.message)
        except Exception as e:
            logger.exception("batch_scrape_unexpected_error", url=url, error=str(e))
            return BatchScrapeResult(url=url, success=False, error="Failed to scrape article")
        return BatchScrapeResult(url=url, success=True, article=article)

    async def discover_articles(self, listing_url: str) -> list[str]:
        return await self._links.discover(listing_url)
