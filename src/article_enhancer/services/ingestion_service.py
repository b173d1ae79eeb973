"""Scrape-and-persist workflows for single pages, listing pages and batches."""

from __future__ import annotations

from typing import Sequence

from ..domain.errors import DuplicateArticleError, InvalidInputError, NoContentExtractedError, PersistenceError
from ..domain.models import Article, ArticleStatus, IngestionResult, ScrapedArticle
from ..observability.logger import get_logger
from ..storage.repositories import ArticleStore
from ..utils.validators import hostname_of, is_valid_http_url
from .link_discoverer import is_listing_url
from .metadata_extractor import DEFAULT_AUTHOR, DEFAULT_TITLE
from .scraper_service import ArticleScraperService

logger = get_logger(__name__)


def article_fields(scraped: ScrapedArticle) -> dict:
    """Column values for a freshly scraped article."""
    return {
        "title": scraped.title.strip() or DEFAULT_TITLE,
        "content": scraped.content.strip(),
        "author": scraped.author.strip() or DEFAULT_AUTHOR,
        "image": scraped.image,
        "url": scraped.source_url,
        "source": hostname_of(scraped.source_url),
        "published_at": scraped.scraped_at,
        "status": ArticleStatus.PENDING,
    }


class ArticleIngestionService:
    """Service layer for turning URLs into stored articles.

    Rules:
    - Listing URLs are expanded to at most ``listing_max_articles`` links
    - An article already stored under the same URL is reused, never duplicated
    - A unique-URL conflict on insert is resolved by re-reading the stored row
    """

    def __init__(self, scraper: ArticleScraperService, store: ArticleStore, *, listing_max_articles: int = 5):
        self._scraper = scraper
        self._store = store
        self._listing_max = int(listing_max_articles)

    async def ingest(self, url: str) -> IngestionResult:
        if not url or not isinstance(url, str):
            raise InvalidInputError("URL is required")
        url = url.strip()
        if not is_valid_http_url(url):
            raise InvalidInputError("Invalid URL provided. Please include http:// or https://", detail=url)

        if is_listing_url(url):
            return await self._ingest_listing(url)

        existing = await self._store.find_by_url(url)
        if existing is not None:
            logger.info("article_already_exists", url=url, article_id=existing.id)
            return IngestionResult(articles=[existing], created=0)

        scraped = await self._scraper.scrape_article(url)
        article, created = await self._save(scraped)
        return IngestionResult(articles=[article], created=int(created))

    async def ingest_batch(self, urls: Sequence[str]) -> IngestionResult:
        results = await self._scraper.scrape_many(list(urls))
        articles: list[Article] = []
        created = 0
        for result in results:
            if not result.success or result.article is None:
                continue
            try:
                article, was_created = await self._save(result.article)
            except PersistenceError as e:
                logger.warning("batch_article_skipped", url=result.url, error=e.message)
                continue
            articles.append(article)
            created += int(was_created)
        logger.info("batch_ingested", requested=len(results), saved=len(articles), created=created)
        return IngestionResult(articles=articles, created=created, is_batch=True, results=results)

    async def _ingest_listing(self, listing_url: str) -> IngestionResult:
        links = await self._scraper.discover_articles(listing_url)
        if not links:
            raise NoContentExtractedError("No article links found on the page", detail=listing_url)

        selected = links[: self._listing_max]
        by_url: dict[str, Article] = {}
        to_scrape: list[str] = []
        for link in selected:
            existing = await self._store.find_by_url(link)
            if existing is not None:
                by_url[link] = existing
            else:
                to_scrape.append(link)

        created = 0
        results = await self._scraper.scrape_many(to_scrape)
        for result in results:
            if not result.success or result.article is None:
                logger.warning("listing_article_skipped", url=result.url, error=result.error)
                continue
            try:
                article, was_created = await self._save(result.article)
            except PersistenceError as e:
                logger.warning("listing_article_skipped", url=result.url, error=e.message)
                continue
            by_url[result.url] = article
            created += int(was_created)

        articles = [by_url[link] for link in selected if link in by_url]
        if not articles:
            raise NoContentExtractedError("Failed to scrape any articles from the listing", detail=listing_url)

        logger.info(
            "listing_ingested",
            url=listing_url,
            discovered=len(links),
            saved=len(articles),
            created=created,
        )
        return IngestionResult(articles=articles, created=created, is_batch=True, results=results)

    async def _save(self, scraped: ScrapedArticle) -> tuple[Article, bool]:
        try:
            article = await self._store.create(article_fields(scraped))
        except DuplicateArticleError:
            existing = await self._store.find_by_url(scraped.source_url)
            if existing is None:
                raise
            logger.info("article_already_exists", url=scraped.source_url, article_id=existing.id)
            return existing, False
        logger.info("article_saved", article_id=article.id, url=scraped.source_url)
        return article, True
