"""Application lifespan management (startup/shutdown hooks)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from .config.settings import EnhancerSettings, get_settings
from .llm.openai_adapter import OpenAIAdapter
from .observability.logger import configure_logging, get_logger
from .scraping.http_fetcher import AiohttpTransport, Fetcher
from .search.google_search import GoogleSearchClient
from .services.content_extractor import ContentExtractor
from .services.enhancement_service import EnhancementService
from .services.ingestion_service import ArticleIngestionService
from .services.link_discoverer import LinkDiscoverer
from .services.metadata_extractor import MetadataExtractor
from .services.scraper_service import ArticleScraperService
from .storage.database import close_db, create_engine_and_sessions, init_db
from .storage.repositories import ArticleRepository

logger = get_logger(__name__)


@dataclass
class AppServices:
    settings: EnhancerSettings
    articles: ArticleRepository
    scraper: ArticleScraperService
    ingestion: ArticleIngestionService
    # None when no generative-text API key is configured.
    enhancement: EnhancementService | None


@asynccontextmanager
async def lifespan_manager(settings: EnhancerSettings | None = None) -> AsyncIterator[AppServices]:
    """Build every collaborator once, yield them, and release them on exit."""
    settings = settings or get_settings()

    configure_logging(settings)
    logger.info("starting_application", service_name=settings.service_name, environment=settings.environment)

    engine, sessions = create_engine_and_sessions(settings.database_url)
    await init_db(engine)
    logger.info("database_initialized")

    transport = AiohttpTransport(max_redirects=settings.fetch_max_redirects)
    fetcher = Fetcher(
        transport,
        default_timeout_ms=settings.fetch_timeout_ms,
        max_retries=settings.fetch_max_retries,
        retry_delay_ms=settings.fetch_retry_delay_ms,
        timeout_multiplier=settings.fetch_timeout_multiplier,
        user_agent=settings.fetch_user_agent,
    )
    content_extractor = ContentExtractor(min_length=settings.content_min_length)
    scraper = ArticleScraperService(
        fetcher,
        content_extractor,
        MetadataExtractor(),
        LinkDiscoverer(fetcher),
        suspect_content_length=settings.suspect_content_length,
    )
    articles = ArticleRepository(session_factory=sessions)
    ingestion = ArticleIngestionService(scraper, articles, listing_max_articles=settings.listing_max_articles)

    search = GoogleSearchClient(
        api_key=settings.google_api_key,
        cse_id=settings.google_cse_id,
        num_results=settings.search_num_results,
        timeout_seconds=settings.search_timeout_seconds,
    )
    if not (settings.google_api_key and settings.google_cse_id):
        logger.warning("search_not_configured")

    llm: OpenAIAdapter | None = None
    enhancement: EnhancementService | None = None
    if settings.llm_api_key:
        llm = OpenAIAdapter(api_key=settings.llm_api_key, base_url=settings.llm_base_url)
        enhancement = EnhancementService(articles, search, fetcher, content_extractor, llm, settings)
        logger.info("llm_configured", base_url=settings.llm_base_url, model=settings.llm_model)
    else:
        logger.warning("llm_not_configured")

    logger.info("application_started")
    try:
        yield AppServices(
            settings=settings,
            articles=articles,
            scraper=scraper,
            ingestion=ingestion,
            enhancement=enhancement,
        )
    finally:
        if llm is not None:
            await llm.close()
        await search.close()
        await fetcher.close()
        await close_db(engine)
        logger.info("application_shutdown_complete")
