"""Article enhancement orchestration (search -> references -> generative rewrite)."""

from __future__ import annotations

import asyncio
from typing import Sequence

import structlog

from ..config.settings import EnhancerSettings
from ..domain.errors import (
    ArticleNotFoundError,
    EnhancementFailedError,
    EnhancerDomainError,
    InvalidInputError,
)
from ..domain.models import Article, ArticleStatus, Reference
from ..domain.status import enhanced_update, ensure_transition, error_update, processing_update
from ..llm.prompts import ENHANCEMENT_SYSTEM_PROMPT, build_enhancement_prompt, format_reference
from ..llm.runtime import LLMRequest, LLMRuntime, run_with_deadline
from ..observability.logger import get_logger
from ..scraping.http_fetcher import Fetcher
from ..search.runtime import SearchProvider
from ..storage.repositories import ArticleStore
from ..utils.deadline import Deadline
from ..utils.time import elapsed_ms, monotonic_ms, utc_now
from ..utils.validators import is_valid_http_url
from .content_extractor import ContentExtractor, parse_html

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Enhancement cancelled"


def select_references(results: Sequence[Reference], limit: int) -> list[Reference]:
    """Keep http(s) results that look like blog posts or articles, first ``limit`` only."""
    selected: list[Reference] = []
    for ref in results:
        if len(selected) >= limit:
            break
        if is_valid_http_url(ref.link) and ("blog" in ref.link or "article" in ref.link):
            selected.append(ref)
    return selected


class EnhancementService:
    """Service layer for one enhancement run per call.

    Responsibilities:
    - Move the article into ``processing`` as soon as it is loaded
    - Gather reference material (search and reference scraping never fail the run)
    - Call the generative-text runtime under a hard deadline
    - Leave the article in ``enhanced`` or ``error``, never in ``processing``

    Two concurrent runs on the same article id are not guarded against.
    """

    def __init__(
        self,
        store: ArticleStore,
        search: SearchProvider,
        fetcher: Fetcher,
        content_extractor: ContentExtractor,
        llm: LLMRuntime,
        settings: EnhancerSettings,
    ):
        self._store = store
        self._search = search
        self._fetcher = fetcher
        self._extractor = content_extractor
        self._llm = llm
        self._settings = settings

    async def enhance(self, article_id: str, *, force: bool = False) -> Article:
        """Run one enhancement for ``article_id``.

        Args:
            article_id: Stored article id.
            force: Restart an article left in ``processing`` (e.g. after a crash).

        Raises:
            ArticleNotFoundError: Unknown id; nothing is written.
            InvalidInputError: The article is already being processed and ``force`` is False.
            EnhancerDomainError: Any fatal failure, after ``error`` status was persisted.
        """
        with structlog.contextvars.bound_contextvars(article_id=article_id):
            article = await self._store.find_by_id(article_id)
            if article is None:
                logger.warning("article_not_found")
                raise ArticleNotFoundError(article_id)

            if article.status == ArticleStatus.PROCESSING:
                if not force:
                    raise InvalidInputError("Article is already being enhanced", detail=article_id)
                logger.warning("enhancement_restarted_from_processing")
            else:
                ensure_transition(article.status, ArticleStatus.PROCESSING)
            if await self._store.update_by_id(article_id, processing_update()) is None:
                raise ArticleNotFoundError(article_id)

            logger.info("enhancement_started", title=article.title, content_length=len(article.content))
            start_ms = monotonic_ms()
            try:
                updated = await self._run(article)
            except asyncio.CancelledError:
                logger.warning("enhancement_cancelled")
                await self._persist_error(article_id, CANCELLED_MESSAGE)
                raise
            except EnhancerDomainError as e:
                logger.error("enhancement_failed", code=e.info.code.value, error=e.message)
                await self._persist_error(article_id, e.message)
                raise
            except Exception as e:
                err = EnhancementFailedError(f"AI enhancement failed: {e}", detail=repr(e))
                logger.exception("enhancement_failed_unexpected", error=str(e))
                await self._persist_error(article_id, err.message)
                raise err from e

            logger.info(
                "enhancement_completed",
                enhanced_length=len(updated.enhanced_content),
                elapsed_ms=elapsed_ms(start_ms),
            )
            return updated

    async def _run(self, article: Article) -> Article:
        references = await self._gather_references(article.title)
        prompt = build_enhancement_prompt(article.content, references)

        deadline = Deadline.after(self._settings.llm_deadline_seconds)
        request = LLMRequest(
            system_prompt=ENHANCEMENT_SYSTEM_PROMPT,
            prompt=prompt,
            model=self._settings.llm_model,
            temperature=self._settings.llm_temperature,
            max_tokens=self._settings.llm_max_tokens,
            deadline=deadline,
        )
        llm_start = monotonic_ms()
        text = await run_with_deadline(self._llm.complete(request), deadline)
        logger.info("llm_response_received", elapsed_ms=elapsed_ms(llm_start), length=len(text or ""))

        if not isinstance(text, str) or not text.strip():
            raise EnhancementFailedError("Received empty content from the generative-text service")

        updated = await self._store.update_by_id(article.id, enhanced_update(text, now=utc_now()))
        if updated is None:
            raise ArticleNotFoundError(article.id)
        return updated

    async def _gather_references(self, title: str) -> list[str]:
        try:
            results = await self._search.search(title)
        except Exception as e:
            logger.warning("search_failed", error=str(e), error_type=type(e).__name__)
            return []

        selected = select_references(results, self._settings.max_references)
        logger.info("search_results", found=len(results), selected=len(selected))
        if not selected:
            return []

        scraped = await asyncio.gather(*(self._scrape_reference(ref) for ref in selected))
        references = [r for r in scraped if r]
        logger.info("references_scraped", count=len(references))
        return references

    async def _scrape_reference(self, ref: Reference) -> str:
        try:
            response = await self._fetcher.fetch(ref.link, self._settings.reference_timeout_ms)
            if not response.ok:
                logger.warning("reference_skipped", url=ref.link, status=response.status)
                return ""
            content = self._extractor.extract(parse_html(response.body))
        except Exception as e:
            logger.warning("reference_scrape_failed", url=ref.link, error=str(e))
            return ""
        if not content.strip():
            return ""
        return format_reference(ref.link, content)

    async def _persist_error(self, article_id: str, message: str) -> None:
        fields = error_update(message, max_length=self._settings.last_error_max_length)
        try:
            await self._store.update_by_id(article_id, fields)
        except Exception as e:
            logger.error("error_status_persist_failed", error=str(e))
