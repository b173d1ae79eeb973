"""Repository pattern for article persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..domain.errors import DuplicateArticleError, PersistenceError
from ..domain.models import Article, ArticleStatus
from ..models.database import ArticleRecord
from ..observability.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)

_WRITABLE_FIELDS = frozenset(
    {
        "title",
        "content",
        "enhanced_content",
        "status",
        "last_error",
        "author",
        "image",
        "url",
        "source",
        "published_at",
        "last_enhanced",
    }
)


class ArticleStore(Protocol):
    """What the services need from persistence. No transactions; last write wins."""

    async def find_by_id(self, article_id: str) -> Optional[Article]: ...

    async def find_by_url(self, url: str) -> Optional[Article]: ...

    async def create(self, fields: Mapping[str, Any]) -> Article: ...

    async def update_by_id(self, article_id: str, fields: Mapping[str, Any]) -> Optional[Article]: ...


def _column_values(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _WRITABLE_FIELDS
    if unknown:
        raise PersistenceError("unknown article fields", detail=", ".join(sorted(unknown)))
    values = dict(fields)
    status = values.get("status")
    if isinstance(status, ArticleStatus):
        values["status"] = status.value
    return values


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(record: ArticleRecord) -> Article:
    return Article(
        id=record.id,
        title=record.title,
        content=record.content,
        status=ArticleStatus(record.status),
        enhanced_content=record.enhanced_content or "",
        last_error=record.last_error or "",
        author=record.author or "",
        image=record.image or "",
        url=record.url,
        source=record.source or "",
        published_at=_as_utc(record.published_at),
        last_enhanced=_as_utc(record.last_enhanced),
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
    )


class ArticleRepository:
    """SQLAlchemy-backed ArticleStore."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def find_by_id(self, article_id: str) -> Optional[Article]:
        try:
            async with self._session_factory() as session:
                record = await session.get(ArticleRecord, article_id)
                return _to_domain(record) if record is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError("failed to load article", detail=str(e)) from e

    async def find_by_url(self, url: str) -> Optional[Article]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(ArticleRecord).where(ArticleRecord.url == url))
                record = result.scalar_one_or_none()
                return _to_domain(record) if record is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError("failed to load article by url", detail=str(e)) from e

    async def list_articles(self, *, limit: int = 50) -> list[Article]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ArticleRecord).order_by(ArticleRecord.created_at.desc()).limit(limit)
                )
                return [_to_domain(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise PersistenceError("failed to list articles", detail=str(e)) from e

    async def create(self, fields: Mapping[str, Any]) -> Article:
        values = _column_values(fields)
        try:
            async with self._session_factory() as session:
                record = ArticleRecord(**values)
                session.add(record)
                await session.commit()
                await session.refresh(record)
                return _to_domain(record)
        except IntegrityError as e:
            url = values.get("url")
            if url:
                logger.info("article_url_conflict", url=url)
                raise DuplicateArticleError(url, detail=str(e.orig)) from e
            raise PersistenceError("failed to create article", detail=str(e)) from e
        except SQLAlchemyError as e:
            raise PersistenceError("failed to create article", detail=str(e)) from e

    async def update_by_id(self, article_id: str, fields: Mapping[str, Any]) -> Optional[Article]:
        values = _column_values(fields)
        values["updated_at"] = utc_now()
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    update(ArticleRecord).where(ArticleRecord.id == article_id).values(**values)
                )
                await session.commit()
                if result.rowcount == 0:
                    return None
                record = await session.get(ArticleRecord, article_id, populate_existing=True)
                return _to_domain(record) if record is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError("failed to update article", detail=str(e)) from e
