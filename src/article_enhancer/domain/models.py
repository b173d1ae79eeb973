"""Framework-agnostic domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional


class ArticleStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    ENHANCED = "enhanced"
    ERROR = "error"


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    TIMEOUT = "TIMEOUT"
    NO_CONTENT_EXTRACTED = "NO_CONTENT_EXTRACTED"
    AUTH_ERROR = "AUTH_ERROR"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RATE_LIMITED = "RATE_LIMITED"
    ENHANCEMENT_FAILED = "ENHANCEMENT_FAILED"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class FetchResponse:
    """A non-error HTTP response (status in [200, 500), 404 excluded)."""

    url: str
    status: int
    headers: Mapping[str, str]
    body: str

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class ScrapedArticle:
    title: str
    content: str
    author: str
    image: str
    source_url: str
    scraped_at: datetime


@dataclass(frozen=True)
class Reference:
    """A related page returned by the search collaborator."""

    title: str
    link: str
    snippet: str = ""


@dataclass(frozen=True)
class BatchScrapeResult:
    url: str
    success: bool
    article: Optional[ScrapedArticle] = None
    error: str = ""


@dataclass(frozen=True)
class Article:
    """Persisted article as seen by the core (the store owns the record)."""

    id: str
    title: str
    content: str
    status: ArticleStatus = ArticleStatus.PENDING
    enhanced_content: str = ""
    last_error: str = ""
    author: str = ""
    image: str = ""
    url: Optional[str] = None
    source: str = ""
    published_at: Optional[datetime] = None
    last_enhanced: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class IngestionResult:
    articles: list[Article]
    created: int = 0
    is_batch: bool = False
    results: list[BatchScrapeResult] = field(default_factory=list)
