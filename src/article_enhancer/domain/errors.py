"""Domain-specific errors.

Every failure is classified once, where it happens, into one of these types.
Callers branch on the type (or ``info.code``), never on message text. The
boundary translation to HTTP statuses lives in ``controllers/http_errors.py``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import ErrorCode


@dataclass(frozen=True)
class DomainErrorInfo:
    code: ErrorCode
    message: str
    detail: Optional[str] = None
    retry_after: Optional[float] = None


class EnhancerDomainError(Exception):
    """Base class for all domain errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    http_status: int = 500
    # Only transport-level failures are retried by the fetcher.
    retryable: bool = False

    def __init__(self, message: str, detail: str | None = None, *, retry_after: float | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code=self.code, message=message, detail=detail, retry_after=retry_after)

    @property
    def message(self) -> str:
        return self.info.message


class InvalidInputError(EnhancerDomainError):
    """Raised when a URL or request is malformed or missing."""

    code = ErrorCode.INVALID_INPUT
    http_status = 400


class NotFoundError(EnhancerDomainError):
    """Raised on a 404 response."""

    code = ErrorCode.NOT_FOUND
    http_status = 404


class ArticleNotFoundError(NotFoundError):
    def __init__(self, article_id: str):
        super().__init__(f"Article with ID {article_id} not found", detail=article_id)
        self.article_id = article_id


class ServerUnavailableError(EnhancerDomainError):
    """Raised on a 5xx response. Never retried."""

    code = ErrorCode.SERVER_UNAVAILABLE
    http_status = 500


class TransportError(EnhancerDomainError):
    """No HTTP response was obtained (connection refused, DNS, reset...)."""

    code = ErrorCode.TRANSPORT_ERROR
    http_status = 500
    retryable = True


class FetchTimeoutError(TransportError):
    """Client-side timeout while fetching a page."""

    code = ErrorCode.TIMEOUT
    http_status = 504


class NoContentExtractedError(EnhancerDomainError):
    code = ErrorCode.NO_CONTENT_EXTRACTED
    http_status = 500


class AuthError(EnhancerDomainError):
    code = ErrorCode.AUTH_ERROR
    http_status = 401


class QuotaExceededError(EnhancerDomainError):
    code = ErrorCode.QUOTA_EXCEEDED
    http_status = 429


class RateLimitedError(EnhancerDomainError):
    code = ErrorCode.RATE_LIMITED
    http_status = 429


class LLMTimeoutError(EnhancerDomainError):
    """The generative-text call did not settle before its deadline."""

    code = ErrorCode.TIMEOUT
    http_status = 504


class EnhancementFailedError(EnhancerDomainError):
    code = ErrorCode.ENHANCEMENT_FAILED
    http_status = 500


class PersistenceError(EnhancerDomainError):
    code = ErrorCode.PERSISTENCE_FAILURE
    http_status = 500


class DuplicateArticleError(PersistenceError):
    """Raised by the store when an article with the same URL already exists."""

    def __init__(self, url: str, detail: str | None = None):
        super().__init__(f"Article already exists for url {url}", detail=detail)
        self.url = url
