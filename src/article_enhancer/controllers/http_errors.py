"""Boundary error translation.

Maps exceptions to an HTTP-equivalent status and a JSON-ready payload
deterministically. NO business logic should be here.
"""

from __future__ import annotations

from typing import Any

from ..domain.errors import EnhancerDomainError
from ..domain.models import ErrorCode
from ..utils.time import utc_now

_PUBLIC_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_ERROR: "Invalid API key",
    ErrorCode.QUOTA_EXCEEDED: "API quota exceeded",
    ErrorCode.RATE_LIMITED: "Rate limit exceeded",
    ErrorCode.TIMEOUT: "Request timed out",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.INVALID_INPUT: "Invalid request",
}


def status_for(exc: BaseException) -> int:
    if isinstance(exc, EnhancerDomainError):
        return exc.http_status
    return 500


def to_error_response(exc: BaseException, *, expose_details: bool) -> tuple[int, dict[str, Any]]:
    """Return ``(status_code, payload)``. Error text and detail are included only when ``expose_details``."""
    status = status_for(exc)
    if isinstance(exc, EnhancerDomainError):
        code = exc.info.code
        message = _PUBLIC_MESSAGES.get(code, "Internal server error")
    else:
        code = ErrorCode.INTERNAL_ERROR
        message = "Internal server error"

    payload: dict[str, Any] = {
        "success": False,
        "errorCode": code.value,
        "message": message,
        "timestamp": utc_now().isoformat(),
    }
    if isinstance(exc, EnhancerDomainError) and exc.info.retry_after is not None:
        payload["retryAfter"] = exc.info.retry_after
    if expose_details:
        payload["error"] = str(exc)
        if isinstance(exc, EnhancerDomainError) and exc.info.detail:
            payload["detail"] = exc.info.detail
    return status, payload
