"""Article enhancement lifecycle.

pending -> processing -> enhanced | error

A run always starts by entering ``processing`` and always leaves it. Re-running
an enhanced or failed article is a caller decision and restarts at
``processing``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .errors import InvalidInputError
from .models import ArticleStatus

_ALLOWED: dict[ArticleStatus, frozenset[ArticleStatus]] = {
    ArticleStatus.PENDING: frozenset({ArticleStatus.PROCESSING}),
    ArticleStatus.PROCESSING: frozenset({ArticleStatus.ENHANCED, ArticleStatus.ERROR}),
    ArticleStatus.ENHANCED: frozenset({ArticleStatus.PROCESSING}),
    ArticleStatus.ERROR: frozenset({ArticleStatus.PROCESSING}),
}


def can_transition(current: ArticleStatus, target: ArticleStatus) -> bool:
    return target in _ALLOWED.get(current, frozenset())


def ensure_transition(current: ArticleStatus, target: ArticleStatus) -> None:
    if not can_transition(current, target):
        raise InvalidInputError(
            "invalid article status transition",
            detail=f"{current.value} -> {target.value}",
        )


def truncate_error(message: str, max_length: int = 500) -> str:
    text = (message or "").strip()
    return text[:max_length]


def processing_update() -> dict[str, Any]:
    return {"status": ArticleStatus.PROCESSING, "last_error": ""}


def enhanced_update(enhanced_content: str, *, now: datetime) -> dict[str, Any]:
    content = (enhanced_content or "").strip()
    if not content:
        raise InvalidInputError("enhanced status requires non-empty enhanced_content")
    return {
        "status": ArticleStatus.ENHANCED,
        "enhanced_content": content,
        "last_enhanced": now,
        "last_error": "",
    }


def error_update(message: str, *, max_length: int = 500) -> dict[str, Any]:
    text = truncate_error(message, max_length) or "Enhancement failed"
    return {"status": ArticleStatus.ERROR, "last_error": text}
