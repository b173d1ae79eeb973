from __future__ import annotations

from typing import Any, Callable

import pytest

from article_enhancer.config.settings import EnhancerSettings
from article_enhancer.scraping.http_fetcher import Fetcher, HttpTransport


@pytest.fixture
def settings() -> EnhancerSettings:
    return EnhancerSettings(
        _env_file=None,
        environment="testing",
        fetch_retry_delay_ms=0,
        llm_api_key="test-key",
        google_api_key="g-key",
        google_cse_id="cse-id",
    )


@pytest.fixture
def make_fetcher() -> Callable[..., Fetcher]:
    def _make(transport: HttpTransport, **kwargs: Any) -> Fetcher:
        kwargs.setdefault("default_timeout_ms", 1000)
        kwargs.setdefault("max_retries", 2)
        kwargs.setdefault("retry_delay_ms", 0)
        return Fetcher(transport, **kwargs)

    return _make
