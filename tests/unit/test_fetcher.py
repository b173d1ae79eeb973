from __future__ import annotations

import pytest

from article_enhancer.domain.errors import (
    FetchTimeoutError,
    InvalidInputError,
    NotFoundError,
    ServerUnavailableError,
    TransportError,
)
from article_enhancer.domain.models import FetchResponse
from article_enhancer.scraping.http_fetcher import Fetcher

from fakes import FakeTransport, html_response

URL = "https://example.com/post/1"


async def test_fetch_returns_success_response(make_fetcher) -> None:
    transport = FakeTransport({URL: html_response(URL, "<p>hi</p>")})
    response = await make_fetcher(transport).fetch(URL)
    assert response.status == 200
    assert response.body == "<p>hi</p>"
    assert len(transport.calls) == 1


async def test_fetch_404_is_not_retried(make_fetcher) -> None:
    transport = FakeTransport({URL: FetchResponse(url=URL, status=404, headers={}, body="")})
    with pytest.raises(NotFoundError):
        await make_fetcher(transport).fetch(URL)
    assert len(transport.calls) == 1


async def test_fetch_5xx_is_not_retried(make_fetcher) -> None:
    transport = FakeTransport({URL: FetchResponse(url=URL, status=503, headers={}, body="")})
    with pytest.raises(ServerUnavailableError):
        await make_fetcher(transport).fetch(URL)
    assert len(transport.calls) == 1


async def test_fetch_4xx_other_than_404_is_returned(make_fetcher) -> None:
    transport = FakeTransport({URL: FetchResponse(url=URL, status=403, headers={}, body="nope")})
    response = await make_fetcher(transport).fetch(URL)
    assert response.status == 403


async def test_fetch_timeouts_escalate_and_stop_after_budget(make_fetcher) -> None:
    transport = FakeTransport({URL: FetchTimeoutError("timed out")})
    with pytest.raises(FetchTimeoutError):
        await make_fetcher(transport, default_timeout_ms=1000, max_retries=2).fetch(URL)

    timeouts = [t for _, t in transport.calls]
    assert len(timeouts) == 3
    assert timeouts == [1000, 1500, 2250]
    assert all(b > a for a, b in zip(timeouts, timeouts[1:]))


async def test_fetch_connection_refused_twice_then_success(make_fetcher) -> None:
    refused = TransportError("No response received from the server")
    transport = FakeTransport({URL: [refused, refused, html_response(URL, "<p>ok</p>")]})
    response = await make_fetcher(transport, max_retries=2).fetch(URL)

    assert response.status == 200
    # No-response failures keep the same timeout.
    assert [t for _, t in transport.calls] == [1000, 1000, 1000]


async def test_fetch_reraises_last_transport_error(make_fetcher) -> None:
    first = TransportError("first")
    last = TransportError("last")
    transport = FakeTransport({URL: [first, last]})
    with pytest.raises(TransportError) as exc:
        await make_fetcher(transport, max_retries=1).fetch(URL)
    assert exc.value is last


async def test_fetch_explicit_timeout_overrides_default(make_fetcher) -> None:
    transport = FakeTransport({URL: html_response(URL, "")})
    await make_fetcher(transport, default_timeout_ms=30000).fetch(URL, 10000)
    assert transport.calls == [(URL, 10000)]


async def test_fetch_sends_browser_headers() -> None:
    seen: dict[str, str] = {}

    class RecordingTransport(FakeTransport):
        async def get(self, url, *, timeout_ms, headers):
            seen.update(headers)
            return html_response(url, "")

    await Fetcher(RecordingTransport(), user_agent="UA/1.0").fetch(URL)
    assert seen["User-Agent"] == "UA/1.0"
    assert "text/html" in seen["Accept"]


async def test_fetch_non_retryable_transport_error_is_raised_once(make_fetcher) -> None:
    transport = FakeTransport({URL: InvalidInputError("Too many redirects")})
    with pytest.raises(InvalidInputError):
        await make_fetcher(transport, max_retries=2).fetch(URL)
    assert len(transport.calls) == 1
