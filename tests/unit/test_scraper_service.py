from __future__ import annotations

import pytest
import structlog
from structlog.testing import capture_logs

from article_enhancer.domain.errors import InvalidInputError, NoContentExtractedError, NotFoundError
from article_enhancer.services import scraper_service
from article_enhancer.services.content_extractor import ContentExtractor
from article_enhancer.services.link_discoverer import LinkDiscoverer
from article_enhancer.services.metadata_extractor import MetadataExtractor
from article_enhancer.services.scraper_service import ArticleScraperService

from fakes import FakeTransport, html_response

ARTICLE_URL = "https://example.com/blog/hello"

ARTICLE_HTML = f"""
<html>
  <head>
    <title>Doc title</title>
    <meta property="og:title" content="Hello World">
    <meta name="author" content="Jane Doe">
    <meta property="og:image" content="/images/cover.png">
  </head>
  <body>
    <nav>Menu</nav>
    <article><p>{"content " * 30}</p></article>
  </body>
</html>
"""


def _service(transport: FakeTransport, make_fetcher) -> ArticleScraperService:
    fetcher = make_fetcher(transport)
    return ArticleScraperService(fetcher, ContentExtractor(), MetadataExtractor(), LinkDiscoverer(fetcher))


async def test_scrape_article_reads_metadata_and_content(make_fetcher) -> None:
    transport = FakeTransport({ARTICLE_URL: html_response(ARTICLE_URL, ARTICLE_HTML)})
    article = await _service(transport, make_fetcher).scrape_article(ARTICLE_URL)

    assert article.title == "Hello World"
    assert article.author == "Jane Doe"
    assert article.image == "https://example.com/images/cover.png"
    assert article.content.startswith("content content")
    assert "Menu" not in article.content
    assert article.source_url == ARTICLE_URL


async def test_scrape_article_rejects_invalid_url(make_fetcher) -> None:
    with pytest.raises(InvalidInputError):
        await _service(FakeTransport(), make_fetcher).scrape_article("ftp://example.com/file")


async def test_scrape_article_rejects_non_html(make_fetcher) -> None:
    transport = FakeTransport({ARTICLE_URL: html_response(ARTICLE_URL, "{}", content_type="application/json")})
    with pytest.raises(InvalidInputError):
        await _service(transport, make_fetcher).scrape_article(ARTICLE_URL)


async def test_scrape_article_keeps_short_content(make_fetcher) -> None:
    transport = FakeTransport({ARTICLE_URL: html_response(ARTICLE_URL, "<html><body><p>Tiny.</p></body></html>")})
    article = await _service(transport, make_fetcher).scrape_article(ARTICLE_URL)
    assert article.content == "Tiny."
    assert article.title == "Untitled Article"


async def test_scrape_many_preserves_input_order_and_isolates_failures(make_fetcher) -> None:
    other = "https://example.com/blog/other"
    transport = FakeTransport(
        {
            ARTICLE_URL: html_response(ARTICLE_URL, ARTICLE_HTML),
            other: html_response(other, "<html><head><title>Other</title></head><body><p>Body</p></body></html>"),
        }
    )
    urls = ["https://example.com/blog/missing", ARTICLE_URL, "not a url", other]
    results = await _service(transport, make_fetcher).scrape_many(urls)

    assert [r.url for r in results] == urls
    assert [r.success for r in results] == [False, True, False, True]
    assert results[0].error == NotFoundError("The requested article was not found (404)").message
    assert results[3].article is not None and results[3].article.title == "Other"


async def test_scrape_many_empty_input(make_fetcher) -> None:
    assert await _service(FakeTransport(), make_fetcher).scrape_many([]) == []


@pytest.mark.parametrize("body", ["", "   \n\t  ", "<html><body>  </body></html>"])
async def test_scrape_article_without_content_raises(make_fetcher, body: str) -> None:
    transport = FakeTransport({ARTICLE_URL: html_response(ARTICLE_URL, body)})
    with pytest.raises(NoContentExtractedError):
        await _service(transport, make_fetcher).scrape_article(ARTICLE_URL)


async def test_scrape_article_warns_on_short_content(make_fetcher, monkeypatch: pytest.MonkeyPatch) -> None:
    transport = FakeTransport({ARTICLE_URL: html_response(ARTICLE_URL, "<html><body><p>Tiny.</p></body></html>")})
    with capture_logs() as logs:
        monkeypatch.setattr(scraper_service, "logger", structlog.get_logger())
        await _service(transport, make_fetcher).scrape_article(ARTICLE_URL)

    warnings = [e for e in logs if e["event"] == "content_suspiciously_short"]
    assert len(warnings) == 1
    assert warnings[0]["log_level"] == "warning"
    assert warnings[0]["length"] == len("Tiny.")


async def test_scrape_article_rejects_non_2xx_page(make_fetcher) -> None:
    denied = "<html><body><h1>Access denied</h1><p>You do not have permission to view this page.</p></body></html>"
    transport = FakeTransport({ARTICLE_URL: html_response(ARTICLE_URL, denied, status=403)})
    with pytest.raises(InvalidInputError) as exc:
        await _service(transport, make_fetcher).scrape_article(ARTICLE_URL)
    assert "403" in exc.value.message


async def test_scrape_many_fetches_concurrently(make_fetcher) -> None:
    urls = [f"https://example.com/blog/post-{i}" for i in range(5)]
    transport = FakeTransport({u: html_response(u, ARTICLE_HTML) for u in urls}, delay=0.05)

    results = await _service(transport, make_fetcher).scrape_many(urls)

    assert all(r.success for r in results)
    assert transport.peak_in_flight == 5
