from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from article_enhancer.config.settings import EnhancerSettings
from article_enhancer.domain.models import Article, ArticleStatus
from article_enhancer.lifespan import lifespan_manager
from article_enhancer.main import _dump, build_parser


def _settings(tmp_path, **overrides) -> EnhancerSettings:
    values = {
        "_env_file": None,
        "environment": "testing",
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'articles.db'}",
        "llm_api_key": None,
    }
    values.update(overrides)
    return EnhancerSettings(**values)


async def test_lifespan_builds_services_without_llm(tmp_path) -> None:
    async with lifespan_manager(_settings(tmp_path)) as services:
        assert services.enhancement is None
        created = await services.articles.create({"title": "T", "content": "C"})
        assert (await services.articles.find_by_id(created.id)) is not None


async def test_lifespan_builds_enhancement_with_llm_key(tmp_path) -> None:
    async with lifespan_manager(_settings(tmp_path, llm_api_key="k")) as services:
        assert services.enhancement is not None


def test_cli_parser() -> None:
    args = build_parser().parse_args(["enhance", "abc", "--force"])
    assert args.command == "enhance"
    assert args.article_id == "abc"
    assert args.force

    args = build_parser().parse_args(["scrape", "https://a.com/x", "https://a.com/y"])
    assert args.urls == ["https://a.com/x", "https://a.com/y"]
    assert not args.no_save

    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_dump_serializes_articles() -> None:
    article = Article(
        id="1",
        title="T",
        content="C",
        status=ArticleStatus.ENHANCED,
        last_enhanced=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    data = json.loads(_dump([article]))
    assert data[0]["status"] == "enhanced"
    assert data[0]["last_enhanced"] == "2024-05-01T00:00:00+00:00"
