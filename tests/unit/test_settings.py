from __future__ import annotations

import pytest

from article_enhancer.config.settings import EnhancerSettings, get_settings, reset_settings


def test_defaults_match_pipeline_constants() -> None:
    s = EnhancerSettings(_env_file=None)
    assert s.fetch_timeout_ms == 30000
    assert s.fetch_max_retries == 2
    assert s.fetch_timeout_multiplier == 1.5
    assert s.content_min_length == 100
    assert s.max_references == 2
    assert s.llm_temperature == 0.7
    assert s.llm_deadline_seconds == 30.0
    assert s.last_error_max_length == 500
    s.validate()


def test_llm_key_accepts_provider_aliases(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    assert EnhancerSettings(_env_file=None).llm_api_key == "gsk-test"


@pytest.mark.parametrize(
    "field,value",
    [
        ("fetch_timeout_ms", 0),
        ("fetch_max_retries", -1),
        ("fetch_timeout_multiplier", 0.5),
        ("llm_temperature", 3.0),
        ("llm_deadline_seconds", 0),
        ("listing_max_articles", 0),
        ("search_num_results", 0),
        ("search_num_results", 11),
    ],
)
def test_validate_rejects_bad_values(field: str, value: float) -> None:
    with pytest.raises(ValueError):
        EnhancerSettings(_env_file=None, **{field: value}).validate()


def test_get_settings_is_cached_until_reset(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_settings()
    monkeypatch.setenv("SERVICE_NAME", "first")
    first = get_settings()
    monkeypatch.setenv("SERVICE_NAME", "second")
    assert get_settings() is first
    reset_settings()
    assert get_settings().service_name == "second"
    reset_settings()


def test_is_production() -> None:
    assert EnhancerSettings(_env_file=None, environment="Production").is_production
    assert not EnhancerSettings(_env_file=None, environment="development").is_production


def test_search_num_results_upper_bound_is_accepted() -> None:
    EnhancerSettings(_env_file=None, search_num_results=10).validate()
