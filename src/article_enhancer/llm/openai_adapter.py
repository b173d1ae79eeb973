"""OpenAI-compatible adapter.

Uses the official ``openai`` SDK against any OpenAI-compatible endpoint
(Groq by default). Provider failures are classified here, once, into typed
domain errors; nothing downstream inspects error text.
"""

from __future__ import annotations

import openai
from openai import AsyncOpenAI

from ..domain.errors import (
    AuthError,
    EnhancementFailedError,
    EnhancerDomainError,
    LLMTimeoutError,
    QuotaExceededError,
    RateLimitedError,
)
from ..observability.logger import get_logger
from .runtime import LLMRequest, LLMRuntime

logger = get_logger(__name__)


def _retry_after(exc: openai.APIStatusError) -> float | None:
    raw = exc.response.headers.get("retry-after") if exc.response is not None else None
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None


def classify_openai_error(exc: openai.OpenAIError) -> EnhancerDomainError:
    """Map an SDK exception to the matching domain error."""
    detail = str(exc)
    if isinstance(exc, openai.APITimeoutError):
        return LLMTimeoutError(
            "Request timed out - the generative-text service took too long to respond",
            detail=detail,
        )
    if isinstance(exc, openai.AuthenticationError):
        return AuthError("Authentication error - please check the generative-text API key", detail=detail)
    if isinstance(exc, openai.RateLimitError):
        code = str(getattr(exc, "code", "") or "")
        if code == "insufficient_quota" or "quota" in detail.lower():
            return QuotaExceededError(
                "You exceeded your current quota. Please check your account billing and usage limits.",
                detail=detail,
                retry_after=_retry_after(exc),
            )
        return RateLimitedError(
            "Rate limit exceeded - please try again later",
            detail=detail,
            retry_after=_retry_after(exc),
        )
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code == 401:
            return AuthError("Authentication error - please check the generative-text API key", detail=detail)
        return EnhancementFailedError(f"Generative-text request failed (status {exc.status_code})", detail=detail)
    if isinstance(exc, openai.APIConnectionError):
        return EnhancementFailedError("Could not reach the generative-text service", detail=detail)
    return EnhancementFailedError("Generative-text request failed", detail=detail)


class OpenAIAdapter(LLMRuntime):
    def __init__(self, *, api_key: str | None, base_url: str | None = None, max_retries: int = 0):
        """
        Args:
            api_key: Provider API key. Required.
            base_url: OpenAI-compatible base URL. If None, uses the OpenAI default.
            max_retries: SDK-level retries. Kept at 0 so the deadline is the only budget.
        """
        if not api_key:
            raise ValueError("LLM API key required. Set LLM_API_KEY (or GROQ_API_KEY / OPENAI_API_KEY).")
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=max_retries)

    async def complete(self, req: LLMRequest) -> str:
        timeout = max(0.001, req.deadline.remaining())
        try:
            response = await self._client.chat.completions.create(
                model=req.model,
                messages=[
                    {"role": "system", "content": req.system_prompt},
                    {"role": "user", "content": req.prompt},
                ],
                temperature=float(req.temperature),
                max_tokens=int(req.max_tokens),
                timeout=timeout,
            )
        except openai.OpenAIError as e:
            err = classify_openai_error(e)
            logger.warning("llm_request_failed", code=err.info.code.value, error=str(e))
            raise err from e

        text = response.choices[0].message.content if response.choices else None
        if not isinstance(text, str) or not text.strip():
            raise EnhancementFailedError("Received empty content from the generative-text service")
        return text.strip()

    async def close(self) -> None:
        await self._client.close()
