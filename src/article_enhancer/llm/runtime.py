"""LLM runtime interface.

The enhancement service talks to generative-text providers through this
interface only. Adapters classify provider failures into domain errors.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, TypeVar

from ..domain.errors import LLMTimeoutError
from ..utils.deadline import Deadline

T = TypeVar("T")


@dataclass(frozen=True)
class LLMRequest:
    system_prompt: str
    prompt: str
    model: str
    temperature: float
    max_tokens: int
    deadline: Deadline


class LLMRuntime:
    async def complete(self, req: LLMRequest) -> str:  # pragma: no cover - interface
        raise NotImplementedError


async def run_with_deadline(call: Awaitable[T], deadline: Deadline) -> T:
    """Await ``call`` until ``deadline``; on expiry the call is cancelled.

    Cancellation is delivered into the call itself, so adapters stop reading
    and release their connection instead of finishing in the background.
    """
    remaining = deadline.remaining()
    if remaining <= 0:
        if asyncio.iscoroutine(call):
            call.close()
        raise LLMTimeoutError(f"Generative-text request timed out after {deadline.seconds:g} seconds")
    try:
        return await asyncio.wait_for(call, timeout=remaining)
    except asyncio.TimeoutError as e:
        raise LLMTimeoutError(
            f"Generative-text request timed out after {deadline.seconds:g} seconds",
            detail=str(e) or None,
        ) from e
