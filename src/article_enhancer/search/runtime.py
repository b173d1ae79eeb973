"""Search collaborator interface."""

from __future__ import annotations

from ..domain.models import Reference


class SearchProvider:
    async def search(self, query: str) -> list[Reference]:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None
