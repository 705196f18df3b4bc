"""In-memory registry of revisions in flight, keyed by caller item id."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from app.services.errors import RevisionInProgressError


class RevisionRegistry:
    """Allows at most one outstanding revision per item.

    A second claim for the same item is rejected rather than queued, so the
    card always ends up with the result of the revision the user saw start.
    """

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    def try_claim(self, item_id: str) -> bool:
        if item_id in self._in_flight:
            return False
        self._in_flight.add(item_id)
        return True

    def release(self, item_id: str) -> None:
        self._in_flight.discard(item_id)

    def is_revising(self, item_id: str) -> bool:
        return item_id in self._in_flight

    @asynccontextmanager
    async def claim(self, item_id: str) -> AsyncIterator[None]:
        """Hold ``item_id`` for the body of the block; raise if already held."""

        if not self.try_claim(item_id):
            raise RevisionInProgressError(
                f"A revision for item {item_id} is already in progress",
                stage="revising",
            )
        try:
            yield
        finally:
            self.release(item_id)


__all__ = ["RevisionRegistry"]
