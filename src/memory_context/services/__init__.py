"""Service layer interfaces and implementations."""

from collections.abc import Collection
from typing import Protocol, runtime_checkable

from memory_context.domain.models.memory import MemoryRecord


@runtime_checkable
class EmbeddingService(Protocol):
    """Protocol for embedding providers."""

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding for a single text.

        Raises:
            EmbeddingError: If no vector can be produced
        """
        ...


@runtime_checkable
class MemoryStore(Protocol):
    """Protocol for approximate-nearest-neighbor memory stores."""

    async def has_any_records(self) -> bool:
        """Cheap check for whether anything has been stored yet."""
        ...

    async def search_candidates(
        self,
        query_vector: list[float],
        limit: int,
        allowed_tags: Collection[str],
    ) -> list[MemoryRecord]:
        """Fetch up to ``limit`` records near ``query_vector`` whose effective tag is allowed.

        An empty ``allowed_tags`` means no tag restriction.
        """
        ...

    async def save(
        self,
        text: str,
        tag: str,
        session_id: str | None = None,
        emotion_label: str | None = None,
    ) -> MemoryRecord:
        """Embed and persist a memory, returning the stored record."""
        ...


__all__ = ["EmbeddingService", "MemoryStore"]
