"""Process-local memory store with brute-force numpy search."""

from __future__ import annotations

from collections.abc import Callable, Collection
from typing import TYPE_CHECKING
from uuid import UUID

import numpy as np

from memory_context.core.logging import get_logger
from memory_context.domain.models.memory import MemoryRecord, effective_tag
from memory_context.domain.models.utils import now_millis

if TYPE_CHECKING:
    from memory_context.services import EmbeddingService

logger = get_logger(__name__)


class InMemoryMemoryStore:
    """Keeps records in a dict and ranks them by exact cosine similarity.

    Suitable for tests, notebooks and small single-process deployments.
    """

    def __init__(self, embeddings: EmbeddingService, clock: Callable[[], int] = now_millis):
        self.embeddings = embeddings
        self.clock = clock
        self._records: dict[UUID, MemoryRecord] = {}

    async def has_any_records(self) -> bool:
        return bool(self._records)

    async def count(self) -> int:
        return len(self._records)

    async def search_candidates(
        self,
        query_vector: list[float],
        limit: int,
        allowed_tags: Collection[str],
    ) -> list[MemoryRecord]:
        if limit <= 0:
            return []

        pool = [
            record
            for record in self._records.values()
            if record.embedding
            and len(record.embedding) == len(query_vector)
            and (not allowed_tags or effective_tag(record.tag) in allowed_tags)
        ]
        if not pool:
            return []

        matrix = np.asarray([record.embedding for record in pool], dtype=np.float64)
        query = np.asarray(query_vector, dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            scores = np.where(norms > 0, matrix @ query / norms, 0.0)

        order = np.argsort(-scores, kind="stable")[:limit]
        return [pool[i] for i in order]

    async def save(
        self,
        text: str,
        tag: str,
        session_id: str | None = None,
        emotion_label: str | None = None,
    ) -> MemoryRecord:
        embedding = await self.embeddings.embed(text)
        record = MemoryRecord(
            text=text,
            embedding=embedding,
            timestamp=self.clock(),
            tag=tag,
            session_id=session_id,
            emotion_label=emotion_label,
        )
        self.add(record)
        return record

    def add(self, record: MemoryRecord) -> None:
        """Insert an already-embedded record as is."""
        self._records[record.id] = record
        logger.debug(f"Stored memory {record.id} (tag={record.tag})")

    async def delete(self, record_id: UUID) -> bool:
        return self._records.pop(record_id, None) is not None

    async def clear(self) -> None:
        self._records.clear()
