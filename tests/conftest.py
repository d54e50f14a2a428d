"""
Shared pytest fixtures.

Retrieval is exercised against in-process fakes for the embedding provider
and the memory store so the suite runs without network access. Vectors are
2-dimensional: the query embeds to ``[1, 0]`` and ``vector_with_cosine(c)``
builds a unit vector whose cosine similarity with it is exactly ``c``.
"""

from __future__ import annotations

import math
from collections.abc import Collection

import pytest

from memory_context.domain.models.memory import MemoryRecord, effective_tag

NOW = 1_700_000_000_000
DAY_MS = 86_400_000
QUERY_VECTOR = [1.0, 0.0]


def vector_with_cosine(cosine: float) -> list[float]:
    return [cosine, math.sqrt(max(0.0, 1.0 - cosine * cosine))]


def make_record(
    text: str,
    similarity: float = 0.9,
    age_ms: int = 30 * DAY_MS,
    tag: str = "manual",
    session_id: str | None = None,
) -> MemoryRecord:
    return MemoryRecord(
        text=text,
        embedding=vector_with_cosine(similarity),
        timestamp=NOW - age_ms,
        tag=tag,
        session_id=session_id,
    )


class FakeEmbeddingService:
    """Maps texts to fixed vectors and records every call."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, default: list[float] | None = None):
        self.vectors = vectors or {}
        self.default = default if default is not None else QUERY_VECTOR
        self.calls: list[str] = []
        self.error: BaseException | None = None

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))


class FakeMemoryStore:
    """Returns its records in insertion order, honouring the tag allow-list."""

    def __init__(self, records: list[MemoryRecord] | None = None):
        self.records = list(records or [])
        self.search_calls: list[dict] = []
        self.error: BaseException | None = None

    async def has_any_records(self) -> bool:
        return bool(self.records)

    async def search_candidates(
        self,
        query_vector: list[float],
        limit: int,
        allowed_tags: Collection[str],
    ) -> list[MemoryRecord]:
        self.search_calls.append(
            {"query_vector": list(query_vector), "limit": limit, "allowed_tags": set(allowed_tags)}
        )
        if self.error is not None:
            raise self.error
        matches = [r for r in self.records if not allowed_tags or effective_tag(r.tag) in allowed_tags]
        return matches[:limit]

    async def save(
        self,
        text: str,
        tag: str,
        session_id: str | None = None,
        emotion_label: str | None = None,
    ) -> MemoryRecord:
        record = MemoryRecord(
            text=text,
            embedding=QUERY_VECTOR,
            timestamp=NOW,
            tag=tag,
            session_id=session_id,
            emotion_label=emotion_label,
        )
        self.records.append(record)
        return record


@pytest.fixture
def embeddings():
    return FakeEmbeddingService()


@pytest.fixture
def store():
    return FakeMemoryStore()


@pytest.fixture
def service(embeddings, store):
    from memory_context.services.context_service import ContextRetrievalService

    return ContextRetrievalService(embeddings=embeddings, store=store, clock=lambda: NOW)
