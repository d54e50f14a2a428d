"""
Tests for infrastructure/stores/in_memory.py: numpy-backed local store.
"""

from __future__ import annotations

import pytest

from conftest import NOW, FakeEmbeddingService, make_record, vector_with_cosine
from memory_context.infrastructure.stores import InMemoryMemoryStore
from memory_context.services import MemoryStore


@pytest.fixture
def local_store():
    embeddings = FakeEmbeddingService(vectors={"tea": vector_with_cosine(0.9)})
    return InMemoryMemoryStore(embeddings, clock=lambda: NOW)


def test_satisfies_store_protocol(local_store):
    assert isinstance(local_store, MemoryStore)


async def test_empty_store(local_store):
    assert await local_store.has_any_records() is False
    assert await local_store.search_candidates([1.0, 0.0], limit=5, allowed_tags=set()) == []


async def test_save_embeds_and_stamps(local_store):
    record = await local_store.save("tea", "manual", session_id="S")

    assert record.embedding == pytest.approx(vector_with_cosine(0.9))
    assert record.timestamp == NOW
    assert await local_store.has_any_records() is True
    assert await local_store.count() == 1


async def test_search_orders_by_similarity_and_limits(local_store):
    for text, sim in [("low", 0.1), ("high", 0.95), ("mid", 0.5)]:
        local_store.add(make_record(text, similarity=sim))

    results = await local_store.search_candidates([1.0, 0.0], limit=2, allowed_tags=set())

    assert [r.text for r in results] == ["high", "mid"]


async def test_search_filters_on_effective_tag(local_store):
    local_store.add(make_record("part", tag="summary_part_2"))
    local_store.add(make_record("reply", tag="ai_output"))

    results = await local_store.search_candidates([1.0, 0.0], limit=10, allowed_tags={"summary"})

    assert [r.text for r in results] == ["part"]


async def test_search_skips_mismatched_dimensions(local_store):
    local_store.add(make_record("2d"))
    local_store.add(make_record("3d").model_copy(update={"embedding": [1.0, 0.0, 0.0]}))

    results = await local_store.search_candidates([1.0, 0.0], limit=10, allowed_tags=set())

    assert [r.text for r in results] == ["2d"]


async def test_delete_and_clear(local_store):
    record = await local_store.save("tea", "manual")
    local_store.add(make_record("other"))

    assert await local_store.delete(record.id) is True
    assert await local_store.delete(record.id) is False
    await local_store.clear()
    assert await local_store.has_any_records() is False
