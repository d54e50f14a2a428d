"""
Tests for services/context_service.py: memory retrieval for prompt injection.

Covers:
* Exclusions: similarity floor, echo of the query, session window, blanks
* Deduplication: latest copy of a text wins
* Ranking: time decay lets recent memories beat stale ones
* Collaborator contract: default allow-list, empty store short-circuit
* Failures: embedding errors propagate, store errors pass through
* Debug info and the settings-driven entry point
"""

from __future__ import annotations

import asyncio
import re

import pytest

from conftest import DAY_MS, NOW, FakeMemoryStore, make_record
from memory_context.core.config import RetrievalSettings
from memory_context.core.errors import EmbeddingError, InvalidInputError, StoreError
from memory_context.services.context_service import ContextRetrievalService, exclude_window_start

LINE_RE = re.compile(r"^- \[\d{4}-\d{2}-\d{2} \d{2}:\d{2}\]\[(?P<tag>[^\]]+)\] (?P<text>.*)$")


def texts_in(context: str) -> list[str]:
    return [m.group("text") for line in context.splitlines()[1:] if (m := LINE_RE.match(line))]


# ── Exclusions ────────────────────────────────────────────────────────

class TestExclusions:
    async def test_example_scenario(self, service, store):
        store.records = [
            make_record("low_sim", similarity=0.2),
            make_record("hello", similarity=1.0, age_ms=1_000, tag="user_input"),
            make_record("kept", similarity=0.4),
        ]

        context = await service.prepare_context("hello", min_similarity=0.30)

        assert texts_in(context) == ["kept"]

    async def test_below_similarity_floor_is_dropped(self, service, store):
        store.records = [make_record("a", similarity=0.29), make_record("b", similarity=0.31)]

        context = await service.prepare_context("q", min_similarity=0.30)

        assert texts_in(context) == ["b"]

    async def test_echo_dropped_regardless_of_similarity(self, service, store):
        store.records = [make_record("hi there", similarity=1.0, age_ms=2_999, tag="user_input")]

        assert await service.prepare_context("hi there") == ""

    async def test_identical_text_older_than_echo_window_is_kept(self, service, store):
        store.records = [make_record("hi there", similarity=1.0, age_ms=3_000, tag="user_input")]

        assert texts_in(await service.prepare_context("hi there")) == ["hi there"]

    async def test_session_window(self, service, store):
        cutoff = NOW - 60_000
        store.records = [
            make_record("same session turn", age_ms=10_000, tag="user_input", session_id="S"),
            make_record("same session note", age_ms=10_000, tag="manual", session_id="S"),
            make_record("other session turn", age_ms=10_000, tag="user_input", session_id="T"),
            make_record("earlier turn", age_ms=120_000, tag="user_input", session_id="S"),
        ]

        result = await service.prepare_context_with_debug_info(
            "q", session_id="S", exclude_after_timestamp=cutoff
        )

        assert sorted(texts_in(result.context)) == ["earlier turn", "other session turn", "same session note"]
        assert result.debug_info.excluded_session_window == 1

    async def test_session_window_applies_to_ai_output_parts(self, service, store):
        store.records = [make_record("reply", age_ms=1_000, tag="ai_output_part_2", session_id="S")]

        context = await service.prepare_context(
            "q",
            session_id="S",
            allowed_tags={"ai_output"},
            exclude_after_timestamp=NOW - 60_000,
        )

        assert context == ""

    async def test_null_exclude_timestamp_disables_session_window(self, service, store):
        store.records = [make_record("turn", age_ms=1_000, tag="user_input", session_id="S")]

        result = await service.prepare_context_with_debug_info("q", session_id="S")

        assert texts_in(result.context) == ["turn"]
        assert result.debug_info.excluded_session_window == 0

    async def test_blank_candidates_do_not_take_a_slot(self, service, store):
        store.records = [
            make_record("   ", similarity=0.99),
            make_record("first", similarity=0.9),
            make_record("second", similarity=0.8),
        ]

        result = await service.prepare_context_with_debug_info("q", max_context_items=2)

        assert texts_in(result.context) == ["first", "second"]
        assert result.debug_info.excluded_blank == 1
        assert result.debug_info.hit_count == 2

    async def test_dimension_mismatch_scores_zero(self, service, store):
        record = make_record("odd").model_copy(update={"embedding": [1.0, 0.0, 0.0]})
        store.records = [record]

        result = await service.prepare_context_with_debug_info("q")

        assert result.context == ""
        assert result.debug_info.excluded_low_similarity == 1


# ── Deduplication and ranking ─────────────────────────────────────────

class TestDeduplicationAndRanking:
    async def test_latest_copy_of_text_wins(self, service, store):
        store.records = [
            make_record("likes tea", similarity=0.9, age_ms=5 * DAY_MS, tag="manual"),
            make_record("likes tea", similarity=0.9, age_ms=1 * DAY_MS, tag="summary"),
        ]

        result = await service.prepare_context_with_debug_info("q")

        lines = result.context.splitlines()[1:]
        assert len(lines) == 1
        assert LINE_RE.match(lines[0]).group("tag") == "summary"
        assert result.debug_info.duplicates_removed == 1

    async def test_recency_overcomes_similarity_deficit(self, service, store):
        store.records = [
            make_record("stale", similarity=1.0, age_ms=15 * DAY_MS),
            make_record("fresh", similarity=0.35, age_ms=0),
        ]

        context = await service.prepare_context("q", half_life_days=14.0)

        assert texts_in(context) == ["fresh", "stale"]

    async def test_selection_is_capped(self, service, store):
        store.records = [make_record(f"m{i}", similarity=0.9 - i * 0.01) for i in range(10)]

        context = await service.prepare_context("q", max_context_items=3)

        assert texts_in(context) == ["m0", "m1", "m2"]

    async def test_format_layout(self, service, store):
        store.records = [make_record("Prefers green tea", tag="manual_part_1")]

        context = await service.prepare_context("q")

        header, line = context.split("\n")
        assert header == "Relevant Memories (for reference):"
        assert LINE_RE.match(line).group("tag") == "manual"
        assert context == context.rstrip()

    async def test_out_of_range_timestamp_still_formats(self, service, store):
        store.records = [
            make_record("far future", age_ms=NOW - 10**17),
            make_record("normal", similarity=0.5),
        ]

        context = await service.prepare_context("q")

        lines = context.splitlines()
        assert lines[1] == f"- [{10**17}][manual] far future"
        assert texts_in(context) == ["normal"]


# ── Collaborator contract ─────────────────────────────────────────────

class TestCollaborators:
    async def test_default_allow_list(self, service, store):
        store.records = [make_record("x")]

        await service.prepare_context("q")

        assert store.search_calls[0]["allowed_tags"] == {"manual", "summary", "user_input"}
        assert store.search_calls[0]["limit"] == 20

    async def test_empty_store_skips_embedding(self, service, embeddings):
        result = await service.prepare_context_with_debug_info("q")

        assert result.context == ""
        assert result.debug_info.store_empty is True
        assert embeddings.calls == []

    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_is_not_an_error(self, service, store, embeddings, query):
        store.records = [make_record("x")]

        result = await service.prepare_context_with_debug_info(query)

        assert result.context == ""
        assert result.debug_info.candidate_count == 0
        assert embeddings.calls == []

    async def test_no_candidates_is_not_an_error(self, service, store):
        store.records = [make_record("x", tag="ai_output")]

        result = await service.prepare_context_with_debug_info("q")

        assert result.context == ""
        assert result.debug_info.candidate_count == 0
        assert result.debug_info.hit_count == 0

    async def test_log_context_bound_during_retrieval(self, embeddings):
        from memory_context.core.logging import get_log_context

        seen: list[dict] = []

        class RecordingStore(FakeMemoryStore):
            async def search_candidates(self, query_vector, limit, allowed_tags):
                seen.append(get_log_context())
                return await super().search_candidates(query_vector, limit, allowed_tags)

        service = ContextRetrievalService(
            embeddings=embeddings, store=RecordingStore([make_record("x")]), clock=lambda: NOW
        )

        await service.prepare_context("q", session_id="S")

        assert seen == [{"operation": "prepare_context", "session_id": "S"}]
        assert get_log_context() == {}


# ── Failures ──────────────────────────────────────────────────────────

class TestFailures:
    async def test_embedding_error_propagates(self, service, store, embeddings):
        store.records = [make_record("x")]
        embeddings.error = EmbeddingError("provider down")

        with pytest.raises(EmbeddingError):
            await service.prepare_context("q")

    async def test_foreign_embedding_error_is_wrapped(self, service, store, embeddings):
        store.records = [make_record("x")]
        embeddings.error = ConnectionError("reset by peer")

        with pytest.raises(EmbeddingError) as exc_info:
            await service.prepare_context("q")
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    async def test_empty_vector_is_an_embedding_error(self, store):
        from conftest import FakeEmbeddingService

        store.records = [make_record("x")]
        service = ContextRetrievalService(
            embeddings=FakeEmbeddingService(default=[]), store=store, clock=lambda: NOW
        )

        with pytest.raises(EmbeddingError):
            await service.prepare_context("q")

    async def test_cancellation_is_not_wrapped(self, service, store, embeddings):
        store.records = [make_record("x")]
        embeddings.error = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await service.prepare_context("q")

    async def test_store_error_passes_through(self, embeddings):
        store = FakeMemoryStore([make_record("x")])
        store.error = StoreError("index offline")
        service = ContextRetrievalService(embeddings=embeddings, store=store, clock=lambda: NOW)

        with pytest.raises(StoreError):
            await service.prepare_context("q")

    async def test_non_positive_half_life_rejected(self, service):
        with pytest.raises(InvalidInputError):
            await service.prepare_context("q", half_life_days=0)


# ── Debug info ────────────────────────────────────────────────────────

class TestDebugInfo:
    async def test_statistics(self, service, store):
        store.records = [
            make_record("a", similarity=0.9, tag="manual"),
            make_record("b", similarity=0.5, tag="summary_part_1"),
            make_record("c", similarity=0.1),
            make_record("q", similarity=1.0, age_ms=500, tag="user_input"),
        ]

        info = (await service.prepare_context_with_debug_info("q")).debug_info

        assert info.candidate_count == 4
        assert info.excluded_low_similarity == 1
        assert info.excluded_echo == 1
        assert info.hit_count == 2
        assert info.max_similarity == pytest.approx(0.9)
        assert info.min_similarity == pytest.approx(0.5)
        assert info.avg_similarity == pytest.approx(0.7)
        assert info.tag_distribution == {"manual": 1, "summary": 1}

    async def test_debug_string_has_no_memory_text(self, service, store):
        store.records = [make_record("secret diary entry")]

        info = (await service.prepare_context_with_debug_info("q")).debug_info

        assert "secret" not in str(info)


# ── Settings-driven retrieval ─────────────────────────────────────────

class TestExcludeWindowStart:
    def test_no_history(self):
        assert exclude_window_start([], 2) is None

    def test_zero_rounds(self):
        assert exclude_window_start([1, 2, 3], 0) is None

    def test_last_two_messages_per_round(self):
        assert exclude_window_start([10, 20, 30, 40, 50], 2) == 20

    def test_window_longer_than_history(self):
        assert exclude_window_start([30, 40], 5) == 30


class TestPrepareContextForSession:
    async def test_uses_retrieval_settings(self, service, store):
        store.records = [
            make_record("old turn", age_ms=DAY_MS, tag="user_input", session_id="S"),
            make_record("recent reply", age_ms=1_000, tag="ai_output", session_id="S"),
        ]
        retrieval = RetrievalSettings(include_ai_output=True, exclude_rounds=1, top_k_candidates=7)

        result = await service.prepare_context_for_session(
            "q",
            session_id="S",
            recent_message_timestamps=[NOW - DAY_MS, NOW - 5_000, NOW - 1_000],
            retrieval=retrieval,
        )

        assert store.search_calls[0]["allowed_tags"] == {"manual", "summary", "user_input", "ai_output"}
        assert store.search_calls[0]["limit"] == 7
        assert texts_in(result.context) == ["old turn"]
        assert result.debug_info.excluded_session_window == 1
