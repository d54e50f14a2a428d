"""Context retrieval service.

Turns an incoming query into a short block of relevant memories for prompt
injection:

1. Skip everything (including the embedding call) when the store is empty
   or the query is blank.
2. Embed the query; failures surface as ``EmbeddingError``.
3. Fetch approximate candidates restricted to the tag allow-list.
4. Re-score every candidate with exact cosine similarity.
5. Drop low-similarity candidates, echoes of the current query, turns still
   visible in the current session's prompt history, and blank texts.
6. Collapse duplicate texts onto their latest copy.
7. Rank by similarity decayed with a half-life on age in days.
8. Format the top items.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from typing import TYPE_CHECKING

from memory_context.core.base import AIServiceErrorDetails, ErrorLevel, ValidationErrorDetails
from memory_context.core.config import RetrievalSettings
from memory_context.core.constants import (
    DEFAULT_ALLOWED_TAGS,
    DEFAULT_HALF_LIFE_DAYS,
    DEFAULT_MAX_CONTEXT_ITEMS,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_TOP_K_CANDIDATES,
)
from memory_context.core.decorators import with_error_handling
from memory_context.core.errors import EmbeddingError, InvalidInputError
from memory_context.core.logging import get_logger, log_context
from memory_context.domain.models.retrieval import ContextDebugInfo, ContextResult, ScoredCandidate
from memory_context.domain.models.utils import now_millis
from memory_context.domain.specifications import (
    BaseSpecification,
    BlankTextSpecification,
    EchoSpecification,
    LowSimilaritySpecification,
    SessionWindowSpecification,
)
from memory_context.services.context_formatter import ContextFormatter, summarize_selection
from memory_context.services.ranking import cosine_similarity, deduplicate_by_text, rank_with_decay

if TYPE_CHECKING:
    from memory_context.services import EmbeddingService, MemoryStore

logger = get_logger(__name__)


def exclude_window_start(message_timestamps: Sequence[int], exclude_rounds: int) -> int | None:
    """Start of the window of turns that are still in the prompt history.

    A round is one user message plus one assistant reply, so the window covers
    the last ``2 * exclude_rounds`` messages and starts at the earliest of them.

    Args:
        message_timestamps: Epoch-ms timestamps of recent messages, oldest first
        exclude_rounds: Number of most recent rounds to hide from retrieval

    Returns:
        The earliest timestamp in the window, or None when nothing is excluded
    """
    if not message_timestamps or exclude_rounds <= 0:
        return None
    return min(message_timestamps[-exclude_rounds * 2:])


class ContextRetrievalService:
    """Builds the memory context block injected into generation prompts."""

    def __init__(
        self,
        embeddings: EmbeddingService,
        store: MemoryStore,
        clock: Callable[[], int] = now_millis,
        formatter: ContextFormatter | None = None,
    ):
        self.embeddings = embeddings
        self.store = store
        self.clock = clock
        self.formatter = formatter or ContextFormatter()

    async def prepare_context(
        self,
        query: str,
        session_id: str | None = None,
        allowed_tags: Collection[str] = DEFAULT_ALLOWED_TAGS,
        exclude_after_timestamp: int | None = None,
        top_k_candidates: int = DEFAULT_TOP_K_CANDIDATES,
        max_context_items: int = DEFAULT_MAX_CONTEXT_ITEMS,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
    ) -> str:
        """Return the formatted memory block for ``query``, or ``""`` if nothing qualifies.

        Args:
            query: Incoming user text
            session_id: Current conversation session
            allowed_tags: Tags eligible for retrieval
            exclude_after_timestamp: Start of the current session's visible history
            top_k_candidates: Candidates fetched from the store
            max_context_items: Memories rendered into the block
            min_similarity: Cosine similarity floor
            half_life_days: Half-life of the time decay applied to similarity

        Returns:
            The memory block, or ``""`` when the store is empty, the query is
            blank or no candidate survives filtering. The first two cases
            return without calling the embedding provider.

        Raises:
            EmbeddingError: If a non-blank query cannot be embedded
            InvalidInputError: If ``half_life_days`` is not positive
        """
        result = await self.prepare_context_with_debug_info(
            query,
            session_id=session_id,
            allowed_tags=allowed_tags,
            exclude_after_timestamp=exclude_after_timestamp,
            top_k_candidates=top_k_candidates,
            max_context_items=max_context_items,
            min_similarity=min_similarity,
            half_life_days=half_life_days,
        )
        return result.context

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def prepare_context_with_debug_info(
        self,
        query: str,
        session_id: str | None = None,
        allowed_tags: Collection[str] = DEFAULT_ALLOWED_TAGS,
        exclude_after_timestamp: int | None = None,
        top_k_candidates: int = DEFAULT_TOP_K_CANDIDATES,
        max_context_items: int = DEFAULT_MAX_CONTEXT_ITEMS,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
    ) -> ContextResult:
        """Same as ``prepare_context`` but also returns aggregate retrieval statistics."""
        if half_life_days <= 0:
            raise InvalidInputError(
                message="half_life_days must be positive",
                details=ValidationErrorDetails(
                    source="context_service",
                    operation="prepare_context",
                    field="half_life_days",
                    actual_value=half_life_days,
                    constraint="> 0",
                ),
            )

        with log_context(operation="prepare_context", session_id=session_id):
            return await self._retrieve(
                query,
                session_id,
                allowed_tags,
                exclude_after_timestamp,
                top_k_candidates,
                max_context_items,
                min_similarity,
                half_life_days,
            )

    async def _retrieve(
        self,
        query: str,
        session_id: str | None,
        allowed_tags: Collection[str],
        exclude_after_timestamp: int | None,
        top_k_candidates: int,
        max_context_items: int,
        min_similarity: float,
        half_life_days: float,
    ) -> ContextResult:
        if not await self.store.has_any_records():
            logger.debug("Memory store is empty, skipping retrieval")
            return ContextResult(context="", debug_info=ContextDebugInfo(store_empty=True))

        if not query.strip():
            logger.debug("Blank query, skipping retrieval")
            return ContextResult(context="", debug_info=ContextDebugInfo())

        query_vector = await self._embed_query(query)

        records = await self.store.search_candidates(
            query_vector,
            limit=top_k_candidates,
            allowed_tags=frozenset(allowed_tags),
        )
        now = self.clock()

        scored = [
            ScoredCandidate(record=record, similarity=cosine_similarity(query_vector, record.embedding))
            for record in records
        ]
        debug_info = ContextDebugInfo(candidate_count=len(scored))

        stages = self._exclusion_stages(query, now, session_id, exclude_after_timestamp, min_similarity)
        survivors, exclusions = self._apply_exclusions(scored, stages)

        unique = deduplicate_by_text(survivors)
        ranked = rank_with_decay(unique, now, half_life_days)
        selection = ranked[:max_context_items]

        debug_info = summarize_selection(
            selection,
            debug_info.model_copy(update={**exclusions, "duplicates_removed": len(survivors) - len(unique)}),
        )
        context = self.formatter.format(selection)

        logger.debug(f"Prepared memory context: {debug_info}")
        return ContextResult(context=context, debug_info=debug_info)

    async def prepare_context_for_session(
        self,
        query: str,
        session_id: str | None = None,
        recent_message_timestamps: Sequence[int] = (),
        retrieval: RetrievalSettings | None = None,
    ) -> ContextResult:
        """Run retrieval with knobs taken from settings.

        The exclusion window is derived from the timestamps of the messages
        already in the prompt history and ``retrieval.exclude_rounds``.
        """
        if retrieval is None:
            from memory_context.core.config import settings

            retrieval = settings.retrieval

        return await self.prepare_context_with_debug_info(
            query,
            session_id=session_id,
            allowed_tags=retrieval.allowed_tags,
            exclude_after_timestamp=exclude_window_start(recent_message_timestamps, retrieval.exclude_rounds),
            top_k_candidates=retrieval.top_k_candidates,
            max_context_items=retrieval.max_context_items,
            min_similarity=retrieval.min_similarity,
            half_life_days=retrieval.half_life_days,
        )

    async def _embed_query(self, query: str) -> list[float]:
        try:
            vector = await self.embeddings.embed(query)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(
                message=f"Failed to embed query: {e!s}",
                details=self._embedding_details(query),
            ) from e

        if not vector:
            raise EmbeddingError(
                message="Embedding provider returned an empty vector",
                details=self._embedding_details(query),
            )
        return list(vector)

    def _embedding_details(self, query: str) -> AIServiceErrorDetails:
        return AIServiceErrorDetails(
            source="context_service",
            operation="embed_query",
            service_name=type(self.embeddings).__name__,
            text_length=len(query),
        )

    @staticmethod
    def _exclusion_stages(
        query: str,
        now: int,
        session_id: str | None,
        exclude_after_timestamp: int | None,
        min_similarity: float,
    ) -> list[tuple[str, BaseSpecification]]:
        stages: list[tuple[str, BaseSpecification]] = [
            ("excluded_low_similarity", LowSimilaritySpecification(min_similarity=min_similarity)),
            ("excluded_echo", EchoSpecification(query=query, now=now)),
        ]
        if session_id is not None and exclude_after_timestamp is not None:
            stages.append(
                (
                    "excluded_session_window",
                    SessionWindowSpecification(
                        session_id=session_id,
                        exclude_after_timestamp=exclude_after_timestamp,
                    ),
                )
            )
        # Dropping blanks before selection lets the next candidate take the slot
        stages.append(("excluded_blank", BlankTextSpecification()))
        return stages

    @staticmethod
    def _apply_exclusions(
        candidates: list[ScoredCandidate],
        stages: list[tuple[str, BaseSpecification]],
    ) -> tuple[list[ScoredCandidate], dict[str, int]]:
        survivors = candidates
        counts: dict[str, int] = {}
        for field_name, spec in stages:
            kept = [c for c in survivors if not spec.is_satisfied_by(c)]
            counts[field_name] = len(survivors) - len(kept)
            survivors = kept
        return survivors, counts
