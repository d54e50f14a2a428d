"""Transient models produced while building a memory context."""

from pydantic import BaseModel, ConfigDict, Field

from memory_context.domain.models.memory import MemoryRecord


class ScoredCandidate(BaseModel):
    """A candidate record with its exact similarity and decayed score."""

    model_config = ConfigDict(frozen=True)

    record: MemoryRecord
    similarity: float
    final_score: float = 0.0


class ContextDebugInfo(BaseModel):
    """Aggregate statistics about one retrieval. Never carries memory text."""

    store_empty: bool = False
    candidate_count: int = 0
    excluded_low_similarity: int = 0
    excluded_echo: int = 0
    excluded_session_window: int = 0
    excluded_blank: int = 0
    duplicates_removed: int = 0
    hit_count: int = 0
    min_similarity: float = 0.0
    max_similarity: float = 0.0
    avg_similarity: float = 0.0
    tag_distribution: dict[str, int] = Field(default_factory=dict)

    def __str__(self) -> str:
        tags = ", ".join(f"{tag}={count}" for tag, count in sorted(self.tag_distribution.items()))
        return (
            f"candidates={self.candidate_count} hits={self.hit_count} "
            f"excluded(low_sim={self.excluded_low_similarity}, echo={self.excluded_echo}, "
            f"session={self.excluded_session_window}, blank={self.excluded_blank}, "
            f"dup={self.duplicates_removed}) "
            f"sim(min={self.min_similarity:.3f}, max={self.max_similarity:.3f}, avg={self.avg_similarity:.3f}) "
            f"tags[{tags}]"
        )


class ContextResult(BaseModel):
    """Formatted context plus the statistics that produced it."""

    context: str
    debug_info: ContextDebugInfo
