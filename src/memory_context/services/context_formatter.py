"""Rendering of the memory block and its privacy-safe statistics."""

from collections import Counter
from collections.abc import Sequence

from memory_context.core.constants import CONTEXT_HEADER, CONTEXT_TIMESTAMP_FORMAT
from memory_context.domain.models.retrieval import ContextDebugInfo, ScoredCandidate
from memory_context.domain.models.utils import format_timestamp


class ContextFormatter:
    """Formats ranked candidates for prompt injection.

    Downstream prompt templates match on the header, the ``- [`` line prefix
    and the bracketed tag, so the layout is fixed::

        Relevant Memories (for reference):
        - [2024-05-01 09:30][manual] Likes green tea
    """

    def __init__(self, timestamp_format: str = CONTEXT_TIMESTAMP_FORMAT):
        self.timestamp_format = timestamp_format

    def format_line(self, candidate: ScoredCandidate) -> str:
        record = candidate.record
        when = format_timestamp(record.timestamp, self.timestamp_format)
        return f"- [{when}][{record.effective_tag}] {record.text}"

    def format(self, selection: Sequence[ScoredCandidate]) -> str:
        """Render the selection in ranked order; empty selection renders as ``""``."""
        lines = [self.format_line(c) for c in selection if c.record.text.strip()]
        if not lines:
            return ""
        return "\n".join([CONTEXT_HEADER, *lines]).rstrip()


def summarize_selection(selection: Sequence[ScoredCandidate], debug_info: ContextDebugInfo) -> ContextDebugInfo:
    """Fill hit count, similarity spread and tag histogram from the final selection."""
    if not selection:
        return debug_info.model_copy(
            update={
                "hit_count": 0,
                "min_similarity": 0.0,
                "max_similarity": 0.0,
                "avg_similarity": 0.0,
                "tag_distribution": {},
            }
        )

    similarities = [c.similarity for c in selection]
    return debug_info.model_copy(
        update={
            "hit_count": len(selection),
            "min_similarity": min(similarities),
            "max_similarity": max(similarities),
            "avg_similarity": sum(similarities) / len(similarities),
            "tag_distribution": dict(Counter(c.record.effective_tag for c in selection)),
        }
    )
