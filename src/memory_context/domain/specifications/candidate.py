"""Exclusion rules applied to scored retrieval candidates.

Each specification is satisfied by a candidate that must be DROPPED, so the
engine can count exclusions per rule.
"""

from typing import Literal

from pydantic import Field

from memory_context.core.constants import ECHO_WINDOW_MS, SESSION_WINDOW_TAGS
from memory_context.domain.models.retrieval import ScoredCandidate
from memory_context.domain.specifications.composite import BaseSpecification


class LowSimilaritySpecification(BaseSpecification):
    """Candidate scored below the similarity floor."""

    type: Literal["low_similarity"] = "low_similarity"
    min_similarity: float = Field(ge=-1.0, le=1.0)

    def is_satisfied_by(self, entity: ScoredCandidate) -> bool:
        return entity.similarity < self.min_similarity


class EchoSpecification(BaseSpecification):
    """Candidate that is a just-stored copy of the current query."""

    type: Literal["echo"] = "echo"
    query: str
    now: int
    window_ms: int = ECHO_WINDOW_MS

    def is_satisfied_by(self, entity: ScoredCandidate) -> bool:
        record = entity.record
        return record.text == self.query and self.now - record.timestamp < self.window_ms


class SessionWindowSpecification(BaseSpecification):
    """Conversation turn from the current session that is still in the prompt history.

    Only ``user_input``/``ai_output`` records are affected; manual notes and
    summaries from the same session stay retrievable.
    """

    type: Literal["session_window"] = "session_window"
    session_id: str
    exclude_after_timestamp: int
    tags: frozenset[str] = SESSION_WINDOW_TAGS

    def is_satisfied_by(self, entity: ScoredCandidate) -> bool:
        record = entity.record
        return (
            record.session_id == self.session_id
            and record.timestamp >= self.exclude_after_timestamp
            and record.effective_tag in self.tags
        )


class BlankTextSpecification(BaseSpecification):
    """Candidate with nothing to show in the prompt."""

    type: Literal["blank_text"] = "blank_text"

    def is_satisfied_by(self, entity: ScoredCandidate) -> bool:
        return not entity.record.text.strip()
