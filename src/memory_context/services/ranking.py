"""Exact scoring, deduplication and time-decay ranking of candidates."""

import math
from collections.abc import Iterable, Sequence

import numpy as np

from memory_context.domain.models.retrieval import ScoredCandidate
from memory_context.domain.models.utils import age_in_days


def cosine_similarity(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1].

    Empty vectors, vectors of different dimension and zero-norm vectors all
    score 0 instead of raising.
    """
    if not len(vector_a) or len(vector_a) != len(vector_b):
        return 0.0

    a = np.asarray(vector_a, dtype=np.float64)
    b = np.asarray(vector_b, dtype=np.float64)

    norm_product = np.linalg.norm(a) * np.linalg.norm(b)
    if norm_product == 0:
        return 0.0

    similarity = float(np.dot(a, b) / norm_product)
    # Rounding can push parallel vectors a hair past 1
    return max(-1.0, min(1.0, similarity))


def decay_score(similarity: float, timestamp: int, now: int, half_life_days: float) -> float:
    """``similarity * exp(-age_days / half_life_days)`` with whole-day ages."""
    return similarity * math.exp(-age_in_days(timestamp, now) / half_life_days)


def deduplicate_by_text(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Keep one candidate per exact text: the latest timestamp wins.

    Equal timestamps fall back to the higher similarity, then the first seen.
    Output keeps the order in which each text first appeared.
    """
    kept: dict[str, ScoredCandidate] = {}
    for candidate in candidates:
        text = candidate.record.text
        current = kept.get(text)
        if current is None or _supersedes(candidate, current):
            kept[text] = candidate
    return list(kept.values())


def _supersedes(candidate: ScoredCandidate, current: ScoredCandidate) -> bool:
    if candidate.record.timestamp != current.record.timestamp:
        return candidate.record.timestamp > current.record.timestamp
    return candidate.similarity > current.similarity


def rank_with_decay(
    candidates: Iterable[ScoredCandidate],
    now: int,
    half_life_days: float,
) -> list[ScoredCandidate]:
    """Attach decayed final scores and sort best first (stable on ties)."""
    ranked = [
        candidate.model_copy(
            update={
                "final_score": decay_score(
                    candidate.similarity, candidate.record.timestamp, now, half_life_days
                )
            }
        )
        for candidate in candidates
    ]
    ranked.sort(key=lambda c: c.final_score, reverse=True)
    return ranked
