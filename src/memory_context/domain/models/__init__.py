"""Domain models for memory context retrieval."""

from .chunking import ChunkResult
from .memory import MemoryRecord, MemoryTag, effective_tag, part_tag
from .retrieval import ContextDebugInfo, ContextResult, ScoredCandidate

__all__ = [
    "ChunkResult",
    "ContextDebugInfo",
    "ContextResult",
    "MemoryRecord",
    "MemoryTag",
    "ScoredCandidate",
    "effective_tag",
    "part_tag",
]
