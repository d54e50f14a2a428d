"""Chunking result model."""

from pydantic import BaseModel


class ChunkResult(BaseModel):
    """Output of a split, with the metadata the save path needs."""

    chunks: list[str]
    original_length: int
    was_split: bool
    chunk_count: int
