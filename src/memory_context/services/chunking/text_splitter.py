"""Recursive character text splitting with overlapping chunks.

Long memories are cut at the coarsest boundary that keeps the pieces under
the size limit: paragraphs first, then lines, sentences, clauses and finally
words. Text with no usable boundary is hard-cut. Small pieces are then merged
back up to the size limit and each chunk is prefixed with the tail of the
previous one so context spanning a boundary is not lost.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

from memory_context.core.base import ValidationErrorDetails
from memory_context.core.constants import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE
from memory_context.core.errors import InvalidInputError
from memory_context.domain.models.chunking import ChunkResult

if TYPE_CHECKING:
    from memory_context.core.config import ChunkingSettings

DEFAULT_SEPARATORS: tuple[str, ...] = (
    "\n\n",  # paragraph
    "\n",  # line
    "。",
    "！",
    "？",
    "；",
    ".",
    "!",
    "?",
    ";",
    "，",
    ",",
    " ",
)


def needs_splitting(text: str, threshold: int = DEFAULT_CHUNK_SIZE) -> bool:
    return len(text) > threshold


def split_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    separators: Sequence[str] = DEFAULT_SEPARATORS,
) -> list[str]:
    """Split ``text`` into ordered chunks of at most ``chunk_size`` characters plus overlap.

    Args:
        text: Text to split
        chunk_size: Target maximum chunk length before the overlap prefix
        chunk_overlap: Characters repeated from the end of the previous chunk
        separators: Boundaries to split on, highest priority first

    Returns:
        ``[]`` for blank text, ``[text]`` when it already fits, otherwise the chunks.
        With ``chunk_overlap=0`` the chunks concatenate back to ``text``.

    Raises:
        InvalidInputError: If ``chunk_size`` is not positive or ``chunk_overlap`` is negative
    """
    _validate(chunk_size, chunk_overlap)

    if not text.strip():
        return []
    if len(text) <= chunk_size:
        return [text]

    pieces = _recursive_split(text, [s for s in separators if s], chunk_size)
    merged = _merge_pieces(pieces, chunk_size)
    if chunk_overlap == 0 or len(merged) <= 1:
        return merged
    return _add_overlap(merged, chunk_overlap)


def _validate(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise InvalidInputError(
            message="chunk_size must be positive",
            details=ValidationErrorDetails(
                source="text_splitter",
                operation="split",
                field="chunk_size",
                actual_value=chunk_size,
                constraint="> 0",
            ),
        )
    if chunk_overlap < 0:
        raise InvalidInputError(
            message="chunk_overlap must not be negative",
            details=ValidationErrorDetails(
                source="text_splitter",
                operation="split",
                field="chunk_overlap",
                actual_value=chunk_overlap,
                constraint=">= 0",
            ),
        )


def _recursive_split(text: str, separators: Sequence[str], chunk_size: int) -> list[str]:
    if len(text) <= chunk_size:
        return [text]
    if not separators:
        return _hard_cut(text, chunk_size)

    separator, remaining = separators[0], separators[1:]
    pieces = _split_keeping_separator(text, separator)
    if len(pieces) <= 1:
        return _recursive_split(text, remaining, chunk_size)

    result: list[str] = []
    for piece in pieces:
        if len(piece) <= chunk_size:
            result.append(piece)
        else:
            result.extend(_recursive_split(piece, remaining, chunk_size))
    return result


def _split_keeping_separator(text: str, separator: str) -> list[str]:
    """Split so every piece but the last ends with ``separator``.

    ``"a. b. c"`` on ``"."`` gives ``["a.", " b.", " c"]``.
    """
    pieces: list[str] = []
    start = 0
    while (index := text.find(separator, start)) != -1:
        end = index + len(separator)
        pieces.append(text[start:end])
        start = end
    if start < len(text):
        pieces.append(text[start:])
    return pieces


def _hard_cut(text: str, chunk_size: int) -> list[str]:
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def _merge_pieces(pieces: Sequence[str], chunk_size: int) -> list[str]:
    merged: list[str] = []
    current = ""
    for piece in pieces:
        if current and len(current) + len(piece) > chunk_size:
            merged.append(current)
            current = piece
        else:
            current += piece
    if current:
        merged.append(current)
    return merged


def _add_overlap(chunks: Sequence[str], chunk_overlap: int) -> list[str]:
    result = [chunks[0]]
    for previous, current in zip(chunks, chunks[1:]):
        overlap = previous[-chunk_overlap:]
        if current.startswith(overlap):
            result.append(current)
        else:
            result.append(overlap + current)
    return result


class TextSplitter:
    """Splitter bound to a chunk size, overlap and separator list.

    Usage::

        splitter = TextSplitter(chunk_size=500, chunk_overlap=50)
        result = splitter.split_with_metadata(long_text)
        if result.was_split:
            ...
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        separators: Sequence[str] = DEFAULT_SEPARATORS,
    ):
        _validate(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = tuple(separators)

    @classmethod
    def from_settings(cls, chunking: "ChunkingSettings | None" = None) -> "TextSplitter":
        """Build a splitter from ``ChunkingSettings`` (global settings when omitted)."""
        if chunking is None:
            from memory_context.core.config import settings

            chunking = settings.chunking
        return cls(chunk_size=chunking.chunk_size, chunk_overlap=chunking.chunk_overlap)

    def split(self, text: str) -> list[str]:
        return split_text(text, self.chunk_size, self.chunk_overlap, self.separators)

    def split_with_metadata(self, text: str) -> ChunkResult:
        """Split and report whether the text had to be cut, for the save path."""
        chunks = self.split(text)
        return ChunkResult(
            chunks=chunks,
            original_length=len(text),
            was_split=len(chunks) > 1,
            chunk_count=len(chunks),
        )

    def needs_splitting(self, text: str) -> bool:
        return needs_splitting(text, self.chunk_size)
