"""Write path: split long memories into chunks and persist each one."""

from __future__ import annotations

from typing import TYPE_CHECKING

from memory_context.core.base import ErrorLevel
from memory_context.core.decorators import with_error_handling
from memory_context.core.logging import get_logger, log_context
from memory_context.domain.models.memory import part_tag
from memory_context.services.chunking import TextSplitter

if TYPE_CHECKING:
    from memory_context.domain.models.memory import MemoryRecord
    from memory_context.services import MemoryStore

logger = get_logger(__name__)


class MemoryService:
    """Stores memories so they can later be retrieved as context."""

    def __init__(self, store: MemoryStore, splitter: TextSplitter | None = None):
        self.store = store
        self.splitter = splitter or TextSplitter.from_settings()

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def remember(
        self,
        text: str,
        tag: str,
        session_id: str | None = None,
        emotion_label: str | None = None,
    ) -> list[MemoryRecord]:
        """Save ``text`` under ``tag``, chunking it first if it is too long.

        When the text is split, chunk ``n`` (1-based) is saved under
        ``<tag>_part_<n>`` so retrieval can still match it against ``tag``.
        Blank text saves nothing.

        Returns:
            The stored records in chunk order
        """
        tag = str(tag)
        result = self.splitter.split_with_metadata(text)
        if not result.chunks:
            logger.debug("Skipping blank memory")
            return []

        records: list[MemoryRecord] = []
        with log_context(operation="remember", session_id=session_id):
            for part, chunk in enumerate(result.chunks, start=1):
                chunk_tag = part_tag(tag, part) if result.was_split else tag
                record = await self.store.save(
                    chunk,
                    chunk_tag,
                    session_id=session_id,
                    emotion_label=emotion_label,
                )
                records.append(record)

            if result.was_split:
                logger.info(f"Stored memory in {result.chunk_count} chunks ({result.original_length} chars, tag={tag})")
            else:
                logger.debug(f"Stored memory with tag={tag}")
        return records
