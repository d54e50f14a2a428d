"""Neo4j-backed memory store using a native vector index."""

from __future__ import annotations

from collections.abc import Callable, Collection
from typing import TYPE_CHECKING, Any
from uuid import UUID

from neo4j.exceptions import DriverError, Neo4jError

from memory_context.core.base import ErrorLevel, StorageErrorDetails
from memory_context.core.config import settings
from memory_context.core.decorators import with_error_handling, with_session
from memory_context.core.errors import StoreError
from memory_context.core.logging import get_logger
from memory_context.domain.models.memory import MemoryRecord, effective_tag
from memory_context.domain.models.utils import now_millis
from memory_context.infrastructure.neo4j.queries import MemoryStoreQueries, VectorIndexQueries

if TYPE_CHECKING:
    from memory_context.services import EmbeddingService

logger = get_logger(__name__)

# The index returns the k nearest nodes before the tag filter runs
TAG_FILTER_OVERSAMPLE = 4


class Neo4jMemoryStore:
    """Memory store over ``:Memory`` nodes and a cosine vector index.

    ``driver`` is anything whose ``session()`` is an async context manager
    yielding a neo4j ``AsyncSession``: the raw ``AsyncDriver`` or ``Neo4jDriver``.
    The vector index must already exist; ``ensure_index`` can create it.
    """

    def __init__(
        self,
        driver: Any,
        embeddings: EmbeddingService,
        index_name: str | None = None,
        clock: Callable[[], int] = now_millis,
    ):
        self.driver = driver
        self.embeddings = embeddings
        self.index_name = index_name or settings.neo4j_vector_index
        self.clock = clock

    def _error(self, operation: str, e: Exception, record_count: int | None = None) -> StoreError:
        return StoreError(
            message=f"Neo4j {operation} failed: {e!s}",
            details=StorageErrorDetails(
                source="Neo4jMemoryStore",
                operation=operation,
                service_name="neo4j",
                index_name=self.index_name,
                record_count=record_count,
            ),
        )

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    @with_session()
    async def has_any_records(self, session) -> bool:
        query, params = MemoryStoreQueries.has_any()
        try:
            result = await session.run(query, **params)
            record = await result.single()
        except (DriverError, Neo4jError) as e:
            raise self._error("has_any_records", e) from e
        return record is not None

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    @with_session()
    async def count(self, session) -> int:
        query, params = MemoryStoreQueries.count()
        try:
            result = await session.run(query, **params)
            record = await result.single()
        except (DriverError, Neo4jError) as e:
            raise self._error("count", e) from e
        return int(record["total"]) if record else 0

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    @with_session()
    async def search_candidates(
        self,
        session,
        query_vector: list[float],
        limit: int,
        allowed_tags: Collection[str],
    ) -> list[MemoryRecord]:
        if limit <= 0:
            return []

        tags = sorted(allowed_tags)
        k = limit * TAG_FILTER_OVERSAMPLE if tags else limit
        query, params = MemoryStoreQueries.vector_search(
            index_name=self.index_name,
            embedding=list(query_vector),
            k=k,
            limit=limit,
            allowed_tags=tags,
        )
        try:
            result = await session.run(query, **params)
            records = [self._to_record(row["m"]) async for row in result]
        except (DriverError, Neo4jError) as e:
            raise self._error("search_candidates", e) from e

        logger.debug(f"Vector index {self.index_name} returned {len(records)} candidates (k={k})")
        return records

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def save(
        self,
        text: str,
        tag: str,
        session_id: str | None = None,
        emotion_label: str | None = None,
    ) -> MemoryRecord:
        embedding = await self.embeddings.embed(text)
        record = MemoryRecord(
            text=text,
            embedding=embedding,
            timestamp=self.clock(),
            tag=tag,
            session_id=session_id,
            emotion_label=emotion_label,
        )
        await self._create(record)
        return record

    @with_session()
    async def _create(self, session, record: MemoryRecord) -> None:
        properties = {
            "text": record.text,
            "embedding": record.embedding,
            "timestamp": record.timestamp,
            "tag": record.tag,
            "effective_tag": effective_tag(record.tag),
            "session_id": record.session_id,
            "emotion_label": record.emotion_label,
        }
        query, params = MemoryStoreQueries.create_memory(str(record.id), properties)
        try:
            result = await session.run(query, **params)
            created = await result.single()
        except (DriverError, Neo4jError) as e:
            raise self._error("save", e, record_count=1) from e
        if created is None:
            raise StoreError(
                message="Failed to store memory in database",
                details={"source": "Neo4jMemoryStore", "operation": "save", "memory_id": str(record.id)},
            )
        logger.debug(f"Stored memory {record.id} (tag={record.tag})")

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    @with_session()
    async def delete(self, session, record_id: UUID) -> bool:
        query, params = MemoryStoreQueries.delete_memory(str(record_id))
        try:
            result = await session.run(query, **params)
            record = await result.single()
        except (DriverError, Neo4jError) as e:
            raise self._error("delete", e) from e
        return bool(record and record["deleted"])

    @with_session()
    async def ensure_index(self, session, dimensions: int) -> None:
        """Create the vector index if it does not exist yet."""
        query, params = VectorIndexQueries.create_vector_index(self.index_name, dimensions)
        try:
            await session.run(query, **params)
        except (DriverError, Neo4jError) as e:
            raise self._error("ensure_index", e) from e
        logger.info(f"Vector index {self.index_name} ready ({dimensions} dimensions)")

    @staticmethod
    def _to_record(node: Any) -> MemoryRecord:
        properties = dict(node)
        return MemoryRecord(
            id=UUID(str(properties["id"])),
            text=properties.get("text") or "",
            embedding=list(properties.get("embedding") or []),
            timestamp=int(properties.get("timestamp") or 0),
            tag=properties.get("tag") or "",
            session_id=properties.get("session_id"),
            emotion_label=properties.get("emotion_label"),
        )
