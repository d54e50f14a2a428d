"""Cypher queries for the memory store.

All queries return ``(query, params)`` so callers pass runtime values
as driver parameters and never interpolate them.
"""

from typing import Any, LiteralString, cast


class MemoryStoreQueries:
    """Queries against ``:Memory`` nodes."""

    @staticmethod
    def has_any() -> tuple[LiteralString, dict[str, Any]]:
        return "MATCH (m:Memory) RETURN m.id AS id LIMIT 1", {}

    @staticmethod
    def count() -> tuple[LiteralString, dict[str, Any]]:
        return "MATCH (m:Memory) RETURN count(m) AS total", {}

    @staticmethod
    def vector_search(
        index_name: str,
        embedding: list[float],
        k: int,
        limit: int,
        allowed_tags: list[str],
    ) -> tuple[LiteralString, dict[str, Any]]:
        """Nearest neighbours from the vector index, restricted to allowed effective tags.

        An empty ``allowed_tags`` list disables the tag restriction.

        Args:
            index_name: Name of an existing vector index on ``Memory.embedding``
            embedding: Query vector
            k: Neighbours requested from the index before tag filtering
            limit: Maximum number of rows returned

        Returns:
            Tuple of (query, params)
        """
        query = """
            CALL db.index.vector.queryNodes($index_name, $k, $embedding)
            YIELD node, score
            WHERE size($allowed_tags) = 0 OR node.effective_tag IN $allowed_tags
            RETURN node AS m, score
            ORDER BY score DESC
            LIMIT $limit
            """
        params = {
            "index_name": index_name,
            "k": k,
            "embedding": embedding,
            "allowed_tags": allowed_tags,
            "limit": limit,
        }
        return cast(LiteralString, query), params

    @staticmethod
    def create_memory(id: str, properties: dict[str, Any]) -> tuple[LiteralString, dict[str, Any]]:
        query = """
            CREATE (m:Memory {id: $id})
            SET m += $properties
            RETURN m
            """
        return cast(LiteralString, query), {"id": id, "properties": properties}

    @staticmethod
    def delete_memory(id: str) -> tuple[LiteralString, dict[str, Any]]:
        query = """
            MATCH (m:Memory {id: $id})
            DETACH DELETE m
            RETURN count(m) AS deleted
            """
        return cast(LiteralString, query), {"id": id}


class VectorIndexQueries:
    """Queries for managing the Neo4j vector index."""

    @staticmethod
    def create_vector_index(index_name: str, dimensions: int) -> tuple[LiteralString, dict[str, Any]]:
        """Create a cosine vector index with the given dimensions.

        Index names cannot be parameterized in DDL, so ``index_name`` must be
        a plain identifier.
        """
        if not index_name.replace("_", "").isalnum():
            raise ValueError(f"Invalid index name: {index_name!r}")
        query = f"""
            CREATE VECTOR INDEX {index_name} IF NOT EXISTS
            FOR (m:Memory) ON m.embedding
            OPTIONS {{indexConfig: {{
              `vector.dimensions`: {int(dimensions)},
              `vector.similarity_function`: 'cosine'
            }}}}
            """
        return cast(LiteralString, query), {}
