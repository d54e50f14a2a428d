from .in_memory import InMemoryMemoryStore
from .neo4j_store import Neo4jMemoryStore

__all__ = ["InMemoryMemoryStore", "Neo4jMemoryStore"]
