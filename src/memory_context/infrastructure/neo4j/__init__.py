from .driver import Neo4jDriver, create_driver
from .queries import MemoryStoreQueries, VectorIndexQueries

__all__ = ["MemoryStoreQueries", "Neo4jDriver", "VectorIndexQueries", "create_driver"]
