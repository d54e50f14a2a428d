from .cache import EmbeddingCache
from .factory import EmbeddingServiceBuilder, create_embedding_service
from .voyage import VoyageEmbeddingService

__all__ = [
    "EmbeddingCache",
    "EmbeddingServiceBuilder",
    "VoyageEmbeddingService",
    "create_embedding_service",
]
