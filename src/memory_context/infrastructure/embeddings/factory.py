"""Construction of embedding services from settings."""

from __future__ import annotations

from memory_context.core.config import settings
from memory_context.core.logging import get_logger
from memory_context.infrastructure.embeddings.cache import EmbeddingCache
from memory_context.infrastructure.embeddings.voyage import VoyageEmbeddingService

logger = get_logger(__name__)


class EmbeddingServiceBuilder:
    """Builder for configured embedding service instances.

    Services are built and injected rather than held as singletons.
    """

    def __init__(self) -> None:
        self._cache_size = settings.embedding_cache_size
        self._api_key: str | None = None
        self._model: str | None = None

    def with_cache(self, max_entries: int) -> EmbeddingServiceBuilder:
        """Set the LRU cache size; ``0`` disables caching."""
        self._cache_size = max_entries
        return self

    def with_api_key(self, api_key: str) -> EmbeddingServiceBuilder:
        self._api_key = api_key
        return self

    def with_model(self, model: str) -> EmbeddingServiceBuilder:
        self._model = model
        return self

    def build(self) -> VoyageEmbeddingService:
        """Build the configured embedding service.

        Raises:
            AuthenticationError: If no API key is configured
        """
        cache = EmbeddingCache(self._cache_size) if self._cache_size > 0 else None
        service = VoyageEmbeddingService(model=self._model, api_key=self._api_key, cache=cache)
        logger.info(
            f"Created VoyageEmbeddingService (model={service.model}, "
            f"dimensions={service.get_model_dimensions()}, cache={self._cache_size})"
        )
        return service


def create_embedding_service(
    cache_size: int | None = None,
    api_key: str | None = None,
    model: str | None = None,
) -> VoyageEmbeddingService:
    """Convenience function to create an embedding service.

    Example:
        ```python
        embeddings = create_embedding_service()
        retrieval = ContextRetrievalService(embeddings=embeddings, store=store)
        ```
    """
    builder = EmbeddingServiceBuilder()
    if cache_size is not None:
        builder.with_cache(cache_size)
    if api_key:
        builder.with_api_key(api_key)
    if model:
        builder.with_model(model)
    return builder.build()
