"""Voyage AI embedding service."""

from typing import Any, cast

import voyageai

from memory_context.core.base import AIServiceErrorDetails, ErrorLevel, ServiceErrorDetails
from memory_context.core.config import settings
from memory_context.core.decorators import with_error_handling
from memory_context.core.errors import AuthenticationError, EmbeddingError
from memory_context.core.logging import get_logger
from memory_context.infrastructure.embeddings.cache import EmbeddingCache

logger = get_logger(__name__)

MODEL_DIMENSIONS = {
    "voyage-01": 1024,
    "voyage-02": 1536,
    "voyage-large-2": 1536,
    "voyage-code-2": 1536,
    "voyage-3-large": 1024,
    "voyage-3": 1024,
    "voyage-3-lite": 512,
}


class VoyageEmbeddingService:
    """Voyage AI embedding service implementation.

    Never substitutes a synthetic vector: any provider failure surfaces as
    ``EmbeddingError`` (or ``AuthenticationError`` for credential problems).
    """

    # voyageai client doesn't expose a public type, so we use Any here
    client: Any  # voyageai.AsyncClient
    cache: EmbeddingCache | None

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        cache: EmbeddingCache | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the Voyage embedding service.

        Args:
            model: Optional model override (defaults to ``settings.voyage_model``)
            api_key: Optional key override (defaults to ``settings.voyage_api_key``)
            cache: Optional LRU cache for repeated texts
            client: Pre-built client, mostly for tests

        Raises:
            AuthenticationError: If no API key is configured and no client is given
        """
        self.model = model or settings.voyage_model
        self.cache = cache

        if client is not None:
            self.client = client
            return

        api_key = api_key or settings.voyage_api_key.get_secret_value()
        if not api_key:
            raise AuthenticationError(
                message="Voyage API key not found in settings",
                details=ServiceErrorDetails(
                    source="VoyageEmbeddingService",
                    operation="initialization",
                    service_name="Voyage AI",
                ),
            )
        self.client = voyageai.AsyncClient(api_key=api_key)

    async def _call_voyage_api(self, texts: list[str], operation: str) -> list[list[float]]:
        try:
            response = await self.client.embed(texts=texts, model=self.model)
        except Exception as e:
            raise self._handle_error(e, texts, operation) from e

        embeddings = getattr(response, "embeddings", None) or []
        if len(embeddings) != len(texts) or any(not emb for emb in embeddings):
            raise EmbeddingError(
                message="Voyage API returned incomplete embeddings",
                details=self._details(operation, texts, status_code=200),
            )
        return [cast("list[float]", list(emb)) for emb in embeddings]

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for the provided text with caching."""
        if not text.strip():
            raise EmbeddingError(
                message="Cannot embed empty text",
                details=self._details("embed", [text]),
            )

        if self.cache is not None:
            cached = await self.cache.get_cached(text, self.model)
            if cached:
                logger.debug(f"Embedding cache hit (model: {self.model}, length: {len(text)})")
                return cached

        embedding = (await self._call_voyage_api([text], "embed"))[0]

        if self.cache is not None:
            await self.cache.store(text, self.model, embedding)
        return embedding

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embedding vectors for a batch of texts.

        Args:
            texts: List of texts to embed

        Returns:
            List of embedding vectors corresponding to the input texts

        Raises:
            EmbeddingError: If any text is blank or the provider fails
        """
        if not texts:
            return []
        if any(not text.strip() for text in texts):
            raise EmbeddingError(
                message="Batch contains empty texts",
                details=self._details("embed_batch", texts),
            )
        return await self._call_voyage_api(texts, "embed_batch")

    def _details(self, operation: str, texts: list[str], status_code: int | None = None) -> AIServiceErrorDetails:
        return AIServiceErrorDetails(
            source="VoyageEmbeddingService",
            operation=operation,
            service_name="Voyage AI",
            endpoint="/embeddings",
            status_code=status_code,
            embedding_model=self.model,
            text_length=sum(len(t) for t in texts),
        )

    def _handle_error(
        self,
        e: Exception,
        texts: list[str],
        operation: str,
    ) -> EmbeddingError | AuthenticationError:
        """Map provider errors to our exception types."""
        error_msg = str(e).lower()
        if "auth" in error_msg or "api key" in error_msg:
            return AuthenticationError(
                message="Authentication failed for embeddings API",
                details=self._details(operation, texts, status_code=401),
            )
        if "rate limit" in error_msg:
            return EmbeddingError(
                message="Rate limit exceeded for embeddings API",
                details=self._details(operation, texts, status_code=429),
            )
        if "timeout" in error_msg or "connection" in error_msg:
            return EmbeddingError(
                message="Embeddings API request timed out",
                details=self._details(operation, texts, status_code=408),
            )
        return EmbeddingError(
            message=f"Failed to generate embeddings: {e!s}",
            details=self._details(operation, texts),
        )

    def get_model_dimensions(self) -> int:
        """Dimensionality of the configured model's vectors."""
        return MODEL_DIMENSIONS.get(self.model, 1024)
