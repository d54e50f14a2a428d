"""Configuration management."""

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from memory_context.core.constants import (
    DEFAULT_ALLOWED_TAGS,
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HALF_LIFE_DAYS,
    DEFAULT_MAX_CONTEXT_ITEMS,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_TOP_K_CANDIDATES,
    TAG_AI_OUTPUT,
)


class RetrievalSettings(BaseModel):
    """Knobs for context retrieval."""

    top_k_candidates: int = Field(default=DEFAULT_TOP_K_CANDIDATES, ge=1, description="Candidates fetched from the store")  # noqa: E501
    max_context_items: int = Field(default=DEFAULT_MAX_CONTEXT_ITEMS, ge=1, description="Memories injected into the prompt")  # noqa: E501
    min_similarity: float = Field(default=DEFAULT_MIN_SIMILARITY, ge=-1.0, le=1.0)
    half_life_days: float = Field(default=DEFAULT_HALF_LIFE_DAYS, gt=0.0)
    include_ai_output: bool = Field(default=False, description="Allow the assistant's own replies as memories")
    exclude_rounds: int = Field(default=0, ge=0, description="Recent conversation rounds hidden from retrieval")

    @property
    def allowed_tags(self) -> frozenset[str]:
        """Tag allow-list derived from ``include_ai_output``."""
        if self.include_ai_output:
            return DEFAULT_ALLOWED_TAGS | {TAG_AI_OUTPUT}
        return DEFAULT_ALLOWED_TAGS


class ChunkingSettings(BaseModel):
    """Knobs for splitting long memories before storage."""

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    chunk_overlap: int = Field(default=DEFAULT_CHUNK_OVERLAP, ge=0)


class Settings(BaseSettings):
    # API Keys
    voyage_api_key: SecretStr = SecretStr("")
    voyage_model: str = "voyage-3"
    embedding_cache_size: int = Field(default=100, ge=0, description="LRU entries kept by the embedding provider")

    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: SecretStr = SecretStr("password")
    neo4j_vector_index: str = "memory_embeddings"

    # App config
    debug: bool = False

    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
        env_nested_delimiter="__",  # Allows RETRIEVAL__MIN_SIMILARITY=0.4
    )


settings = Settings()
