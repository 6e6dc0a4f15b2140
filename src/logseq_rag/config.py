"""
Configuration loaded from environment variables (and a local `.env`).
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, PositiveInt, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logseq_rag.chunking import LogseqChunker
from logseq_rag.embeddings import EmbeddingsConfig
from logseq_rag.llms import LLMConfig
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook
from logseq_rag.vectorstores import QdrantVectorStore

DEFAULT_EMBEDDING_MODELS = {
    "openai": "text-embedding-3-small",
    "local": "all-MiniLM-L6-v2",
}
DEFAULT_OPENAI_DIMENSIONS = 1536


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Embeddings
    embedding_provider: Literal["openai", "local"] = "openai"
    # None: the provider default from DEFAULT_EMBEDDING_MODELS
    embedding_model: str | None = None
    # None for local models: the collection is sized from the loaded model
    embedding_dimensions: PositiveInt | None = None

    # Answer generation
    llm_provider: Literal["anthropic", "openai"] = "anthropic"
    llm_model: str = Field(
        default="claude-haiku-4-5-20251001",
        validation_alias=AliasChoices("llm_model", "claude_model"),
    )
    max_response_tokens: PositiveInt = 2000

    # Qdrant
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    qdrant_collection_name: str = "logseq-notes"

    # Vault
    logseq_path: Path | None = None

    # Chunking (token estimates)
    chunk_size: PositiveInt = 800
    chunk_overlap: int = Field(default=200, ge=0)

    # Retrieval / indexing
    top_k_results: PositiveInt = 100
    index_batch_size: PositiveInt = 100

    log_level: str = "INFO"

    @field_validator("qdrant_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("qdrant_url must be an http(s) URL")
        return value.rstrip("/")

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be < chunk_size")
        return self

    @model_validator(mode="after")
    def _apply_embedding_defaults(self) -> "Settings":
        if self.embedding_model is None:
            self.embedding_model = DEFAULT_EMBEDDING_MODELS[self.embedding_provider]
        if self.embedding_dimensions is None and self.embedding_provider == "openai":
            self.embedding_dimensions = DEFAULT_OPENAI_DIMENSIONS
        return self

    @model_validator(mode="after")
    def _check_provider_keys(self) -> "Settings":
        if "openai" in (self.embedding_provider, self.llm_provider) and not self.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")
        if self.llm_provider == "anthropic" and not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY is required for the anthropic provider")
        return self

    def embeddings_config(self) -> EmbeddingsConfig:
        return EmbeddingsConfig(
            provider=self.embedding_provider,
            model=self.embedding_model,
            api_key=self.openai_api_key or None,
            dimensions=self.embedding_dimensions,
            batch_size=self.index_batch_size,
        )

    def llm_config(self) -> LLMConfig:
        api_key = (
            self.anthropic_api_key if self.llm_provider == "anthropic" else self.openai_api_key
        )
        return LLMConfig(provider=self.llm_provider, model=self.llm_model, api_key=api_key)

    def create_chunker(self, metrics_hook: MetricsHook = NoOpMetricsHook()) -> LogseqChunker:
        return LogseqChunker(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            metrics_hook=metrics_hook,
        )

    def create_vector_store(
        self,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        vector_size: int | None = None,
    ) -> QdrantVectorStore:
        """Qdrant store for the configured collection.

        `vector_size` is the output size reported by the embeddings client;
        when it is unknown, EMBEDDING_DIMENSIONS must be set.
        """
        size = vector_size or self.embedding_dimensions
        if size is None:
            raise ValueError(
                "Vector size unknown: set EMBEDDING_DIMENSIONS for "
                f"embedding model {self.embedding_model}"
            )
        return QdrantVectorStore(
            url=self.qdrant_url,
            api_key=self.qdrant_api_key,
            collection_name=self.qdrant_collection_name,
            vector_size=size,
            metrics_hook=metrics_hook,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
