"""Retrieval-augmented question answering over a Logseq vault."""

# Chunking
from .chunking import BulletNode, Chunk, ChunkMetadata, LogseqChunker

# Embeddings
from .embeddings import (
    Embedding,
    EmbeddingsClient,
    EmbeddingsConfig,
    OpenAIEmbeddingsClient,
    create_embeddings_client,
)

# Indexing
from .indexing import VectorIndexer

# LLMs
from .llms import LLMClient, LLMConfig, create_llm_client

# Observability
from .observability import MetricsHook, NoOpMetricsHook

# Parsing
from .parsers import LogseqParser, Page

# Prompts
from .prompts import Prompt, PromptsLibrary

# Querying
from .querying import QueryHandler, SearchResult, VectorRetriever

# Sync
from .sync import SyncReport, SyncService

# Vector stores
from .vectorstores import (
    CollectionInfo,
    DateRange,
    QdrantVectorStore,
    QueryResult,
    VectorItem,
    VectorStore,
)

__all__ = [
    # Chunking
    "BulletNode",
    "Chunk",
    "ChunkMetadata",
    "LogseqChunker",
    # Embeddings
    "Embedding",
    "EmbeddingsClient",
    "EmbeddingsConfig",
    "OpenAIEmbeddingsClient",
    "create_embeddings_client",
    # Indexing
    "VectorIndexer",
    # LLMs
    "LLMClient",
    "LLMConfig",
    "create_llm_client",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    # Parsing
    "LogseqParser",
    "Page",
    # Prompts
    "Prompt",
    "PromptsLibrary",
    # Querying
    "QueryHandler",
    "SearchResult",
    "VectorRetriever",
    # Sync
    "SyncReport",
    "SyncService",
    # Vector stores
    "CollectionInfo",
    "DateRange",
    "QdrantVectorStore",
    "QueryResult",
    "VectorItem",
    "VectorStore",
]
