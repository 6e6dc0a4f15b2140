from .base import Embedding, EmbeddingsClient
from .config import EmbeddingsConfig
from .factory import create_embeddings_client
from .openai import OpenAIEmbeddingsClient

__all__ = [
    "Embedding",
    "EmbeddingsClient",
    "EmbeddingsConfig",
    "OpenAIEmbeddingsClient",
    "create_embeddings_client",
]
