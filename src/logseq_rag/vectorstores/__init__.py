from .base import VectorStore
from .qdrantvectorstore import QdrantVectorStore
from .types import CollectionInfo, DateRange, QueryResult, VectorItem

__all__ = [
    "CollectionInfo",
    "DateRange",
    "QdrantVectorStore",
    "QueryResult",
    "VectorItem",
    "VectorStore",
]
