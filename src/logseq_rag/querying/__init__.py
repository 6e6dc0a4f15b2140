from .query_handler import QueryHandler, format_context
from .retriever import SearchResult, VectorRetriever

__all__ = [
    "QueryHandler",
    "SearchResult",
    "VectorRetriever",
    "format_context",
]
