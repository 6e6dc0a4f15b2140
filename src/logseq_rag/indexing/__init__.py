from .indexer import VectorIndexer

__all__ = ["VectorIndexer"]
