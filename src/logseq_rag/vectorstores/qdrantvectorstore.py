import logging
from collections.abc import Iterable, Mapping
from time import monotonic
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    DatetimeRange,
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    HasIdCondition,
    MatchAny,
    MatchValue,
    PointStruct,
    VectorParams,
)

from logseq_rag.observability import names
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook

from .base import VectorStore
from .types import CollectionInfo, DateRange, QueryResult, VectorItem

logger = logging.getLogger(__name__)


class QdrantVectorStore(VectorStore):
    """Vector store implementation using Qdrant."""

    def __init__(
        self,
        *,
        url: str | None = None,
        path: str | None = None,
        api_key: str | None = None,
        collection_name: str,
        vector_size: int,
        distance: Distance = Distance.COSINE,
        on_disk: bool = False,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        """
        Initialize Qdrant vector store.

        Args:
            url: Qdrant server URL. If provided, connects to remote server.
            path: Path to local Qdrant storage directory. If provided, uses local persistence.
            api_key: API key for Qdrant Cloud (only used with url).
            collection_name: Name of the collection.
            vector_size: Dimensionality of vectors.
            distance: Distance metric (COSINE, EUCLID, DOT).
            on_disk: Whether to store vectors on disk (for large datasets).
            metrics_hook: Hook for recording metrics.

        Note:
            - If both url and path are None, uses in-memory mode.
            - Point IDs must be UUIDs (chunks use uuid4).

        Examples:
            # In-memory (for testing)
            store = QdrantVectorStore(collection_name="test", vector_size=4)

            # Remote server
            store = QdrantVectorStore(url="http://localhost:6333", collection_name="notes", vector_size=1536)
        """
        self.metrics_hook = metrics_hook

        if url:
            self._client = AsyncQdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = AsyncQdrantClient(path=path)
        else:
            self._client = AsyncQdrantClient(":memory:")

        self._collection_name = collection_name
        self._vector_size = vector_size
        self._distance = distance
        self._on_disk = on_disk

    @property
    def collection_name(self) -> str:
        return self._collection_name

    async def ensure_collection(self) -> bool:
        """Create collection if it doesn't exist. Returns True if created."""
        if await self._client.collection_exists(self._collection_name):
            logger.debug("Collection %s already exists", self._collection_name)
            return False

        logger.info(
            "Creating collection %s (size=%d, distance=%s)",
            self._collection_name,
            self._vector_size,
            self._distance,
        )
        await self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=VectorParams(
                size=self._vector_size,
                distance=self._distance,
                on_disk=self._on_disk,
            ),
        )
        return True

    async def close(self) -> None:
        """Close the Qdrant client."""
        await self._client.close()

    async def upsert(self, *, items: Iterable[VectorItem]) -> None:
        """
        Insert or update vectors.

        Args:
            items: Iterable of VectorItem to upsert.
        """
        await self.ensure_collection()

        start = monotonic()
        points = [
            PointStruct(id=item.id, vector=item.vector, payload=dict(item.metadata))
            for item in items
        ]

        if not points:
            return

        await self._client.upsert(
            collection_name=self._collection_name,
            wait=True,
            points=points,
        )

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.QDRANT_UPSERT_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.QDRANT_OPERATIONS_TOTAL, labels={"operation": "upsert"}
        )

    async def query(
        self,
        *,
        vector: list[float],
        top_k: int,
        filters: Mapping[str, Any] | None = None,
    ) -> list[QueryResult]:
        """
        Query for similar vectors.

        Args:
            vector: Query vector.
            top_k: Number of results to return.
            filters: Optional payload filters.

        Returns:
            List of QueryResult sorted by similarity (highest first).
        """
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        await self.ensure_collection()

        start = monotonic()
        results = await self._client.query_points(
            collection_name=self._collection_name,
            query=vector,
            query_filter=build_filter(filters),
            limit=top_k,
            with_payload=True,
        )

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.QDRANT_QUERY_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.QDRANT_OPERATIONS_TOTAL, labels={"operation": "query"}
        )

        return [
            QueryResult(id=str(hit.id), score=hit.score, metadata=hit.payload or {})
            for hit in results.points
        ]

    async def delete(
        self,
        *,
        ids: Iterable[str] | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> int:
        """
        Delete vectors by id or by metadata filter.

        Args:
            ids: Optional iterable of IDs to delete.
            filters: Optional payload filters for deletion.

        Returns:
            Number of points deleted.
        """
        id_list = list(ids) if ids else []
        if not id_list and not filters:
            raise ValueError("delete requires ids or filters")

        await self.ensure_collection()

        start = monotonic()
        selector_filter = build_filter(filters)
        if id_list:
            condition = HasIdCondition(has_id=id_list)  # type: ignore[arg-type]
            if selector_filter is None:
                selector_filter = Filter(must=[condition])
            else:
                selector_filter.must.append(condition)  # type: ignore[union-attr]

        # Count before deletion to return deleted count
        counted = await self._client.count(
            collection_name=self._collection_name,
            count_filter=selector_filter,
            exact=True,
        )

        await self._client.delete(
            collection_name=self._collection_name,
            points_selector=FilterSelector(filter=selector_filter),
            wait=True,
        )

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.QDRANT_DELETE_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.QDRANT_OPERATIONS_TOTAL, labels={"operation": "delete"}
        )

        return int(counted.count)

    async def collection_info(self) -> CollectionInfo:
        info = await self._client.get_collection(self._collection_name)
        return CollectionInfo(
            name=self._collection_name,
            points_count=info.points_count or 0,
            indexed_vectors_count=info.indexed_vectors_count or 0,
        )


def build_filter(filters: Mapping[str, Any] | None) -> Filter | None:
    """Translate a {payload key: value} mapping into a Qdrant filter.

    - DateRange -> DatetimeRange on the key
    - list/tuple/set -> MatchAny
    - anything else -> MatchValue
    """
    if not filters:
        return None

    conditions: list[Any] = []
    for key, value in filters.items():
        if isinstance(value, DateRange):
            conditions.append(
                FieldCondition(key=key, range=DatetimeRange(gte=value.gte, lte=value.lte))
            )
        elif isinstance(value, (list, tuple, set, frozenset)):
            conditions.append(FieldCondition(key=key, match=MatchAny(any=list(value))))
        else:
            conditions.append(FieldCondition(key=key, match=MatchValue(value=value)))

    return Filter(must=conditions)
