from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from logseq_rag.observability.base import MetricsHook

from .types import CollectionInfo, QueryResult, VectorItem


class VectorStore(Protocol):
    """
    Filters map a payload key to an exact value, a list of accepted values,
    or a DateRange.
    """

    metrics_hook: MetricsHook

    async def ensure_collection(self) -> bool:
        """Create the collection if missing. Returns True if it was created."""
        ...

    async def upsert(self, *, items: Iterable[VectorItem]) -> None: ...

    async def query(
        self,
        *,
        vector: list[float],
        top_k: int,
        filters: Mapping[str, Any] | None = None,
    ) -> list[QueryResult]: ...

    async def delete(
        self,
        *,
        ids: Iterable[str] | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> int:
        """
        Delete vectors by id or by metadata filter.
        Returns number of points deleted.
        """
        ...

    async def collection_info(self) -> CollectionInfo: ...

    async def close(self) -> None: ...
