import logging
from dataclasses import dataclass
from datetime import datetime
from time import monotonic
from typing import Any

from logseq_rag.chunking import Chunk, ChunkMetadata
from logseq_rag.embeddings.base import EmbeddingsClient
from logseq_rag.indexing.indexer import CONTENT_KEY
from logseq_rag.observability import names
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook
from logseq_rag.vectorstores.base import VectorStore
from logseq_rag.vectorstores.types import DateRange, QueryResult

logger = logging.getLogger(__name__)

DATE_KEY = "date"


@dataclass(frozen=True)
class SearchResult:
    chunk: Chunk
    score: float


class VectorRetriever:
    """Semantic search over indexed chunks.

    Must use the same embeddings configuration that was used at index time.
    """

    def __init__(
        self,
        embeddings: EmbeddingsClient,
        store: VectorStore,
        default_top_k: int = 100,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._embeddings = embeddings
        self._store = store
        self._default_top_k = default_top_k
        self.metrics_hook = metrics_hook

    async def search(self, query: str, top_k: int | None = None) -> list[SearchResult]:
        return await self._search(query, top_k=top_k, filters=None)

    async def search_by_date(
        self,
        query: str,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        top_k: int | None = None,
    ) -> list[SearchResult]:
        """Search restricted to chunks dated within [date_from, date_to].

        Undated chunks (regular pages) never match once a bound is given.
        """
        filters: dict[str, Any] | None = None
        if date_from or date_to:
            filters = {DATE_KEY: DateRange(gte=date_from, lte=date_to)}
        return await self._search(query, top_k=top_k, filters=filters)

    async def _search(
        self, query: str, *, top_k: int | None, filters: dict[str, Any] | None
    ) -> list[SearchResult]:
        start = monotonic()
        limit = top_k or self._default_top_k

        [query_embedding] = await self._embeddings.embed([query])
        hits = await self._store.query(
            vector=query_embedding.vector, top_k=limit, filters=filters
        )
        results = [SearchResult(chunk=to_chunk(hit), score=hit.score) for hit in hits]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.RETRIEVAL_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.RETRIEVAL_RESULTS_TOTAL, len(results))
        logger.info("Retrieved %d chunks for query (top_k=%d)", len(results), limit)
        return results


def to_chunk(hit: QueryResult) -> Chunk:
    payload = dict(hit.metadata)
    content = payload.pop(CONTENT_KEY, "")
    return Chunk(id=hit.id, content=content, metadata=ChunkMetadata.from_payload(payload))
