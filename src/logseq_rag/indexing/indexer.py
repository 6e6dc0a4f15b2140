import logging
from time import monotonic

from logseq_rag.chunking import Chunk
from logseq_rag.embeddings.base import EmbeddingsClient
from logseq_rag.observability import names
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook
from logseq_rag.vectorstores.base import VectorStore
from logseq_rag.vectorstores.types import CollectionInfo, VectorItem

logger = logging.getLogger(__name__)

CONTENT_KEY = "content"
SOURCE_KEY = "source"


class VectorIndexer:
    """Embeds chunks and writes them to the vector store.

    The payload stored with each point is the chunk metadata plus its
    content, so search results can be turned back into chunks without a
    second lookup.
    """

    def __init__(
        self,
        embeddings: EmbeddingsClient,
        store: VectorStore,
        batch_size: int = 100,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")

        self._embeddings = embeddings
        self._store = store
        self._batch_size = batch_size
        self.metrics_hook = metrics_hook

    async def initialize_collection(self) -> bool:
        created = await self._store.ensure_collection()
        if created:
            logger.info("Collection created")
        return created

    async def index_chunks(self, chunks: list[Chunk]) -> int:
        """Embed and upsert chunks in batches. Returns the number indexed.

        A failing batch raises; batches written before it stay in the store.
        """
        if not chunks:
            logger.debug("No chunks to index")
            return 0

        indexed = 0
        for batch_start in range(0, len(chunks), self._batch_size):
            batch = chunks[batch_start : batch_start + self._batch_size]
            await self._index_batch(batch)
            indexed += len(batch)
            logger.debug("Indexed %d/%d chunks", indexed, len(chunks))

        self.metrics_hook.increment(names.INDEXING_CHUNKS_TOTAL, indexed)
        return indexed

    async def embed_chunks(self, chunks: list[Chunk]) -> list[VectorItem]:
        """Embed chunks in batches without writing anything to the store."""
        items: list[VectorItem] = []
        for batch_start in range(0, len(chunks), self._batch_size):
            batch = chunks[batch_start : batch_start + self._batch_size]
            items.extend(await self._embed_batch(batch))
        return items

    async def upsert_items(self, items: list[VectorItem]) -> int:
        """Write already-embedded items in batches. Returns the number written."""
        written = 0
        for batch_start in range(0, len(items), self._batch_size):
            batch = items[batch_start : batch_start + self._batch_size]
            await self._store.upsert(items=batch)
            written += len(batch)

        self.metrics_hook.increment(names.INDEXING_CHUNKS_TOTAL, written)
        return written

    async def delete_chunks_from_source(self, source: str) -> int:
        deleted = await self._store.delete(filters={SOURCE_KEY: source})
        logger.debug("Deleted %d chunks from %s", deleted, source)
        return deleted

    async def get_collection_info(self) -> CollectionInfo:
        info = await self._store.collection_info()
        logger.info(
            "Collection %s: points=%d, indexed_vectors=%d",
            info.name,
            info.points_count,
            info.indexed_vectors_count,
        )
        return info

    async def _index_batch(self, batch: list[Chunk]) -> None:
        start = monotonic()
        items = await self._embed_batch(batch)
        await self._store.upsert(items=items)

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.INDEXING_BATCH_DURATION, elapsed_ms)

    async def _embed_batch(self, batch: list[Chunk]) -> list[VectorItem]:
        embeddings = await self._embeddings.embed([chunk.content for chunk in batch])
        return [
            VectorItem(
                id=chunk.id,
                vector=embedding.vector,
                metadata={CONTENT_KEY: chunk.content, **chunk.metadata.to_payload()},
            )
            for chunk, embedding in zip(batch, embeddings, strict=True)
        ]
