"""
Keeps the vector store in step with the Logseq vault.

Each page is handled on its own: it is re-chunked and embedded, then its
previous chunks are replaced. A page that fails keeps its old chunks, is
logged and reported, and the sync carries on with the next one.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from time import monotonic
from typing import Literal

from logseq_rag.chunking import LogseqChunker
from logseq_rag.indexing import VectorIndexer
from logseq_rag.observability import names
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook
from logseq_rag.parsers import LogseqParser, Page

logger = logging.getLogger(__name__)

SyncMode = Literal["full", "incremental"]


@dataclass
class SyncReport:
    mode: SyncMode
    pages_found: int = 0
    indexed: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def total_chunks(self) -> int:
        return sum(self.indexed.values())

    @property
    def ok(self) -> bool:
        return not self.failed


class SyncService:
    def __init__(
        self,
        parser: LogseqParser,
        chunker: LogseqChunker,
        indexer: VectorIndexer,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._parser = parser
        self._chunker = chunker
        self._indexer = indexer
        self.metrics_hook = metrics_hook

    async def full_sync(self) -> SyncReport:
        logger.info("Full sync: indexing all pages")
        await self._indexer.initialize_collection()

        pages = self._parser.parse_all_pages()
        return await self._sync_pages("full", pages)

    async def incremental_sync(self, since: datetime) -> SyncReport:
        logger.info("Incremental sync: checking for changes since %s", since)
        await self._indexer.initialize_collection()

        modified = self._parser.get_modified_files(since)
        if not modified:
            logger.info("No modified files found since %s", since)
            return SyncReport(mode="incremental")

        for path in modified:
            logger.info("Modified: %s", path)

        pages = self._parser.parse_changed_files(modified)
        report = await self._sync_pages("incremental", pages)
        # files that changed but could not be parsed
        parsed = {page.path for page in pages}
        for path in modified:
            if str(path) not in parsed:
                report.failed[str(path)] = "could not be parsed"
        return report

    async def _sync_pages(self, mode: SyncMode, pages: list[Page]) -> SyncReport:
        start = monotonic()
        report = SyncReport(mode=mode, pages_found=len(pages))
        logger.info("Found %d pages", len(pages))

        for page in pages:
            try:
                report.indexed[page.path] = await self._sync_page(page)
            except Exception as exc:
                logger.exception("Failed to index %s", page.path)
                report.failed[page.path] = str(exc) or type(exc).__name__
                self.metrics_hook.increment(names.SYNC_PAGES_FAILED)
            else:
                self.metrics_hook.increment(names.SYNC_PAGES_INDEXED)

        await self._indexer.get_collection_info()

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.SYNC_DURATION, elapsed_ms, labels={"mode": mode}
        )
        logger.info(
            "Sync complete: %d pages, %d chunks, %d failed",
            len(report.indexed),
            report.total_chunks,
            len(report.failed),
        )
        return report

    async def _sync_page(self, page: Page) -> int:
        # embed first so a failure leaves the page's previous chunks in place
        chunks = self._chunker.chunk_page(page)
        items = await self._indexer.embed_chunks(chunks)
        await self._indexer.delete_chunks_from_source(page.path)
        indexed = await self._indexer.upsert_items(items)
        logger.info("  %s: %d chunks", page.title, indexed)
        return indexed
