import os
import time
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from logseq_rag.chunking import LogseqChunker
from logseq_rag.indexing import VectorIndexer
from logseq_rag.observability import names
from logseq_rag.parsers import LogseqParser
from logseq_rag.sync import SyncReport, SyncService
from logseq_rag.vectorstores import QdrantVectorStore


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    (tmp_path / "journals").mkdir()
    (tmp_path / "pages").mkdir()
    (tmp_path / "journals" / "2024_12_27.md").write_text(
        "- Session 42 at the Ruins\n\t- [[Caelum]] revealed his past\n- Loot\n\t- a wand",
        encoding="utf-8",
    )
    (tmp_path / "pages" / "Caelum.md").write_text(
        "---\ntitle: Caelum Fenovar\n---\n- Mysterious wizard\n\t- Member of [[Arcane Order]]",
        encoding="utf-8",
    )
    return tmp_path


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[QdrantVectorStore, None]:
    store = QdrantVectorStore(collection_name="logseq-notes", vector_size=4)
    yield store
    await store.close()


def _service(vault: Path, fake_embeddings, store, metrics_hook=None) -> SyncService:
    kwargs = {"metrics_hook": metrics_hook} if metrics_hook else {}
    return SyncService(
        parser=LogseqParser(vault),
        chunker=LogseqChunker(chunk_size=800, chunk_overlap=200),
        indexer=VectorIndexer(fake_embeddings, store),
        **kwargs,
    )


def _age(path: Path, days: int) -> None:
    old = time.time() - timedelta(days=days).total_seconds()
    os.utime(path, (old, old))


class TestSyncReport:
    def test_totals(self) -> None:
        report = SyncReport(mode="full", indexed={"a": 2, "b": 3}, failed={})

        assert report.total_chunks == 5
        assert report.ok

    def test_not_ok_with_failures(self) -> None:
        assert not SyncReport(mode="full", failed={"a": "boom"}).ok


class TestFullSync:
    @pytest.mark.asyncio
    async def test_indexes_every_page(self, vault, fake_embeddings, store) -> None:
        report = await _service(vault, fake_embeddings, store).full_sync()

        assert report.mode == "full"
        assert report.pages_found == 2
        assert report.indexed == {
            str(vault / "journals" / "2024_12_27.md"): 1,
            str(vault / "pages" / "Caelum.md"): 1,
        }
        assert report.ok
        assert (await store.collection_info()).points_count == 2

    @pytest.mark.asyncio
    async def test_resync_replaces_previous_chunks(
        self, vault, fake_embeddings, store
    ) -> None:
        service = _service(vault, fake_embeddings, store)

        await service.full_sync()
        (vault / "pages" / "Caelum.md").write_text(
            "- " + "\n- ".join(f"fact {i} " + "x" * 3000 for i in range(3)),
            encoding="utf-8",
        )
        report = await service.full_sync()

        assert report.indexed[str(vault / "pages" / "Caelum.md")] == 3
        assert (await store.collection_info()).points_count == 4

    @pytest.mark.asyncio
    async def test_failing_page_does_not_stop_sync(
        self, vault, fake_embeddings, store
    ) -> None:
        (vault / "pages" / "Broken.md").write_text("- boom", encoding="utf-8")
        fake_embeddings.fail_on = "boom"
        metrics_hook = MagicMock()

        report = await _service(vault, fake_embeddings, store, metrics_hook).full_sync()

        assert report.failed == {
            str(vault / "pages" / "Broken.md"): "embedding service unavailable"
        }
        assert len(report.indexed) == 2
        assert not report.ok
        metrics_hook.increment.assert_any_call(names.SYNC_PAGES_FAILED)
        assert metrics_hook.record_latency.call_args.kwargs == {"labels": {"mode": "full"}}

    @pytest.mark.asyncio
    async def test_embedding_outage_keeps_previous_chunks(
        self, vault, fake_embeddings, store
    ) -> None:
        service = _service(vault, fake_embeddings, store)
        await service.full_sync()
        before = (await store.collection_info()).points_count

        fake_embeddings.fail_on = "-"
        report = await service.full_sync()

        assert len(report.failed) == 2
        assert report.indexed == {}
        assert (await store.collection_info()).points_count == before == 2
        results = await store.query(vector=[1.0, 1.0, 0.0, 0.5], top_k=10)
        assert {r.metadata["source"] for r in results} == {
            str(vault / "journals" / "2024_12_27.md"),
            str(vault / "pages" / "Caelum.md"),
        }

    @pytest.mark.asyncio
    async def test_empty_vault(self, tmp_path, fake_embeddings, store) -> None:
        report = await _service(tmp_path, fake_embeddings, store).full_sync()

        assert report.pages_found == 0
        assert report.total_chunks == 0
        assert report.ok


class TestIncrementalSync:
    @pytest.mark.asyncio
    async def test_only_recent_files_are_indexed(
        self, vault, fake_embeddings, store
    ) -> None:
        _age(vault / "pages" / "Caelum.md", days=3)
        since = datetime.now(timezone.utc) - timedelta(hours=24)

        report = await _service(vault, fake_embeddings, store).incremental_sync(since)

        assert report.mode == "incremental"
        assert list(report.indexed) == [str(vault / "journals" / "2024_12_27.md")]
        assert (await store.collection_info()).points_count == 1

    @pytest.mark.asyncio
    async def test_nothing_modified(self, vault, fake_embeddings, store) -> None:
        _age(vault / "pages" / "Caelum.md", days=3)
        _age(vault / "journals" / "2024_12_27.md", days=3)
        since = datetime.now(timezone.utc) - timedelta(hours=24)

        report = await _service(vault, fake_embeddings, store).incremental_sync(since)

        assert report == SyncReport(mode="incremental")
        assert fake_embeddings.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_modified_file_is_reported(
        self, vault, fake_embeddings, store
    ) -> None:
        broken = vault / "pages" / "broken.md"
        broken.write_text("---\ntitle: [unclosed\n---\n- x", encoding="utf-8")
        since = datetime.now(timezone.utc) - timedelta(hours=24)

        report = await _service(vault, fake_embeddings, store).incremental_sync(since)

        assert report.failed == {str(broken): "could not be parsed"}
        assert len(report.indexed) == 2
