from collections.abc import Callable
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from logseq_rag.embeddings.base import Embedding
from logseq_rag.parsers.models import DocumentType, Page


@pytest.fixture
def make_page() -> Callable[..., Page]:
    """Factory for Page objects with sensible defaults."""

    def _make_page(
        content: str,
        *,
        path: str = "/vault/pages/test.md",
        document_type: DocumentType = "page",
        title: str = "Test Page",
        page_links: list[str] | None = None,
        date: datetime | None = None,
    ) -> Page:
        return Page(
            path=path,
            filename=path.rsplit("/", 1)[-1].removesuffix(".md"),
            document_type=document_type,
            content=content,
            title=title,
            page_links=page_links or [],
            date=date,
        )

    return _make_page


@pytest.fixture
def journal_date() -> datetime:
    return datetime(2024, 12, 27, tzinfo=timezone.utc)


class FakeEmbeddingsClient:
    """Deterministic 4-d vectors; raises for texts containing `fail_on`."""

    def __init__(self) -> None:
        self.metrics_hook = MagicMock()
        self.calls: list[list[str]] = []
        self.fail_on: str | None = None
        self.dimensions = 4

    async def embed(self, texts: list[str]) -> list[Embedding]:
        self.calls.append(list(texts))
        if self.fail_on and any(self.fail_on in t for t in texts):
            raise RuntimeError("embedding service unavailable")
        return [Embedding(vector=[float(len(t)), 1.0, 0.0, 0.5]) for t in texts]


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingsClient:
    return FakeEmbeddingsClient()
