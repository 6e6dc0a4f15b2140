import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from time import monotonic
from typing import Any

from logseq_rag.observability import names
from logseq_rag.observability.base import MetricsHook, NoOpMetricsHook
from logseq_rag.parsers.models import DocumentType, Page

from .bullets import BulletNode, estimate_tokens, parse_bullet_tree, render_bullets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkMetadata:
    source: str
    document_type: DocumentType
    title: str
    chunk_index: int
    total_chunks: int
    date: str | None = None
    page_links: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["page_links"] = list(self.page_links)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ChunkMetadata":
        return cls(
            source=payload["source"],
            document_type=payload["document_type"],
            title=payload["title"],
            chunk_index=payload["chunk_index"],
            total_chunks=payload["total_chunks"],
            date=payload.get("date"),
            page_links=tuple(payload.get("page_links") or ()),
        )


@dataclass(frozen=True)
class Chunk:
    id: str
    content: str
    metadata: ChunkMetadata


class LogseqChunker:
    """Splits Logseq outlines into hierarchy-preserving chunks.

    Top-level blocks are packed greedily into sections of at most
    `chunk_size` estimated tokens without separating a block from its
    children. A section that is still too large (a single huge block) is
    split along child boundaries, with every fragment prefixed by the text
    of its ancestors so it keeps its context.

    `chunk_overlap` is validated and stored but not applied; sections and
    fragments never overlap.

    The chunker holds no mutable state and can be shared between threads.
    """

    def __init__(
        self,
        chunk_size: int = 800,
        chunk_overlap: int = 200,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if chunk_overlap < 0:
            raise ValueError("chunk_overlap must be >= 0")
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be < chunk_size")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.metrics_hook = metrics_hook

    def chunk_page(self, page: Page) -> list[Chunk]:
        start = monotonic()
        fragments = self.split_content(page.content)
        total = len(fragments)
        chunks = [
            self._create_chunk(page, fragment, index, total)
            for index, fragment in enumerate(fragments)
        ]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.CHUNKING_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.CHUNKING_CHUNKS_CREATED, len(chunks))
        logger.debug("Chunked %s into %d chunks", page.path, len(chunks))
        return chunks

    def split_content(self, content: str) -> list[str]:
        """Return the text of every chunk for `content`, in document order."""
        forest = parse_bullet_tree(content)
        if not forest:
            return [content] if content.strip() else []

        fragments: list[str] = []
        for section in self.group_into_sections(forest):
            section_text = render_bullets(section)
            if estimate_tokens(section_text) <= self.chunk_size:
                fragments.append(section_text)
                continue

            self.metrics_hook.increment(names.CHUNKING_OVERSIZED_SECTIONS)
            fragments.extend(self.split_large_section(section))

        if not fragments and content.strip():
            return [content]
        return fragments

    def group_into_sections(self, bullets: list[BulletNode]) -> list[list[BulletNode]]:
        sections: list[list[BulletNode]] = []
        current: list[BulletNode] = []
        current_size = 0

        for bullet in bullets:
            size = estimate_tokens(render_bullets([bullet]))

            if current and current_size + size > self.chunk_size:
                sections.append(current)
                current = [bullet]
                current_size = size
            else:
                current.append(bullet)
                current_size += size

        if current:
            sections.append(current)

        return sections

    def split_large_section(self, bullets: Sequence[BulletNode]) -> list[str]:
        """Split along child boundaries, one fragment per leaf path.

        The budget is not consulted here, so a single leaf larger than
        `chunk_size` is still emitted whole.
        """
        fragments: list[str] = []

        for bullet in bullets:
            if bullet.is_leaf:
                fragments.append(bullet.text)
                continue

            for child_fragment in self.split_large_section(bullet.children):
                fragments.append(f"{bullet.text}\n{child_fragment}")

        return fragments

    def _create_chunk(
        self, page: Page, content: str, chunk_index: int, total_chunks: int
    ) -> Chunk:
        return Chunk(
            id=str(uuid.uuid4()),
            content=content,
            metadata=ChunkMetadata(
                source=page.path,
                document_type=page.document_type,
                title=page.title,
                chunk_index=chunk_index,
                total_chunks=total_chunks,
                date=page.date.isoformat() if page.date else None,
                page_links=tuple(page.page_links),
            ),
        )
