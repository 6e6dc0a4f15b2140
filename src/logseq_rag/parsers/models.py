# src/logseq_rag/parsers/models.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

DocumentType = Literal["journal", "page"]


@dataclass(frozen=True)
class Page:
    """A parsed Logseq note with its frontmatter already removed."""

    path: str
    filename: str
    document_type: DocumentType
    content: str
    title: str
    page_links: list[str] = field(default_factory=list)
    block_refs: list[str] = field(default_factory=list)
    date: datetime | None = None
