from .base import DocumentParser
from .logseq_parser import LogseqParser
from .models import DocumentType, Page

__all__ = [
    "DocumentParser",
    "DocumentType",
    "LogseqParser",
    "Page",
]
