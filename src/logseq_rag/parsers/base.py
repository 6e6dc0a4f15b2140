# parsers/base.py

from abc import ABC, abstractmethod

from .models import DocumentType, Page


class DocumentParser(ABC):
    @abstractmethod
    def parse(self, text: str, *, path: str, document_type: DocumentType) -> Page:
        """
        Parse the raw text of one note into a Page.

        Requirements:
        - Deterministic output for same input
        - Frontmatter removed from Page.content
        - No IDs generated
        """
        raise NotImplementedError
