# parsers/logseq_parser.py

import logging
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from .base import DocumentParser
from .models import DocumentType, Page

logger = logging.getLogger(__name__)

JOURNALS_DIR = "journals"
PAGES_DIR = "pages"

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
PAGE_LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")
BLOCK_REF_PATTERN = re.compile(r"\(\(([a-f0-9-]+)\)\)")
JOURNAL_FILENAME_PATTERN = re.compile(r"^(\d{4})_(\d{2})_(\d{2})$")


class LogseqParser(DocumentParser):
    """
    Reads a Logseq graph directory.

    - journals/YYYY_MM_DD.md become dated "journal" pages
    - pages/*.md become "page" documents titled by frontmatter or filename
    - unreadable files are logged and skipped
    """

    def __init__(self, vault_path: str | Path) -> None:
        self._vault_path = Path(vault_path)

    @property
    def directories(self) -> dict[DocumentType, Path]:
        return {
            "journal": self._vault_path / JOURNALS_DIR,
            "page": self._vault_path / PAGES_DIR,
        }

    def parse(self, text: str, *, path: str, document_type: DocumentType) -> Page:
        frontmatter, content = split_frontmatter(text)
        filename = Path(path).stem

        date: datetime | None = None
        if document_type == "journal":
            date = parse_journal_date(filename)
            title = format_journal_title(date) if date else filename
        else:
            title = str(frontmatter.get("title") or filename)

        return Page(
            path=path,
            filename=filename,
            document_type=document_type,
            content=content,
            title=title,
            page_links=extract_page_links(content),
            block_refs=extract_block_refs(content),
            date=date,
        )

    def parse_file(self, path: Path, document_type: DocumentType) -> Page | None:
        try:
            text = path.read_text(encoding="utf-8")
            return self.parse(text, path=str(path), document_type=document_type)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            logger.warning("Could not parse file %s: %s", path, exc)
            return None

    def parse_all_pages(self) -> list[Page]:
        pages: list[Page] = []
        for document_type, directory in self.directories.items():
            pages.extend(self._parse_directory(directory, document_type))
        logger.info("Parsed %d pages from %s", len(pages), self._vault_path)
        return pages

    def parse_changed_files(self, paths: Iterable[str | Path]) -> list[Page]:
        pages = []
        for path in map(Path, paths):
            document_type: DocumentType = (
                "journal" if JOURNALS_DIR in path.parts else "page"
            )
            page = self.parse_file(path, document_type)
            if page is not None:
                pages.append(page)
        return pages

    def get_modified_files(self, since: datetime) -> list[Path]:
        """Markdown files in journals/ and pages/ modified after `since`."""
        threshold = since.timestamp()
        modified: list[Path] = []

        for directory in self.directories.values():
            try:
                for path in _markdown_files(directory):
                    if path.stat().st_mtime > threshold:
                        modified.append(path)
            except OSError as exc:
                logger.warning("Could not read directory %s: %s", directory, exc)

        logger.debug("Found %d files modified since %s", len(modified), since)
        return modified

    def _parse_directory(self, directory: Path, document_type: DocumentType) -> list[Page]:
        try:
            files = _markdown_files(directory)
        except OSError as exc:
            logger.warning("Could not read directory %s: %s", directory, exc)
            return []

        pages = []
        for path in files:
            page = self.parse_file(path, document_type)
            if page is not None:
                pages.append(page)
        return pages


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a leading `---` YAML block from the body.

    Raises yaml.YAMLError when the block is not valid YAML. A block that does
    not hold a mapping is treated as empty.
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text

    data = yaml.safe_load(match.group(1))
    if not isinstance(data, dict):
        data = {}
    return data, text[match.end() :]


def extract_page_links(content: str) -> list[str]:
    return _unique(PAGE_LINK_PATTERN.findall(content))


def extract_block_refs(content: str) -> list[str]:
    return _unique(BLOCK_REF_PATTERN.findall(content))


def parse_journal_date(filename: str) -> datetime | None:
    match = JOURNAL_FILENAME_PATTERN.match(filename)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        logger.debug("Journal filename %s is not a real date", filename)
        return None


def format_journal_title(date: datetime) -> str:
    # "December 27, 2024"
    return f"{date:%B} {date.day}, {date.year}"


def _markdown_files(directory: Path) -> list[Path]:
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".md")


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))
