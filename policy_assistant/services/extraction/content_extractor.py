"""
Content extractors for uploaded documents.

Plain text is read as-is and PDFs are read page by page with pdfplumber.
Word documents get a short placeholder text until a DOC/DOCX extractor is
added.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

import pdfplumber

from policy_assistant.core.exceptions import ExtractionError
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Kept shorter than the minimum clause length so it never becomes a clause
PLACEHOLDER_CONTENT = "Placeholder content: text extraction unavailable."


class ContentExtractor(ABC):
    """Strategy interface turning a stored file into text."""

    mime_types: tuple[str, ...] = ()

    async def extract(self, path: Path) -> str:
        """Extract text without blocking the event loop.

        Raises:
            ExtractionError: If the file cannot be read
        """
        try:
            return await asyncio.to_thread(self.extract_sync, path)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to extract {path.name}: {e}", original_error=e) from e

    @abstractmethod
    def extract_sync(self, path: Path) -> str:
        """Blocking extraction implementation."""


class PlainTextExtractor(ContentExtractor):
    """Reads UTF-8 text files."""

    mime_types = ("text/plain",)

    def extract_sync(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


class PdfTextExtractor(ContentExtractor):
    """Reads the text layer of each PDF page, pages separated by blank lines."""

    mime_types = ("application/pdf",)

    def extract_sync(self, path: Path) -> str:
        with pdfplumber.open(path) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
        LOGGER.debug(f"Extracted {len(pages)} pages from {path.name}")
        return "\n\n".join(page.strip() for page in pages if page.strip())


class PlaceholderExtractor(ContentExtractor):
    """Stand-in for file types without a real extractor yet."""

    mime_types = (
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )

    def extract_sync(self, path: Path) -> str:
        LOGGER.info(f"No text extractor for {path.name}; storing placeholder content")
        return PLACEHOLDER_CONTENT


class ExtractorRegistry:
    """Maps MIME type to extractor implementation."""

    def __init__(self, extractors: Optional[List[ContentExtractor]] = None) -> None:
        self._extractors: Dict[str, ContentExtractor] = {}
        for extractor in extractors or [
            PlainTextExtractor(),
            PdfTextExtractor(),
            PlaceholderExtractor(),
        ]:
            self.register(extractor)

    def register(self, extractor: ContentExtractor) -> None:
        for mime_type in extractor.mime_types:
            self._extractors[mime_type.lower()] = extractor

    def get(self, mime_type: str) -> ContentExtractor:
        extractor = self._extractors.get(mime_type.lower())
        if extractor is None:
            raise ExtractionError(f"No extractor registered for MIME type: {mime_type}")
        return extractor

    async def extract(self, path: str | Path, mime_type: str) -> str:
        return await self.get(mime_type).extract(Path(path))
