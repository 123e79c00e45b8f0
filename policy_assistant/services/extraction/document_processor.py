"""Background processing of uploaded documents."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from policy_assistant.repositories.document_repository import DocumentRepository
from policy_assistant.services.extraction.clause_splitter import split_into_clauses
from policy_assistant.services.extraction.content_extractor import ExtractorRegistry
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentProcessor:
    """Extracts a stored document's text and clauses, then marks it ready.

    Any failure marks the document ``error``; a ready document always has its
    full clause set.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        extractors: Optional[ExtractorRegistry] = None,
        min_clause_length: int = 50,
        clauses_per_page: int = 3,
    ):
        self.session_factory = session_factory
        self.extractors = extractors or ExtractorRegistry()
        self.min_clause_length = min_clause_length
        self.clauses_per_page = clauses_per_page

    async def run(self, document_id: UUID, file_path: str, mime_type: str) -> None:
        async with self.session_factory() as session:
            doc_repo = DocumentRepository(session)
            try:
                content = await self.extractors.extract(file_path, mime_type)
                clauses = split_into_clauses(
                    content,
                    min_length=self.min_clause_length,
                    clauses_per_page=self.clauses_per_page,
                )
                await doc_repo.mark_ready(document_id, content, clauses)

            except Exception as e:
                await session.rollback()
                LOGGER.error(
                    "Document processing failed",
                    exc_info=True,
                    extra={"document_id": str(document_id), "error": str(e)},
                )
                await doc_repo.mark_error(document_id)
