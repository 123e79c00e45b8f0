from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from policy_assistant.database.models import Clause, Document, DocumentStatus
from policy_assistant.repositories.base_repository import BaseRepository
from policy_assistant.services.extraction.clause_splitter import ClauseDraft
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentRepository(BaseRepository[Document]):
    """Repository for managing Document records and their clauses."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Document)

    async def create_document(
        self,
        user_id: UUID,
        name: str,
        mime_type: str,
        size: int,
        file_path: str,
    ) -> Document:
        """Create a new document record in ``processing`` state.

        Args:
            user_id: ID of the user owning the document
            name: Original file name
            mime_type: MIME type reported by the upload
            size: File size in bytes
            file_path: Location of the stored bytes

        Returns:
            Created Document record
        """
        return await self.create(
            user_id=user_id,
            name=name,
            mime_type=mime_type,
            size=size,
            file_path=file_path,
            status=DocumentStatus.PROCESSING,
        )

    async def list_for_owner(self, user_id: UUID) -> List[Document]:
        """List a user's documents, newest first."""
        result = await self.session.execute(
            select(Document)
            .where(Document.user_id == user_id)
            .order_by(Document.uploaded_at.desc())
        )
        return list(result.scalars().all())

    async def get_for_owner(self, document_id: UUID, user_id: UUID) -> Optional[Document]:
        """Fetch one document with its clauses, scoped to its owner."""
        result = await self.session.execute(
            select(Document)
            .options(selectinload(Document.clauses))
            .where(Document.id == document_id, Document.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def mark_ready(
        self,
        document_id: UUID,
        content: Optional[str],
        clauses: Sequence[ClauseDraft],
    ) -> bool:
        """Store extracted content and clauses and flip the status to ``ready``.

        Clauses and status are committed together so retrieval never sees a
        ready document with a partial clause set.

        Returns:
            True if the document exists, False otherwise
        """
        document = await self.get_by_id(document_id)
        if document is None:
            LOGGER.warning(f"Document {document_id} disappeared before extraction finished")
            return False

        for draft in clauses:
            self.session.add(
                Clause(
                    document_id=document_id,
                    position=draft.position,
                    text=draft.text,
                    section=draft.section,
                    page=draft.page,
                )
            )
        document.content = content
        document.status = DocumentStatus.READY

        await self.session.flush()
        await self.session.commit()
        LOGGER.info(
            f"Document {document_id} ready",
            extra={"document_id": str(document_id), "clauses": len(clauses)},
        )
        return True

    async def mark_error(self, document_id: UUID) -> bool:
        """Flag a document whose extraction failed."""
        return await self.update(document_id, status=DocumentStatus.ERROR) is not None

    async def delete_for_owner(self, document_id: UUID, user_id: UUID) -> Optional[Document]:
        """Delete a document, its clauses and their query associations.

        Returns:
            The deleted Document (detached) or None if not found
        """
        result = await self.session.execute(
            select(Document)
            .options(selectinload(Document.clauses).selectinload(Clause.query_results))
            .where(Document.id == document_id, Document.user_id == user_id)
        )
        document = result.scalar_one_or_none()
        if document is None:
            return None

        await self.session.delete(document)
        await self.session.flush()
        await self.session.commit()
        return document
