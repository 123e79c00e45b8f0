from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.database.models import Clause, Document, DocumentStatus
from policy_assistant.repositories.base_repository import BaseRepository
from policy_assistant.services.claims.types import ClauseCandidate


class ClauseRepository(BaseRepository[Clause]):
    """Read path for clauses used by retrieval."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Clause)

    async def list_ready_clauses(self, user_id: UUID) -> List[ClauseCandidate]:
        """Snapshot every clause of the user's ``ready`` documents.

        Ordered by document upload time, then clause position, so the
        enumeration order is stable for a fixed store state.
        """
        result = await self.session.execute(
            select(Clause, Document.name)
            .join(Document, Clause.document_id == Document.id)
            .where(Document.user_id == user_id, Document.status == DocumentStatus.READY)
            .order_by(Document.uploaded_at, Document.id, Clause.position)
        )
        return [
            ClauseCandidate(
                id=clause.id,
                text=clause.text,
                document_id=clause.document_id,
                document_name=document_name,
                section=clause.section,
                page=clause.page,
            )
            for clause, document_name in result.all()
        ]
