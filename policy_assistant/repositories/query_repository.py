from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from policy_assistant.database.models import Clause, Query, QueryResult, QueryStatus
from policy_assistant.repositories.base_repository import BaseRepository
from policy_assistant.services.claims.types import Decision
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class QueryRepository(BaseRepository[Query]):
    """Repository for claim queries and their supporting-clause associations.

    The ``processing`` -> ``completed | error`` transition is written with a
    conditional UPDATE so that at most one run can move a query out of
    ``processing``.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Query)

    async def create_pending(self, user_id: UUID, text: str) -> Query:
        """Create a query in ``processing`` state."""
        return await self.create(user_id=user_id, text=text, status=QueryStatus.PROCESSING)

    async def complete(
        self,
        query_id: UUID,
        decision: Decision,
        processing_time_ms: int,
    ) -> bool:
        """Write decision fields and supporting clauses in one transaction.

        Args:
            query_id: Query being completed
            decision: Decision produced by the policy
            processing_time_ms: Elapsed time since submission

        Returns:
            True if this call performed the transition, False if the query was
            no longer ``processing`` (nothing is written in that case)
        """
        try:
            result = await self.session.execute(
                update(Query)
                .where(Query.id == query_id, Query.status == QueryStatus.PROCESSING)
                .values(
                    status=QueryStatus.COMPLETED,
                    decision=decision.outcome.value,
                    amount=decision.amount,
                    currency=decision.currency,
                    justification=decision.justification,
                    confidence=decision.confidence,
                    processing_time_ms=processing_time_ms,
                    completed_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.session.rollback()
                return False

            for rank, scored in enumerate(decision.supporting_clauses):
                self.session.add(
                    QueryResult(
                        query_id=query_id,
                        clause_id=scored.clause.id,
                        relevance_score=scored.relevance_score,
                        rank=rank,
                    )
                )
            await self.session.flush()
            await self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error completing query {query_id}: {str(e)}", exc_info=True)
            raise

    async def mark_error(self, query_id: UUID) -> bool:
        """Move a query from ``processing`` to ``error``.

        Returns:
            True if this call performed the transition
        """
        result = await self.session.execute(
            update(Query)
            .where(Query.id == query_id, Query.status == QueryStatus.PROCESSING)
            .values(status=QueryStatus.ERROR, completed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def list_for_owner(self, user_id: UUID) -> List[Query]:
        """List a user's queries newest first, with supporting clauses loaded."""
        result = await self.session.execute(
            select(Query)
            .options(self._results_loader())
            .where(Query.user_id == user_id)
            .order_by(Query.timestamp.desc())
        )
        return list(result.scalars().all())

    async def get_for_owner(self, query_id: UUID, user_id: UUID) -> Optional[Query]:
        """Fetch one query with supporting clauses, scoped to its owner."""
        result = await self.session.execute(
            select(Query)
            .options(self._results_loader())
            .where(Query.id == query_id, Query.user_id == user_id)
            # A background run may have updated the row since it was last loaded
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _results_loader():
        return (
            selectinload(Query.results)
            .selectinload(QueryResult.clause)
            .selectinload(Clause.document)
        )
