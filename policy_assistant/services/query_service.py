"""Claim query submission and retrieval."""

import time
from typing import Any, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.core.exceptions import AppError, NotFoundError, ValidationError
from policy_assistant.database.models import Query
from policy_assistant.repositories.query_repository import QueryRepository
from policy_assistant.schemas.queries import QueryResponse, QuerySubmitted, SupportingClause
from policy_assistant.services.base_service import BaseService
from policy_assistant.services.claims.orchestrator import QueryOrchestrator
from policy_assistant.services.task_runner import BackgroundTaskRunner
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


def to_query_response(query: Query) -> QueryResponse:
    """Build the API view of a stored query and its supporting clauses."""
    return QueryResponse(
        id=query.id,
        text=query.text,
        timestamp=query.timestamp,
        status=query.status,
        decision=query.decision,
        amount=float(query.amount) if query.amount is not None else None,
        currency=query.currency,
        justification=query.justification,
        confidence=query.confidence,
        processing_time=query.processing_time_ms,
        clauses=[
            SupportingClause(
                id=result.clause.id,
                text=result.clause.text,
                section=result.clause.section,
                page=result.clause.page,
                document_name=result.clause.document.name,
                relevance_score=result.relevance_score,
            )
            for result in query.results
        ],
    )


class QueryService(BaseService):
    """Accepts claim queries and serves their current state.

    Submission returns as soon as the query is recorded; the orchestration
    run is scheduled on the background task runner.
    """

    def __init__(
        self,
        session: AsyncSession,
        task_runner: BackgroundTaskRunner,
        orchestrator: QueryOrchestrator,
    ):
        self.query_repo = QueryRepository(session)
        super().__init__(self.query_repo)
        self.task_runner = task_runner
        self.orchestrator = orchestrator

    def validate(self, *args, **kwargs):
        if kwargs.get("action") == "submit_query":
            text = kwargs.get("text")
            if not isinstance(text, str) or not text.strip():
                raise ValidationError("Query text is required")

    async def run(self, *args, **kwargs) -> Any:
        action = kwargs.get("action")

        if action == "submit_query":
            return await self._submit_query_logic(kwargs["text"], kwargs["user_id"])
        elif action == "list_queries":
            return await self._list_queries_logic(kwargs["user_id"])
        elif action == "get_query":
            return await self._get_query_logic(kwargs["query_id"], kwargs["user_id"])
        else:
            raise AppError(f"Unknown action: {action}")

    async def submit_query(self, text: str, user_id: UUID) -> QuerySubmitted:
        """Record a query in ``processing`` state and schedule its run.

        Raises:
            ValidationError: If the text is missing or blank
        """
        return await self.execute(action="submit_query", text=text, user_id=user_id)

    async def list_queries(self, user_id: UUID) -> List[QueryResponse]:
        return await self.execute(action="list_queries", user_id=user_id)

    async def get_query(self, query_id: UUID, user_id: UUID) -> QueryResponse:
        return await self.execute(action="get_query", query_id=query_id, user_id=user_id)

    async def _submit_query_logic(self, text: str, user_id: UUID) -> QuerySubmitted:
        submitted_at = time.perf_counter()
        query = await self.query_repo.create_pending(user_id, text.strip())
        submitted = QuerySubmitted.model_validate(query)

        query_id, query_text = query.id, query.text
        self.task_runner.submit(
            query_id,
            lambda: self.orchestrator.run(query_id, query_text, user_id, submitted_at),
        )
        LOGGER.info(
            "Query accepted",
            extra={"query_id": str(query_id), "owner_id": str(user_id)},
        )
        return submitted

    async def _list_queries_logic(self, user_id: UUID) -> List[QueryResponse]:
        queries = await self.query_repo.list_for_owner(user_id)
        return [to_query_response(query) for query in queries]

    async def _get_query_logic(self, query_id: UUID, user_id: UUID) -> QueryResponse:
        query = await self.query_repo.get_for_owner(query_id, user_id)
        if query is None:
            raise NotFoundError(f"Query with ID {query_id} not found")
        return to_query_response(query)
