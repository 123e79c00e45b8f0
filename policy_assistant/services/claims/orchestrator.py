"""
Claim query orchestration.

Runs parse -> retrieve -> decide for one accepted query and records the
outcome. The run owns the query's only write: it moves the record from
``processing`` to ``completed`` (with decision fields and supporting-clause
associations) or to ``error``. The simulated latencies stand in for the
model inference calls a production parser and policy would make.
"""

import asyncio
import time
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from policy_assistant.core.exceptions import QueryProcessingError
from policy_assistant.repositories.clause_repository import ClauseRepository
from policy_assistant.repositories.query_repository import QueryRepository
from policy_assistant.services.claims.clause_retriever import ClauseRetriever
from policy_assistant.services.claims.decision_engine import DecisionPolicy, RuleTableDecisionPolicy
from policy_assistant.services.claims.query_parser import QueryParser, RuleBasedQueryParser
from policy_assistant.services.claims.types import Decision
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class QueryOrchestrator:
    """Sequences the claim pipeline for a single query."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        parser: Optional[QueryParser] = None,
        policy: Optional[DecisionPolicy] = None,
        parse_latency_seconds: float = 0.0,
        decision_latency_seconds: float = 0.0,
    ):
        self.session_factory = session_factory
        self.parser = parser or RuleBasedQueryParser()
        self.policy = policy or RuleTableDecisionPolicy()
        self.parse_latency_seconds = parse_latency_seconds
        self.decision_latency_seconds = decision_latency_seconds

    async def run(
        self,
        query_id: UUID,
        raw_text: str,
        owner_id: UUID,
        submitted_at: Optional[float] = None,
    ) -> None:
        """Process one query and persist the result.

        Args:
            query_id: Query record created in ``processing`` state
            raw_text: Query text as submitted
            owner_id: Owner whose documents are searched
            submitted_at: ``time.perf_counter()`` reading taken when the query
                was accepted; elapsed time is measured from here
        """
        started = submitted_at if submitted_at is not None else time.perf_counter()
        log_extra = {"query_id": str(query_id), "owner_id": str(owner_id)}

        async with self.session_factory() as session:
            query_repo = QueryRepository(session)
            try:
                decision = await self._evaluate(session, raw_text, owner_id)

                processing_time_ms = int((time.perf_counter() - started) * 1000)
                written = await query_repo.complete(query_id, decision, processing_time_ms)

                if written:
                    LOGGER.info(
                        "Query completed",
                        extra={
                            **log_extra,
                            "outcome": decision.outcome.value,
                            "supporting_clauses": len(decision.supporting_clauses),
                            "processing_time_ms": processing_time_ms,
                        },
                    )
                else:
                    LOGGER.warning(
                        "Query was no longer processing; decision discarded",
                        extra=log_extra,
                    )

            except Exception as e:
                await session.rollback()
                LOGGER.error(
                    "Query processing failed",
                    exc_info=True,
                    extra={**log_extra, "error": str(e), "error_type": type(e).__name__},
                )
                await query_repo.mark_error(query_id)

    async def _evaluate(self, session: AsyncSession, raw_text: str, owner_id: UUID) -> Decision:
        """Parse, retrieve and decide.

        Raises:
            QueryProcessingError: Naming the stage that failed
        """
        stage = "parse"
        try:
            await self._simulate_latency(self.parse_latency_seconds)
            parsed = self.parser.parse(raw_text)

            stage = "retrieve"
            retriever = ClauseRetriever(ClauseRepository(session))
            ranked = await retriever.retrieve(parsed, owner_id)

            stage = "decide"
            await self._simulate_latency(self.decision_latency_seconds)
            return self.policy.decide(parsed, ranked)
        except Exception as e:
            raise QueryProcessingError(
                f"Query pipeline failed during {stage}: {e}", original_error=e
            ) from e

    @staticmethod
    async def _simulate_latency(seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
