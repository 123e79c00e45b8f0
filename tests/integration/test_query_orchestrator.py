"""Integration tests for the claim pipeline against a SQLite database."""

import logging
from decimal import Decimal
from uuid import uuid4

import pytest

from policy_assistant.core.exceptions import QueryProcessingError
from policy_assistant.database.models import QueryStatus
from policy_assistant.repositories.document_repository import DocumentRepository
from policy_assistant.repositories.query_repository import QueryRepository
from policy_assistant.repositories.user_repository import UserRepository
from policy_assistant.services.claims.decision_engine import DecisionPolicy, IN_NETWORK_NOTE
from policy_assistant.services.claims.orchestrator import QueryOrchestrator
from policy_assistant.services.claims.types import Decision, DecisionOutcome
from policy_assistant.services.extraction.clause_splitter import split_into_clauses

SCENARIO_A = "46-year-old male, knee surgery in Pune, 3-month-old insurance policy"
SCENARIO_C = "70-year-old male needs knee surgery in Mumbai, 12-month policy"

POLICY_TEXT = "\n\n".join(
    [
        "Knee surgery is covered once the policy has been active for 3 months or more.",
        "Treatment at empanelled hospitals in Pune and Mumbai is settled cashless.",
        "Cosmetic procedures and experimental treatments are excluded from this policy.",
    ]
)


async def _create_user(db_client, email="owner@example.com"):
    async with db_client.session_factory() as session:
        return await UserRepository(session).create_user(email, "Owner", "not-a-real-hash")


async def _create_ready_document(db_client, user_id, content=POLICY_TEXT, name="policy.txt"):
    async with db_client.session_factory() as session:
        repo = DocumentRepository(session)
        document = await repo.create_document(
            user_id=user_id,
            name=name,
            mime_type="text/plain",
            size=len(content),
            file_path=f"/tmp/{name}",
        )
        await repo.mark_ready(document.id, content, split_into_clauses(content))
        return document


async def _submit(db_client, user_id, text):
    async with db_client.session_factory() as session:
        return await QueryRepository(session).create_pending(user_id, text)


async def _reload(db_client, query_id, user_id):
    async with db_client.session_factory() as session:
        return await QueryRepository(session).get_for_owner(query_id, user_id)


class ExplodingPolicy(DecisionPolicy):
    def decide(self, parsed_query, ranked_clauses):
        raise RuntimeError("decision backend unavailable")


class TestQueryOrchestrator:
    @pytest.fixture
    def orchestrator(self, db_client):
        return QueryOrchestrator(db_client.session_factory)

    @pytest.mark.asyncio
    async def test_scenario_a_approved_in_network(self, db_client, orchestrator):
        user = await _create_user(db_client)
        await _create_ready_document(db_client, user.id)
        query = await _submit(db_client, user.id, SCENARIO_A)

        await orchestrator.run(query.id, query.text, user.id)

        stored = await _reload(db_client, query.id, user.id)
        assert stored.status == QueryStatus.COMPLETED
        assert stored.decision == DecisionOutcome.APPROVED.value
        assert stored.amount == Decimal("500000")
        assert stored.currency == "INR"
        assert stored.confidence == 0.92
        assert "90-day waiting period" not in stored.justification
        assert stored.justification.endswith(IN_NETWORK_NOTE)
        assert stored.processing_time_ms is not None and stored.processing_time_ms >= 0
        assert stored.completed_at is not None

        scores = [result.relevance_score for result in stored.results]
        assert scores == sorted(scores, reverse=True)
        assert stored.results[0].clause.text.startswith("Knee surgery is covered")
        assert stored.results[0].relevance_score == pytest.approx(0.6)
        assert stored.results[0].clause.document.name == "policy.txt"

    @pytest.mark.asyncio
    async def test_scenario_b_no_clauses_is_pending(self, db_client, orchestrator):
        user = await _create_user(db_client)
        query = await _submit(db_client, user.id, SCENARIO_A)

        await orchestrator.run(query.id, query.text, user.id)

        stored = await _reload(db_client, query.id, user.id)
        assert stored.status == QueryStatus.COMPLETED
        assert stored.decision == DecisionOutcome.PENDING.value
        assert stored.confidence == 0.5
        assert stored.amount is None
        assert stored.currency is None
        assert stored.results == []

    @pytest.mark.asyncio
    async def test_scenario_c_age_forces_review(self, db_client, orchestrator):
        user = await _create_user(db_client)
        await _create_ready_document(db_client, user.id)
        query = await _submit(db_client, user.id, SCENARIO_C)

        await orchestrator.run(query.id, query.text, user.id)

        stored = await _reload(db_client, query.id, user.id)
        assert stored.decision == DecisionOutcome.REQUIRES_REVIEW.value
        assert stored.confidence == pytest.approx(0.72)
        assert "manual review required" in stored.justification

    @pytest.mark.asyncio
    async def test_other_owners_documents_are_ignored(self, db_client, orchestrator):
        owner = await _create_user(db_client)
        stranger = await _create_user(db_client, email="stranger@example.com")
        await _create_ready_document(db_client, stranger.id)
        query = await _submit(db_client, owner.id, SCENARIO_A)

        await orchestrator.run(query.id, query.text, owner.id)

        stored = await _reload(db_client, query.id, owner.id)
        assert stored.decision == DecisionOutcome.PENDING.value
        assert stored.results == []

    @pytest.mark.asyncio
    async def test_documents_still_processing_are_ignored(self, db_client, orchestrator):
        user = await _create_user(db_client)
        async with db_client.session_factory() as session:
            await DocumentRepository(session).create_document(
                user_id=user.id,
                name="pending.txt",
                mime_type="text/plain",
                size=10,
                file_path="/tmp/pending.txt",
            )
        query = await _submit(db_client, user.id, SCENARIO_A)

        await orchestrator.run(query.id, query.text, user.id)

        stored = await _reload(db_client, query.id, user.id)
        assert stored.decision == DecisionOutcome.PENDING.value

    @pytest.mark.asyncio
    async def test_pipeline_failure_records_error(self, db_client):
        user = await _create_user(db_client)
        await _create_ready_document(db_client, user.id)
        query = await _submit(db_client, user.id, SCENARIO_A)
        orchestrator = QueryOrchestrator(db_client.session_factory, policy=ExplodingPolicy())

        await orchestrator.run(query.id, query.text, user.id)

        stored = await _reload(db_client, query.id, user.id)
        assert stored.status == QueryStatus.ERROR
        assert stored.decision is None
        assert stored.justification is None
        assert stored.confidence is None
        assert stored.results == []

    @pytest.mark.asyncio
    async def test_pipeline_failure_is_logged_with_failing_stage(self, db_client, caplog):
        """Test that a stage failure is wrapped in QueryProcessingError before logging."""
        user = await _create_user(db_client)
        query = await _submit(db_client, user.id, SCENARIO_A)
        orchestrator = QueryOrchestrator(db_client.session_factory, policy=ExplodingPolicy())

        with caplog.at_level(logging.ERROR, logger="policy_assistant.services.claims.orchestrator"):
            await orchestrator.run(query.id, query.text, user.id)

        [record] = [r for r in caplog.records if r.getMessage() == "Query processing failed"]
        assert record.error_type == "QueryProcessingError"
        assert record.query_id == str(query.id)
        error = record.exc_info[1]
        assert isinstance(error, QueryProcessingError)
        assert "during decide" in error.message
        assert isinstance(error.original_error, RuntimeError)

    @pytest.mark.asyncio
    async def test_second_run_does_not_overwrite(self, db_client, orchestrator):
        """Test that only the first run moves a query out of processing."""
        user = await _create_user(db_client)
        await _create_ready_document(db_client, user.id)
        query = await _submit(db_client, user.id, SCENARIO_A)

        await orchestrator.run(query.id, query.text, user.id)
        await QueryOrchestrator(db_client.session_factory, policy=ExplodingPolicy()).run(
            query.id, query.text, user.id
        )
        await orchestrator.run(query.id, query.text, user.id)

        stored = await _reload(db_client, query.id, user.id)
        assert stored.status == QueryStatus.COMPLETED
        assert stored.decision == DecisionOutcome.APPROVED.value
        assert len(stored.results) == 2


class TestQueryRepositoryRoundTrip:
    @pytest.mark.asyncio
    async def test_completed_fields_survive_reload(self, db_client):
        user = await _create_user(db_client)
        query = await _submit(db_client, user.id, "knee surgery")
        decision = Decision(
            outcome=DecisionOutcome.APPROVED,
            justification="Covered.",
            confidence=0.92,
            amount=Decimal("500000"),
            currency="INR",
        )

        async with db_client.session_factory() as session:
            assert await QueryRepository(session).complete(query.id, decision, 1234) is True

        stored = await _reload(db_client, query.id, user.id)
        assert stored.decision == decision.outcome.value
        assert stored.justification == decision.justification
        assert stored.confidence == decision.confidence
        assert stored.amount == decision.amount
        assert stored.currency == decision.currency
        assert stored.processing_time_ms == 1234

    @pytest.mark.asyncio
    async def test_complete_is_conditional_on_processing(self, db_client):
        user = await _create_user(db_client)
        query = await _submit(db_client, user.id, "knee surgery")
        decision = Decision(outcome=DecisionOutcome.PENDING, justification="n/a", confidence=0.5)

        async with db_client.session_factory() as session:
            repo = QueryRepository(session)
            assert await repo.mark_error(query.id) is True
            assert await repo.complete(query.id, decision, 10) is False
            assert await repo.mark_error(query.id) is False

        stored = await _reload(db_client, query.id, user.id)
        assert stored.status == QueryStatus.ERROR

    @pytest.mark.asyncio
    async def test_unknown_query_is_not_found_for_owner(self, db_client):
        user = await _create_user(db_client)

        assert await _reload(db_client, uuid4(), user.id) is None
