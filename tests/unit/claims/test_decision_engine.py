"""Unit tests for RuleTableDecisionPolicy."""

from decimal import Decimal
from uuid import uuid4

import pytest

from policy_assistant.services.claims.decision_engine import (
    AGE_CAVEAT,
    DEFAULT_JUSTIFICATION,
    IN_NETWORK_NOTE,
    RuleTableDecisionPolicy,
    meets_minimum_duration,
)
from policy_assistant.services.claims.types import (
    ClauseCandidate,
    DecisionOutcome,
    ParsedQuery,
    ScoredClause,
)


def _ranked(*scores: float) -> list:
    return [
        ScoredClause(
            clause=ClauseCandidate(
                id=uuid4(),
                text=f"Clause {index}",
                document_id=uuid4(),
                document_name="policy.txt",
            ),
            relevance_score=score,
        )
        for index, score in enumerate(scores)
    ]


@pytest.fixture
def policy():
    return RuleTableDecisionPolicy()


class TestDefaultRule:
    """No relevant clauses means the claim stays pending."""

    def test_empty_clauses_are_pending(self, policy):
        decision = policy.decide(ParsedQuery(), [])

        assert decision.outcome is DecisionOutcome.PENDING
        assert decision.confidence == 0.5
        assert decision.amount is None
        assert decision.currency is None
        assert decision.justification == DEFAULT_JUSTIFICATION
        assert decision.supporting_clauses == ()

    def test_empty_clauses_ignore_other_rules(self, policy):
        """Test that age and procedure rules only apply to non-empty rankings."""
        parsed = ParsedQuery(age=80, procedure="knee surgery", policy_duration_text="6 month")

        decision = policy.decide(parsed, [])

        assert decision.outcome is DecisionOutcome.PENDING
        assert decision.confidence == 0.5

    def test_other_procedure_stays_pending(self, policy):
        decision = policy.decide(ParsedQuery(procedure="dental"), _ranked(0.4))

        assert decision.outcome is DecisionOutcome.PENDING
        assert len(decision.supporting_clauses) == 1


class TestKneeSurgeryRule:
    """Knee surgery approval depends on policy duration."""

    def test_approved_with_amount(self, policy):
        parsed = ParsedQuery(procedure="knee surgery", policy_duration_text="3 month")

        decision = policy.decide(parsed, _ranked(0.6))

        assert decision.outcome is DecisionOutcome.APPROVED
        assert decision.amount == Decimal("500000")
        assert decision.currency == "INR"
        assert decision.confidence == 0.92
        assert "90-day waiting period" not in decision.justification

    def test_rejected_for_short_duration(self, policy):
        parsed = ParsedQuery(procedure="knee surgery", policy_duration_text="2 month")

        decision = policy.decide(parsed, _ranked(0.6))

        assert decision.outcome is DecisionOutcome.REJECTED
        assert decision.amount is None
        assert decision.currency is None
        assert decision.confidence == 0.88
        assert "90-day waiting period" in decision.justification

    def test_rejected_without_duration(self, policy):
        decision = policy.decide(ParsedQuery(procedure="knee surgery"), _ranked(0.4))

        assert decision.outcome is DecisionOutcome.REJECTED


class TestAgeRule:
    """Claimants over 65 always go to manual review."""

    def test_overrides_approval(self, policy):
        parsed = ParsedQuery(age=70, procedure="knee surgery", policy_duration_text="12 month")

        decision = policy.decide(parsed, _ranked(0.8))

        assert decision.outcome is DecisionOutcome.REQUIRES_REVIEW
        assert decision.confidence == 0.72
        assert decision.justification.endswith(AGE_CAVEAT)
        assert decision.amount == Decimal("500000")

    def test_confidence_floor(self, policy):
        decision = policy.decide(ParsedQuery(age=66), _ranked(0.2))

        assert decision.outcome is DecisionOutcome.REQUIRES_REVIEW
        assert decision.confidence == 0.6

    def test_age_65_is_not_reviewed(self, policy):
        parsed = ParsedQuery(age=65, procedure="knee surgery", policy_duration_text="3 month")

        decision = policy.decide(parsed, _ranked(0.6))

        assert decision.outcome is DecisionOutcome.APPROVED


class TestLocationRule:
    """Preferred cities add an in-network note to approvals."""

    def test_note_added_to_approval(self, policy):
        parsed = ParsedQuery(
            procedure="knee surgery", location="pune", policy_duration_text="3 month"
        )

        decision = policy.decide(parsed, _ranked(0.6))

        assert decision.justification.endswith(IN_NETWORK_NOTE)
        assert decision.confidence == 0.92

    def test_non_preferred_city_has_no_note(self, policy):
        parsed = ParsedQuery(
            procedure="knee surgery", location="chennai", policy_duration_text="3 month"
        )

        decision = policy.decide(parsed, _ranked(0.6))

        assert IN_NETWORK_NOTE not in decision.justification

    def test_no_note_when_not_approved(self, policy):
        parsed = ParsedQuery(
            age=70, procedure="knee surgery", location="pune", policy_duration_text="3 month"
        )

        decision = policy.decide(parsed, _ranked(0.6))

        assert IN_NETWORK_NOTE not in decision.justification


class TestSupportingClauses:
    def test_limited_to_top_three(self, policy):
        ranked = _ranked(1.0, 0.8, 0.6, 0.4, 0.2)

        decision = policy.decide(ParsedQuery(procedure="dental"), ranked)

        assert decision.supporting_clauses == tuple(ranked[:3])

    def test_custom_limit(self):
        ranked = _ranked(1.0, 0.8, 0.6)

        decision = RuleTableDecisionPolicy(supporting_clause_limit=1).decide(ParsedQuery(), ranked)

        assert decision.supporting_clauses == (ranked[0],)

    def test_decide_is_deterministic(self, policy):
        parsed = ParsedQuery(
            age=46, procedure="knee surgery", location="pune", policy_duration_text="3 month"
        )
        ranked = _ranked(1.0, 0.6)

        assert policy.decide(parsed, ranked) == policy.decide(parsed, ranked)


class TestMeetsMinimumDuration:
    @pytest.mark.parametrize(
        "duration_text, expected",
        [
            ("3 month", True),
            ("13 month", True),
            ("12 month", True),
            ("2 month", False),
            ("1 year", False),
            ("5 day", True),
            (None, False),
            ("", False),
        ],
    )
    def test_duration_checks(self, duration_text, expected):
        assert meets_minimum_duration(duration_text) is expected
