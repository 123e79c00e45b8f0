"""
Rule-table claim decision policy.

Rules are evaluated in a fixed order and later rules may override earlier
ones:

1. No relevant clauses: ``pending`` with confidence 0.5 and no amount.
2. Knee surgery: approved for 500000 INR (confidence 0.92) when the policy
   duration is at least three months, otherwise rejected (confidence 0.88)
   citing the 90-day waiting period.
3. Claimant older than 65: forced to ``requires_review`` with an age caveat;
   confidence drops by 0.2, floored at 0.6.
4. Approved claims treated in a preferred city get an in-network note.

Confidence values are policy-chosen scalars, not calibrated probabilities.
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, Sequence

from policy_assistant.services.claims.types import (
    Decision,
    DecisionOutcome,
    ParsedQuery,
    ScoredClause,
)
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.5
DEFAULT_JUSTIFICATION = (
    "Insufficient information to determine coverage based on the available policy clauses."
)

KNEE_SURGERY = "knee surgery"
KNEE_SURGERY_AMOUNT = Decimal("500000")
APPROVAL_CONFIDENCE = 0.92
REJECTION_CONFIDENCE = 0.88
APPROVAL_JUSTIFICATION = (
    "Knee surgery is covered under the policy. "
    "Patient meets the minimum policy duration requirement."
)
REJECTION_JUSTIFICATION = (
    "Claim rejected due to insufficient policy duration. "
    "A minimum 90-day waiting period applies to surgical procedures."
)
MIN_DURATION_UNITS = 3

REVIEW_AGE_THRESHOLD = 65
AGE_CONFIDENCE_PENALTY = 0.2
AGE_CONFIDENCE_FLOOR = 0.6
AGE_CAVEAT = " Age exceeds standard coverage limits - manual review required."

PREFERRED_LOCATIONS = frozenset({"pune", "mumbai", "delhi"})
IN_NETWORK_NOTE = " Treatment location is within network coverage area."

CURRENCY = "INR"
SUPPORTING_CLAUSE_LIMIT = 3

_LEADING_NUMBER = re.compile(r"\s*(\d+)")


class DecisionPolicy(ABC):
    """Strategy interface producing a decision from a parsed query and ranked clauses."""

    @abstractmethod
    def decide(
        self, parsed_query: ParsedQuery, ranked_clauses: Sequence[ScoredClause]
    ) -> Decision:
        """Decide a claim."""


def meets_minimum_duration(duration_text: Optional[str]) -> bool:
    """Whether a captured policy duration counts as at least three months.

    Two checks are applied: the literal "3 month" and the leading number
    being at least 3. The unit is not considered by the numeric check, so
    "5 day" also qualifies.
    """
    if not duration_text:
        return False
    if "3 month" in duration_text:
        return True
    match = _LEADING_NUMBER.match(duration_text)
    return match is not None and int(match.group(1)) >= MIN_DURATION_UNITS


class RuleTableDecisionPolicy(DecisionPolicy):
    """Deterministic if/else policy standing in for a model-backed decision."""

    def __init__(self, supporting_clause_limit: int = SUPPORTING_CLAUSE_LIMIT):
        self.supporting_clause_limit = supporting_clause_limit

    def decide(
        self, parsed_query: ParsedQuery, ranked_clauses: Sequence[ScoredClause]
    ) -> Decision:
        outcome = DecisionOutcome.PENDING
        amount: Optional[Decimal] = None
        justification = DEFAULT_JUSTIFICATION
        confidence = DEFAULT_CONFIDENCE

        if ranked_clauses:
            if parsed_query.procedure == KNEE_SURGERY:
                if meets_minimum_duration(parsed_query.policy_duration_text):
                    outcome = DecisionOutcome.APPROVED
                    amount = KNEE_SURGERY_AMOUNT
                    justification = APPROVAL_JUSTIFICATION
                    confidence = APPROVAL_CONFIDENCE
                else:
                    outcome = DecisionOutcome.REJECTED
                    justification = REJECTION_JUSTIFICATION
                    confidence = REJECTION_CONFIDENCE

            if parsed_query.age is not None and parsed_query.age > REVIEW_AGE_THRESHOLD:
                outcome = DecisionOutcome.REQUIRES_REVIEW
                justification += AGE_CAVEAT
                confidence = round(
                    max(AGE_CONFIDENCE_FLOOR, confidence - AGE_CONFIDENCE_PENALTY), 2
                )

            if (
                parsed_query.location in PREFERRED_LOCATIONS
                and outcome is DecisionOutcome.APPROVED
            ):
                justification += IN_NETWORK_NOTE

        decision = Decision(
            outcome=outcome,
            amount=amount,
            currency=CURRENCY if amount is not None else None,
            justification=justification,
            confidence=confidence,
            supporting_clauses=tuple(ranked_clauses[: self.supporting_clause_limit]),
        )

        LOGGER.info(
            "Decision made",
            extra={
                "outcome": decision.outcome.value,
                "confidence": decision.confidence,
                "ranked_clauses": len(ranked_clauses),
            },
        )
        return decision
