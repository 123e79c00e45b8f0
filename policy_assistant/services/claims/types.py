"""Value types flowing through the claim query pipeline.

All types are frozen: a parsed query, a ranked clause or a decision is a
snapshot and is never mutated after construction.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class DecisionOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING = "pending"
    REQUIRES_REVIEW = "requires_review"


@dataclass(frozen=True, slots=True)
class ParsedQuery:
    """Structured fields recognised in a free-text claim query."""

    age: Optional[int] = None
    gender: Optional[Gender] = None
    procedure: Optional[str] = None
    location: Optional[str] = None
    policy_duration_text: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.age,
                self.gender,
                self.procedure,
                self.location,
                self.policy_duration_text,
            )
        )


@dataclass(frozen=True, slots=True)
class ClauseCandidate:
    """Read-only snapshot of a stored clause and its owning document."""

    id: UUID
    text: str
    document_id: UUID
    document_name: str
    section: Optional[str] = None
    page: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ScoredClause:
    """A clause paired with its relevance to one parsed query."""

    clause: ClauseCandidate
    relevance_score: float


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of the decision policy for one query run."""

    outcome: DecisionOutcome
    justification: str
    confidence: float
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    supporting_clauses: tuple[ScoredClause, ...] = field(default_factory=tuple)
