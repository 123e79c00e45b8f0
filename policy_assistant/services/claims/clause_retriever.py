"""
Keyword-based clause retrieval.

Each clause of the owner's ready documents is scored against the parsed
query with four independent, additive keyword rules:

    +0.4  clause mentions the parsed procedure
    +0.2  an age was parsed and the clause mentions "age"
    +0.2  a location was parsed and the clause mentions it
    +0.2  a policy duration was parsed and the clause mentions "month"

Clauses scoring above 0.1 are returned in descending score order; ties keep
the store's enumeration order (documents, then clauses).
"""

from typing import Iterable, List, Protocol, Sequence
from uuid import UUID

from policy_assistant.services.claims.types import ClauseCandidate, ParsedQuery, ScoredClause
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Weights are held in tenths so sums are exact (0.4 + 3 * 0.2 == 1.0)
PROCEDURE_WEIGHT = 4
AGE_WEIGHT = 2
LOCATION_WEIGHT = 2
DURATION_WEIGHT = 2
SCALE = 10

INCLUSION_THRESHOLD = 0.1


class ClauseSource(Protocol):
    """Read path returning the owner's ready clauses as an ordered snapshot."""

    async def list_ready_clauses(self, user_id: UUID) -> List[ClauseCandidate]: ...


def score_clause(parsed_query: ParsedQuery, clause_text: str) -> float:
    """Relevance of one clause text to a parsed query, in [0, 1]."""
    text = clause_text.lower()
    points = 0

    if parsed_query.procedure and parsed_query.procedure in text:
        points += PROCEDURE_WEIGHT

    if parsed_query.age and "age" in text:
        points += AGE_WEIGHT

    if parsed_query.location and parsed_query.location in text:
        points += LOCATION_WEIGHT

    if parsed_query.policy_duration_text and "month" in text:
        points += DURATION_WEIGHT

    return points / SCALE


def rank_clauses(
    parsed_query: ParsedQuery, clauses: Iterable[ClauseCandidate]
) -> List[ScoredClause]:
    """Score, filter and order clauses for one parsed query."""
    scored = []
    for clause in clauses:
        score = score_clause(parsed_query, clause.text)
        if score > INCLUSION_THRESHOLD:
            scored.append(ScoredClause(clause=clause, relevance_score=score))

    # sorted() is stable, so equal scores keep enumeration order
    return sorted(scored, key=lambda item: item.relevance_score, reverse=True)


class ClauseRetriever:
    """Ranks an owner's stored clauses against a parsed query."""

    def __init__(self, clause_source: ClauseSource):
        self.clause_source = clause_source

    async def retrieve(self, parsed_query: ParsedQuery, owner_id: UUID) -> Sequence[ScoredClause]:
        candidates = await self.clause_source.list_ready_clauses(owner_id)
        ranked = rank_clauses(parsed_query, candidates)

        LOGGER.info(
            "Clauses ranked",
            extra={
                "owner_id": str(owner_id),
                "candidates": len(candidates),
                "relevant": len(ranked),
            },
        )
        return ranked
