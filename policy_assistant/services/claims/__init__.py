"""
Claim query pipeline: parse -> retrieve -> decide.

The orchestrator lives in ``policy_assistant.services.claims.orchestrator``
and is imported from there, since it depends on the repository layer.
"""

from policy_assistant.services.claims.clause_retriever import ClauseRetriever, rank_clauses, score_clause
from policy_assistant.services.claims.decision_engine import DecisionPolicy, RuleTableDecisionPolicy
from policy_assistant.services.claims.query_parser import QueryParser, RuleBasedQueryParser
from policy_assistant.services.claims.types import (
    ClauseCandidate,
    Decision,
    DecisionOutcome,
    Gender,
    ParsedQuery,
    ScoredClause,
)

__all__ = [
    "ClauseCandidate",
    "ClauseRetriever",
    "Decision",
    "DecisionOutcome",
    "DecisionPolicy",
    "Gender",
    "ParsedQuery",
    "QueryParser",
    "RuleBasedQueryParser",
    "RuleTableDecisionPolicy",
    "ScoredClause",
    "rank_clauses",
    "score_clause",
]
