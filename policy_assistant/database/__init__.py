"""Database module for SQLAlchemy models."""

from policy_assistant.database.models import (
    Clause,
    Document,
    DocumentStatus,
    Query,
    QueryResult,
    QueryStatus,
    User,
)

__all__ = [
    "User",
    "Document",
    "DocumentStatus",
    "Clause",
    "Query",
    "QueryStatus",
    "QueryResult",
]
