"""Claim query API schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from policy_assistant.schemas.common import CamelModel


class QueryCreateRequest(BaseModel):
    text: Optional[str] = Field(None, description="Free-text claim query")


class QuerySubmitted(CamelModel):
    id: UUID
    text: str
    timestamp: datetime
    status: str


class SupportingClause(CamelModel):
    id: UUID
    text: str
    section: Optional[str] = None
    page: Optional[int] = None
    document_name: str
    relevance_score: float


class QueryResponse(QuerySubmitted):
    decision: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    justification: Optional[str] = None
    confidence: Optional[float] = None
    processing_time: Optional[int] = None
    clauses: List[SupportingClause] = Field(default_factory=list)
