"""Document API schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from policy_assistant.schemas.common import CamelModel


class DocumentSummary(CamelModel):
    id: UUID
    name: str
    type: str = Field(..., validation_alias="mime_type")
    size: int
    uploaded_at: datetime
    status: str
    content: Optional[str] = None


class ClauseResponse(CamelModel):
    id: UUID
    text: str
    section: Optional[str] = None
    page: Optional[int] = None


class DocumentDetail(DocumentSummary):
    clauses: List[ClauseResponse] = Field(default_factory=list)
