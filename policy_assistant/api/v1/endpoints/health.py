"""Health check API endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from policy_assistant.core.database import get_database_client
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Health check status")
    version: str = Field(..., description="Running application version")
    service: str = Field(..., description="Service name")
    database: dict = Field(default_factory=dict, description="Database health details")


@router.get(
    "",
    response_model=HealthCheckResponse,
    summary="Health check endpoint",
    description="Check if the service is running and healthy",
    operation_id="get_service_health_status",
)
async def health_check(request: Request) -> HealthCheckResponse:
    """Health check endpoint."""
    settings = request.app.state.settings
    db_health = await get_database_client(request).health_check()

    return HealthCheckResponse(
        status="healthy" if db_health["status"] == "healthy" else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        database=db_health,
    )
