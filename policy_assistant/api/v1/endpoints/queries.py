from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from policy_assistant.core.auth import get_current_user
from policy_assistant.core.dependencies import get_query_service
from policy_assistant.core.exceptions import AppError
from policy_assistant.schemas.auth import CurrentUser
from policy_assistant.schemas.common import ApiResponse
from policy_assistant.schemas.queries import QueryCreateRequest
from policy_assistant.services.query_service import QueryService
from policy_assistant.utils.errors import http_error
from policy_assistant.utils.logging import get_logger
from policy_assistant.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a claim query",
    description="Accepts the query and evaluates it in the background. Poll the query to read the decision.",
    operation_id="submit_query",
)
async def submit_query(
    request: Request,
    payload: QueryCreateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    query_service: Annotated[QueryService, Depends(get_query_service)],
) -> ApiResponse:
    try:
        query = await query_service.submit_query(payload.text, current_user.id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"query": query},
        message="Query submitted for processing",
        request=request,
    )


@router.get(
    "",
    response_model=ApiResponse,
    summary="List claim queries",
    operation_id="list_queries",
)
async def list_queries(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    query_service: Annotated[QueryService, Depends(get_query_service)],
) -> ApiResponse:
    """List the current user's queries, newest first."""
    queries = await query_service.list_queries(current_user.id)
    return create_api_response(
        data={"queries": queries},
        message="Queries retrieved successfully",
        request=request,
    )


@router.get(
    "/{query_id}",
    response_model=ApiResponse,
    summary="Get a claim query",
    operation_id="get_query",
)
async def get_query(
    request: Request,
    query_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    query_service: Annotated[QueryService, Depends(get_query_service)],
) -> ApiResponse:
    try:
        query = await query_service.get_query(query_id, current_user.id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"query": query},
        message="Query retrieved successfully",
        request=request,
    )
