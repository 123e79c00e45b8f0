from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from policy_assistant.core.auth import get_current_user
from policy_assistant.core.dependencies import get_document_service
from policy_assistant.core.exceptions import AppError
from policy_assistant.schemas.auth import CurrentUser
from policy_assistant.schemas.common import ApiResponse
from policy_assistant.services.document_service import DocumentService
from policy_assistant.utils.errors import http_error
from policy_assistant.utils.logging import get_logger
from policy_assistant.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a policy document",
    operation_id="upload_document",
)
async def upload_document(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    document: Optional[UploadFile] = File(None, description="PDF, DOC, DOCX or TXT file"),
) -> ApiResponse:
    """Store a document and start extracting its clauses in the background."""
    try:
        summary = await document_service.upload_document(document, current_user.id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"document": summary},
        message="Document uploaded successfully",
        request=request,
    )


@router.get(
    "",
    response_model=ApiResponse,
    summary="List documents",
    operation_id="list_documents",
)
async def list_documents(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """List documents for the current user, newest first."""
    documents = await document_service.list_documents(current_user.id)
    return create_api_response(
        data={"documents": documents},
        message="Documents retrieved successfully",
        request=request,
    )


@router.get(
    "/{document_id}",
    response_model=ApiResponse,
    summary="Get document details",
    operation_id="get_document",
)
async def get_document(
    request: Request,
    document_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """Retrieve a document with its extracted clauses."""
    try:
        document = await document_service.get_document(document_id, current_user.id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"document": document},
        message="Document details retrieved successfully",
        request=request,
    )


@router.delete(
    "/{document_id}",
    response_model=ApiResponse,
    summary="Delete document",
    operation_id="delete_document",
)
async def delete_document(
    request: Request,
    document_id: UUID,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> ApiResponse:
    """Delete a document, its stored file and its clauses."""
    try:
        await document_service.delete_document(document_id, current_user.id)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"id": str(document_id)},
        message="Document deleted successfully",
        request=request,
    )
