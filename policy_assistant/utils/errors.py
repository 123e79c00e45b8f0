"""Translate service exceptions into HTTP errors."""

from fastapi import HTTPException, Request, status

from policy_assistant.core.exceptions import (
    AppError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from policy_assistant.utils.logging import get_logger
from policy_assistant.utils.responses import create_error_detail

LOGGER = get_logger(__name__)

# Most specific classes first
_STATUS_MAP = (
    (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Payload Too Large"),
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Bad Request"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    (ConflictError, status.HTTP_409_CONFLICT, "Conflict"),
)


def http_error(error: AppError, request: Request) -> HTTPException:
    """Build an ``HTTPException`` carrying an RFC 7807 detail for ``error``."""
    for error_type, status_code, title in _STATUS_MAP:
        if isinstance(error, error_type):
            break
    else:
        status_code, title = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error"
        LOGGER.error(f"Unhandled application error: {error.message}")

    error_detail = create_error_detail(
        title=title,
        status=status_code,
        detail=error.message if status_code < 500 else "Internal server error",
        request=request,
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(
        status_code=status_code,
        detail=error_detail.model_dump(mode="json"),
        headers=headers,
    )
