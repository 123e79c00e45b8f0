from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Request
from pydantic import BaseModel

from policy_assistant.schemas.common import ApiResponse, ErrorDetail, ResponseMeta


def _request_id(request: Optional[Request]) -> str:
    if request is not None and hasattr(request.state, "correlation_id"):
        return request.state.correlation_id
    return str(uuid4())


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    status: bool = True,
    request: Optional[Request] = None,
    api_version: str = "v1",
) -> Dict[str, Any]:
    """Create a standardized API response as a dictionary."""
    meta = ResponseMeta(
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request),
        api_version=api_version,
    )

    if data is None:
        data_dict: Dict[str, Any] = {}
    elif isinstance(data, dict):
        data_dict = _to_jsonable(data)
    elif isinstance(data, BaseModel):
        data_dict = _to_jsonable(data)
    elif isinstance(data, list):
        data_dict = {"items": _to_jsonable(data)}
    else:
        data_dict = {"value": data}

    response = ApiResponse(status=status, message=message, data=data_dict, meta=meta)
    return response.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
    instance: Optional[str] = None,
) -> ErrorDetail:
    """Create a standardized error detail (RFC 7807)."""
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance or (request.url.path if request else None),
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc),
    )
