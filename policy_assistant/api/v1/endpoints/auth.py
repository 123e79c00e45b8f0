from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.core.auth import get_current_user
from policy_assistant.core.database import get_async_session
from policy_assistant.core.dependencies import get_user_service
from policy_assistant.core.exceptions import AppError
from policy_assistant.repositories.user_repository import UserRepository
from policy_assistant.schemas.auth import CurrentUser, LoginRequest, RegisterRequest, UserProfile
from policy_assistant.schemas.common import ApiResponse
from policy_assistant.services.user_service import UserService
from policy_assistant.utils.errors import http_error
from policy_assistant.utils.logging import get_logger
from policy_assistant.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    operation_id="register_user",
)
async def register(
    request: Request,
    payload: RegisterRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    """Create an account and return it with an access token."""
    try:
        user, token = await user_service.register(payload.email, payload.password, payload.name)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"user": UserProfile.model_validate(user), "token": token},
        message="User registered successfully",
        request=request,
    )


@router.post(
    "/login",
    response_model=ApiResponse,
    summary="Log in with email and password",
    operation_id="login_user",
)
async def login(
    request: Request,
    payload: LoginRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse:
    try:
        user, token = await user_service.login(payload.email, payload.password)
    except AppError as e:
        raise http_error(e, request) from e

    return create_api_response(
        data={"user": UserProfile.model_validate(user), "token": token},
        message="Login successful",
        request=request,
    )


@router.get(
    "/me",
    response_model=ApiResponse,
    summary="Get current user profile",
    operation_id="get_current_user_profile",
)
async def get_me(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ApiResponse:
    """Return the profile of the authenticated user."""
    user = await UserRepository(db_session).get_by_id(current_user.id)
    return create_api_response(
        data={"user": UserProfile.model_validate(user)},
        message="User profile retrieved successfully",
        request=request,
    )


@router.post(
    "/logout",
    summary="Logout user",
    operation_id="logout_user",
)
async def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
):
    """Logout user.

    Tokens are stateless; the client discards its copy.
    """
    LOGGER.info(f"User logged out: {current_user.id}")
    return {"message": "Logged out successfully", "status": "success"}
