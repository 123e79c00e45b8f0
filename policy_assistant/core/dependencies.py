"""Service factories for FastAPI dependency injection."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from policy_assistant.core.config import Settings
from policy_assistant.core.database import get_async_session
from policy_assistant.services.document_service import DocumentService
from policy_assistant.services.query_service import QueryService
from policy_assistant.services.storage_service import StorageService
from policy_assistant.services.user_service import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_user_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserService:
    return UserService(db_session, settings.auth)


async def get_document_service(
    request: Request,
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DocumentService:
    return DocumentService(
        db_session,
        storage_settings=settings.storage,
        storage_service=StorageService(settings.storage.upload_dir),
        task_runner=request.app.state.task_runner,
        processor=request.app.state.document_processor,
    )


async def get_query_service(
    request: Request,
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> QueryService:
    return QueryService(
        db_session,
        task_runner=request.app.state.task_runner,
        orchestrator=request.app.state.orchestrator,
    )
