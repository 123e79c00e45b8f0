"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from policy_assistant.api.v1.endpoints import health
from policy_assistant.api.v1.router import api_router
from policy_assistant.core.config import Settings, settings
from policy_assistant.core.database import DatabaseClient, close_database, init_database
from policy_assistant.services.claims.decision_engine import RuleTableDecisionPolicy
from policy_assistant.services.claims.orchestrator import QueryOrchestrator
from policy_assistant.services.extraction.document_processor import DocumentProcessor
from policy_assistant.services.task_runner import BackgroundTaskRunner
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__, level=settings.log_level)


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around an explicit settings instance."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        LOGGER.info(
            "Starting application",
            extra={
                "app_name": app_settings.app_name,
                "version": app_settings.app_version,
                "environment": app_settings.environment,
            },
        )

        db_client = DatabaseClient.from_settings(app_settings.db)
        await init_database(db_client, auto_migrate=True)

        pipeline = app_settings.pipeline
        task_runner = BackgroundTaskRunner()

        app.state.settings = app_settings
        app.state.db = db_client
        app.state.task_runner = task_runner
        app.state.orchestrator = QueryOrchestrator(
            db_client.session_factory,
            policy=RuleTableDecisionPolicy(supporting_clause_limit=pipeline.supporting_clause_limit),
            parse_latency_seconds=pipeline.parse_latency_seconds,
            decision_latency_seconds=pipeline.decision_latency_seconds,
        )
        app.state.document_processor = DocumentProcessor(
            db_client.session_factory,
            min_clause_length=pipeline.min_clause_length,
            clauses_per_page=pipeline.clauses_per_page,
        )

        yield

        LOGGER.info("Shutting down application")
        await task_runner.shutdown(timeout=pipeline.shutdown_timeout_seconds)
        await close_database(db_client)

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Evaluates natural-language insurance claim queries against uploaded policy documents",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    # CORS middleware - added last to ensure it wraps all other middleware/responses
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

    app.include_router(api_router, prefix=app_settings.api_v1_prefix)
    app.include_router(health.router, prefix="/health", tags=["Health"])

    @app.get(
        "/",
        response_model=RootResponse,
        tags=["Root"],
        summary="Root endpoint",
        description="Get basic information about the API",
        operation_id="get_public_root_metadata",
    )
    async def root() -> RootResponse:
        return RootResponse(
            message="Server is running",
            version=app_settings.app_version,
            docs="/docs",
            health="/health",
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "policy_assistant.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
