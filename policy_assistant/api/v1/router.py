from fastapi import APIRouter

from policy_assistant.api.v1.endpoints import auth, documents, queries

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(queries.router, prefix="/queries", tags=["Queries"])

__all__ = ["api_router"]
