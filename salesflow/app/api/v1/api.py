from fastapi import APIRouter

from salesflow.app.api.v1.endpoints import dashboard, documents, pricing

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(pricing.router, prefix="/pricing", tags=["pricing"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
