"""API Routes module"""
from fastapi import APIRouter

from .requests import router as requests_router
from .admin import router as admin_router

# Main API router
api_router = APIRouter()

api_router.include_router(requests_router, tags=["Drafts"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])

__all__ = ["api_router"]
