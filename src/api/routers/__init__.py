"""API sub-routers assembled into a single api_router."""

from fastapi import APIRouter

from src.api.routers.form import router as form_router
from src.api.routers.verify import router as verify_router

api_router = APIRouter()

api_router.include_router(verify_router, tags=["verification"])

__all__ = ["api_router", "form_router"]
