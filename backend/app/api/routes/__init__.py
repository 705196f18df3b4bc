"""API route registrations."""
from fastapi import APIRouter

from app.api.routes import prompts


api_router = APIRouter()
api_router.include_router(prompts.router)

__all__ = ["api_router"]
