"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from audioshare.api.routes.health import router as health_router
from audioshare.api.routes.tracks import router as tracks_router
from audioshare.api.routes.users import router as users_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(users_router, tags=["users"])
    api_router.include_router(tracks_router, tags=["tracks"])
    return api_router


__all__ = ["create_api_router"]
