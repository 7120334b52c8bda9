"""API route modules."""

from fastapi import APIRouter

from fleetgate.entrypoints.api.routes.auth import router as auth_router
from fleetgate.entrypoints.api.routes.companies import router as companies_router
from fleetgate.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(companies_router)

__all__ = ["api_router"]
