"""
API router aggregation.

WHAT: Combine all endpoint routers
WHY: Single place to register all API routes
HOW: Deal routes stay at the root (automation URLs), the rest under /api/v1
"""

from fastapi import APIRouter

from .endpoints import status, deals, offers, interactions

# Create main router
api_router = APIRouter()

api_router.include_router(
    deals.router,
    tags=["deals"]
)

api_router.include_router(
    status.router,
    prefix="/api/v1",
    tags=["status"]
)

api_router.include_router(
    offers.router,
    prefix="/api/v1",
    tags=["offers"]
)

api_router.include_router(
    interactions.router,
    prefix="/api/v1",
    tags=["discord"]
)
