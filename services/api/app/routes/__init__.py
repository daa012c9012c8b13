"""API routes."""

from fastapi import APIRouter

from app.routes import dashboard, ratings, stores

api_router = APIRouter()

# Rating writes and scoped rating listings
api_router.include_router(ratings.router, prefix="/v1/ratings", tags=["ratings"])

# Store listing with aggregates
api_router.include_router(stores.router, prefix="/v1/stores", tags=["stores"])

# Role dashboards
api_router.include_router(dashboard.router, prefix="/v1/dashboard", tags=["dashboard"])
