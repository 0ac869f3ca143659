"""API router composition for all route groups."""

from fastapi import APIRouter

from .routes import collections, videos

api_router = APIRouter()
api_router.include_router(collections.router, prefix="/collections", tags=["collections"])
api_router.include_router(videos.router, prefix="/videos", tags=["videos"])
