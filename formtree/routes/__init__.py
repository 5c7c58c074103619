"""APIRouter registration for the form tree service."""

from __future__ import annotations

from fastapi import APIRouter

from formtree.routes.sessions import router as sessions_router
from formtree.routes.transforms import router as transforms_router

api_router = APIRouter()
api_router.include_router(transforms_router, tags=["Transforms"])
api_router.include_router(sessions_router, tags=["Sessions"])

__all__ = ["api_router"]
