"""
Top‑level router for version 1 of the API.

Aggregates the endpoint routers under a unified prefix.  When new
endpoints are added, update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import assets, info

router = APIRouter()

router.include_router(assets.router, prefix="/assets", tags=["assets"])
router.include_router(info.router, prefix="/info", tags=["info"])
