"""
API routes initialization.

This module aggregates the per-family catalog routers and provides a single
router to include in the main application.
"""

from fastapi import APIRouter

from media_catalog.api.routes.media import build_family_router
from media_catalog.catalog.families import FAMILIES

# Create main API router
api_router = APIRouter()

# One router per catalog family: /movies, /series, /music, /videos,
# /videogames, /music-tracks, /episodes
for family in FAMILIES.values():
    api_router.include_router(build_family_router(family))
