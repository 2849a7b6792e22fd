"""
LMS Video Service API v1 Router Aggregator.

This module combines all v1 endpoint routers into a single APIRouter
for registration with the main FastAPI application under the /api/v1 prefix.

Router Structure:
    - /lessons: Secured lesson content
    - /media: Video URL resolution and signature verification

Each router module is imported conditionally so a broken optional router is
reported in the logs instead of preventing startup.
"""

import logging

from fastapi import APIRouter


# Configure logger
logger = logging.getLogger(__name__)

# Create the main API v1 router
api_router = APIRouter()

# Track which routers were successfully loaded
loaded_routers: list[str] = []


# ==============================================================================
# Router Imports - Conditional imports for incremental development
# ==============================================================================

# Lessons Router
try:
    from app.api.v1.lessons import router as lessons_router

    api_router.include_router(
        lessons_router,
        prefix="/lessons",
        tags=["lessons"],
    )
    loaded_routers.append("lessons")
    logger.debug("Loaded lessons router")
except ImportError as e:
    logger.warning("Lessons router not available: %s", e)

# Media Router
try:
    from app.api.v1.media import router as media_router

    api_router.include_router(
        media_router,
        prefix="/media",
        tags=["media"],
    )
    loaded_routers.append("media")
    logger.debug("Loaded media router")
except ImportError as e:
    logger.warning("Media router not available: %s", e)


# ==============================================================================
# Exports
# ==============================================================================

__all__ = ["api_router", "loaded_routers"]

# Log summary of loaded routers at module initialization
if loaded_routers:
    logger.info("API v1 routers loaded: %s", ", ".join(loaded_routers))
else:
    logger.warning("No API v1 routers were loaded")
