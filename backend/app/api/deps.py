"""
Shared FastAPI dependencies for the LMS video service API.

Services are built per request from the cached Settings; they hold no mutable
state, so construction is cheap. Tests replace these through
app.dependency_overrides.
"""

import logging

from fastapi import Depends, HTTPException, status

from app.config import Settings, get_settings
from app.core.database import get_database
from app.services.lesson_content_service import LessonContentService
from app.services.video_service import VideoURLService


logger = logging.getLogger(__name__)


def get_video_url_service(settings: Settings = Depends(get_settings)) -> VideoURLService:
    """Provide a VideoURLService bound to the process settings."""
    return VideoURLService(settings)


def get_lesson_content_service(
    video_service: VideoURLService = Depends(get_video_url_service),
) -> LessonContentService:
    """
    Provide a LessonContentService backed by the global MongoDB database.

    Raises:
        HTTPException: 503 if MongoDB was not connected at startup
    """
    try:
        database = get_database()
    except RuntimeError as e:
        logger.error(f"Lesson content requested without a database: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lesson content is temporarily unavailable",
        ) from e
    return LessonContentService(database, video_service)
