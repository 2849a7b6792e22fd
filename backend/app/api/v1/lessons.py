"""
Lesson Content API Endpoints for the LMS Video Service.

Endpoints:
- GET /{lesson_id}/content - Lesson with signed media URLs for the current user

Free lessons are available anonymously; other lessons require a bearer token
for an enrolled user or an admin. Signed URLs in the response expire after the
configured TTL, so clients should fetch content right before playback.
"""

import logging

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_lesson_content_service
from app.core.auth import get_current_user_optional
from app.models.lesson import SecuredLesson
from app.services.lesson_content_service import (
    AuthenticationRequiredError,
    LessonAccessDeniedError,
    LessonContentService,
    LessonNotFoundError,
)


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["lessons"])


@router.get(
    "/{lesson_id}/content",
    response_model=SecuredLesson,
    summary="Get secured lesson content",
    description="Returns the lesson with embed or signed video URL and signed attachment URLs",
)
async def get_lesson_content(
    lesson_id: str,
    user: dict[str, Any] | None = Depends(get_current_user_optional),
    service: LessonContentService = Depends(get_lesson_content_service),
) -> dict[str, Any]:
    """
    Retrieve lesson content with client-safe media URLs.

    Raises:
        HTTPException: 404 if the lesson does not exist
        HTTPException: 401 if a paid lesson is requested anonymously
        HTTPException: 403 if the user is not enrolled in the course
    """
    try:
        return await service.get_lesson_content(lesson_id, user)
    except LessonNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except AuthenticationRequiredError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except LessonAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
