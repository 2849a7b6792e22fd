"""
Lesson Content Service Module for the LMS Video Service

Loads a lesson from MongoDB, enforces who may watch it, and returns a copy with
client-safe media URLs produced by VideoURLService.

Access rules:
- Free lessons are served to everyone, including anonymous users
- Admins are served every lesson
- Anyone else must be logged in and enrolled in the lesson's course

The stored lesson document is never modified; signed URLs exist only in the
returned copy and expire after the configured TTL.
"""

import logging

from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.auth import is_admin
from app.core.database import ENROLLMENTS_COLLECTION, LESSONS_COLLECTION
from app.services.video_service import VideoURLService


logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class LessonContentError(Exception):
    """Base error for lesson content lookups."""


class LessonNotFoundError(LessonContentError):
    """Raised when no lesson exists for the requested ID."""


class AuthenticationRequiredError(LessonContentError):
    """Raised when a paid lesson is requested without a logged-in user."""


class LessonAccessDeniedError(LessonContentError):
    """Raised when the user is not enrolled in the lesson's course."""


# =============================================================================
# HELPERS
# =============================================================================


def _id_query(document_id: str) -> dict[str, Any]:
    """Match either an ObjectId or a plain string _id."""
    if ObjectId.is_valid(document_id):
        return {"_id": {"$in": [ObjectId(document_id), document_id]}}
    return {"_id": document_id}


def _stringify_ids(value: Any) -> Any:
    """
    Convert ObjectId values to strings for JSON output.

    Recurses into embedded documents and arrays, e.g. attachment subdocuments
    carrying their own _id.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: _stringify_ids(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_stringify_ids(item) for item in value]
    return value


# =============================================================================
# LESSON CONTENT SERVICE CLASS
# =============================================================================


class LessonContentService:
    """
    Serves lesson content with access control and signed media URLs.

    Example:
        >>> service = LessonContentService(get_database(), VideoURLService(settings))
        >>> content = await service.get_lesson_content(lesson_id, user)
        >>> content["video_type"]
        <VideoType.SELF_HOSTED: 'SELF_HOSTED'>
    """

    def __init__(self, database: AsyncIOMotorDatabase, video_service: VideoURLService) -> None:
        self.database = database
        self.video_service = video_service

    async def get_lesson_content(
        self, lesson_id: str, user: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Return secured lesson content for the requesting user.

        Args:
            lesson_id: Lesson identifier (ObjectId hex or string ID)
            user: {"_id", "role"} from get_current_user_optional, or None

        Returns:
            Lesson document with video_url, video_type and attachments secured

        Raises:
            LessonNotFoundError: No lesson with this ID
            AuthenticationRequiredError: Paid lesson requested anonymously
            LessonAccessDeniedError: User is not enrolled in the course
        """
        lesson = await self.database[LESSONS_COLLECTION].find_one(_id_query(lesson_id))
        if lesson is None:
            logger.info(f"Lesson not found: {lesson_id}")
            raise LessonNotFoundError(f"Lesson '{lesson_id}' not found")

        if not (lesson.get("is_free") or is_admin(user)):
            await self._ensure_enrolled(lesson, user)

        return self.video_service.secure_lesson_content(_stringify_ids(lesson))

    async def _ensure_enrolled(self, lesson: dict[str, Any], user: dict[str, Any] | None) -> None:
        if user is None:
            raise AuthenticationRequiredError("Access denied: Login required")

        enrollment = await self.database[ENROLLMENTS_COLLECTION].find_one(
            {"user_id": user["_id"], "course_id": lesson.get("course_id")}
        )
        if enrollment is None:
            logger.warning(
                f"User {user['_id']} denied lesson {lesson['_id']}: "
                f"not enrolled in course {lesson.get('course_id')}"
            )
            raise LessonAccessDeniedError(
                "Access denied: You must enroll in this course to view this lesson."
            )
