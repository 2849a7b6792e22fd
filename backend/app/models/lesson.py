"""
Lesson Pydantic models for the LMS video service.

Lessons and their attachments are owned by the course catalog and stored in
MongoDB. This service only reads them and returns a copy whose media URLs have
been rewritten for a bounded time window. The stored URLs are never changed.
"""

from pydantic import BaseModel, ConfigDict, Field

from app.models.video import VideoType


class LessonAttachment(BaseModel):
    """
    Downloadable file attached to a lesson.

    Attachments are always treated as private content. In a secured lesson the
    url carries sig/exp query parameters when signing is configured.
    Unknown fields from the stored document are passed through.
    """

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    url: str | None = None
    type: str | None = None


class SecuredLesson(BaseModel):
    """
    Lesson content safe to hand to a client player.

    Attributes:
        id: Lesson identifier (stringified MongoDB ObjectId)
        course_id: Owning course identifier
        title: Lesson title
        is_free: Free preview lessons skip the enrollment check
        video_url: Embed, signed or passthrough URL; None when the lesson has no video
        video_type: Provider kind detected from the stored video URL
        attachments: Attachments in their stored order with signed URLs
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., alias="_id")
    course_id: str | None = None
    title: str | None = None
    is_free: bool = False
    video_url: str | None = None
    video_type: VideoType = VideoType.EXTERNAL
    attachments: list[LessonAttachment] = Field(default_factory=list)
