"""
Models Package for the LMS Video Service.

Models Overview:
    - VideoType: Provider kind of a video URL
    - SignedAccessGrant: Transient signed access grant for self-hosted media
    - VideoResolution / VideoResolutionRequest: URL resolution API payloads
    - SignatureVerification: Verification API payload
    - LessonAttachment / SecuredLesson: Lesson content returned to clients
"""

from app.models.lesson import LessonAttachment, SecuredLesson
from app.models.video import (
    SignatureVerification,
    SignedAccessGrant,
    VideoResolution,
    VideoResolutionRequest,
    VideoType,
)


__all__ = [
    "LessonAttachment",
    "SecuredLesson",
    "SignatureVerification",
    "SignedAccessGrant",
    "VideoResolution",
    "VideoResolutionRequest",
    "VideoType",
]
