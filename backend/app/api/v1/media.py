"""
Media API Endpoints for the LMS Video Service.

Endpoints:
- POST /resolve - Classify a raw video URL and derive its embed URL
- GET /verify - Check a self-hosted sig/exp pair

Used by the admin course editor to preview how a pasted video URL will be
played, and by edge services that validate signed links without a database.
"""

import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_video_url_service
from app.models.video import (
    SignatureVerification,
    VideoResolution,
    VideoResolutionRequest,
    VideoType,
)
from app.services.video_service import (
    VideoURLService,
    get_vimeo_embed_url,
    get_youtube_embed_url,
)


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])


@router.post(
    "/resolve",
    response_model=VideoResolution,
    summary="Resolve a video URL",
    description="Detects the provider of a raw video URL and returns its embed URL if any",
)
async def resolve_video_url(
    request: VideoResolutionRequest,
    service: VideoURLService = Depends(get_video_url_service),
) -> VideoResolution:
    """Classify a URL without signing it."""
    video_type = service.detect_video_type(request.url)

    embed_url = None
    if video_type == VideoType.YOUTUBE:
        embed_url = get_youtube_embed_url(request.url)
    elif video_type == VideoType.VIMEO:
        embed_url = get_vimeo_embed_url(request.url)

    return VideoResolution(url=request.url, video_type=video_type, embed_url=embed_url)


@router.get(
    "/verify",
    response_model=SignatureVerification,
    summary="Verify a signed URL",
    description="Checks that a sig/exp pair is authentic and unexpired for the given URL",
)
async def verify_signature(
    url: str = Query(..., description="URL as it was signed, without sig/exp"),
    sig: str = Query(..., description="Hex signature"),
    exp: str = Query(..., description="Expiry as Unix epoch seconds"),
    service: VideoURLService = Depends(get_video_url_service),
) -> SignatureVerification:
    """Always responds 200; the verdict is in the body."""
    valid = service.verify_signed_url(url, sig, exp)
    try:
        expired = service.is_expired(int(exp))
    except ValueError:
        expired = False

    if not valid:
        logger.info(f"Signature verification failed for {url} (expired={expired})")
    return SignatureVerification(valid=valid, expired=expired)
