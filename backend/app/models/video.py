"""
Video reference Pydantic models for the LMS video service.

Defines the closed set of video provider kinds and the transient value objects
produced by URL resolution and signing. None of these are persisted; they are
recomputed from the stored raw URL on every request.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class VideoType(str, Enum):
    """
    Hosting origin of a video URL.

    Derived deterministically from the raw URL by
    app.services.video_service.detect_video_type:
    - YOUTUBE / VIMEO: public providers, rewritten to embed URLs, never signed
    - CLOUDFLARE_STREAM: protected streaming, signed manifest URL
    - SELF_HOSTED: files under /uploads/ or on the storage host, signed with sig/exp
    - EXTERNAL: anything else, passed through unchanged
    """

    YOUTUBE = "YOUTUBE"
    VIMEO = "VIMEO"
    CLOUDFLARE_STREAM = "CLOUDFLARE_STREAM"
    SELF_HOSTED = "SELF_HOSTED"
    EXTERNAL = "EXTERNAL"


# =============================================================================
# MODELS
# =============================================================================


class SignedAccessGrant(BaseModel):
    """
    Time-limited proof of authorization for a self-hosted resource.

    Attributes:
        target_url: The resource locator being protected
        expires_at: Absolute Unix time (seconds) after which the grant is invalid
        signature: Hex HMAC-SHA256 over target_url followed by expires_at
    """

    model_config = ConfigDict(frozen=True)

    target_url: str = Field(..., description="Protected resource URL")
    expires_at: int = Field(..., ge=0, description="Expiry as Unix epoch seconds")
    signature: str = Field(..., description="Hex encoded HMAC-SHA256 signature")

    def to_url(self) -> str:
        """Render the grant in the self-hosted signed URL shape."""
        separator = "&" if "?" in self.target_url else "?"
        return f"{self.target_url}{separator}sig={self.signature}&exp={self.expires_at}"


class VideoResolutionRequest(BaseModel):
    """Request body for resolving a raw video URL."""

    url: str = Field(..., min_length=1, description="Raw video URL as stored by the author")


class VideoResolution(BaseModel):
    """
    Classification result for a raw video URL.

    Attributes:
        url: The raw URL that was resolved
        video_type: Detected provider kind
        embed_url: Canonical embed URL for YouTube/Vimeo, None otherwise
    """

    url: str
    video_type: VideoType
    embed_url: str | None = None


class SignatureVerification(BaseModel):
    """Outcome of checking a presented sig/exp pair."""

    valid: bool = Field(..., description="True if the signature is authentic and unexpired")
    expired: bool = Field(..., description="True if the expiry time has already passed")
