"""
Video Service Module for the LMS Video Service

This service resolves user-supplied lesson video URLs and protects private media:
- Provider detection: YouTube, Vimeo, Cloudflare Stream, self-hosted, external
- Embed URL derivation for YouTube and Vimeo
- Time-limited HMAC-SHA256 signed URLs for self-hosted files and Cloudflare Stream
- Constant-time verification of presented sig/exp pairs
- Lesson sanitization: signs the primary video and every attachment per request
- HLS playlist signing: child playlists and segments inherit the playlist expiry

Security Constraints:
- Signatures are unforgeable without the configured secret
- Expired or tampered grants verify as False, never as an exception
- Missing secrets degrade to unsigned URLs with a logged warning (availability
  is kept, confidentiality is lost) instead of failing the request

All operations are synchronous and CPU-bound: no I/O, no network calls and no
shared mutable state. Secrets come from an injected Settings instance.
"""

import hashlib
import hmac
import logging
import re
import time

from collections.abc import Callable
from typing import Any
from urllib.parse import urljoin

from app.config import Settings
from app.models.video import SignedAccessGrant, VideoType


# =============================================================================
# CONSTANTS
# =============================================================================

# Path prefix of files served by this application
SELF_HOSTED_PATH_PREFIX: str = "/uploads/"

# Cloudflare Stream delivery host used for manifest URLs
CLOUDFLARE_DELIVERY_BASE: str = "https://videodelivery.net"

YOUTUBE_EMBED_BASE: str = "https://www.youtube.com/embed/"
VIMEO_EMBED_BASE: str = "https://player.vimeo.com/video/"

# YouTube URL shapes, tried in order. The ID runs up to the next '&' or '?'.
YOUTUBE_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"youtube\.com/watch\?v=([^&?]+)"),
    re.compile(r"youtu\.be/([^&?]+)"),
    re.compile(r"youtube\.com/embed/([^&?]+)"),
    re.compile(r"youtube\.com/shorts/([^&?]+)"),
    re.compile(r"youtube\.com/v/([^&?]+)"),
)

VIMEO_ID_PATTERN = re.compile(r"vimeo\.com/(\d+)")

# Video UID is the first path segment after the delivery host
CLOUDFLARE_ID_PATTERN = re.compile(r"(?:videodelivery\.net|cloudflarestream\.com)/([^/?#&]+)")

# A bare Cloudflare Stream UID as stored by some authors
CLOUDFLARE_BARE_ID_PATTERN = re.compile(r"^[\w-]+$")

HLS_PLAYLIST_SUFFIX: str = ".m3u8"

# Quoted URI attribute of EXT-X-KEY, EXT-X-MAP, EXT-X-MEDIA and similar tags
HLS_URI_ATTRIBUTE_PATTERN = re.compile(r'URI="([^"]+)"')

# Inverse of the self-hosted signed URL shape: {base}{?|&}sig={hex}&exp={epoch}
SIGNED_URL_PATTERN = re.compile(r"^(?P<base>.*?)[?&]sig=(?P<sig>[^&#]*)&exp=(?P<exp>[^&#]*)$")


# =============================================================================
# URL CLASSIFICATION
# =============================================================================


def _is_youtube(url: str, _storage_url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url


def _is_vimeo(url: str, _storage_url: str) -> bool:
    return "vimeo.com" in url


def _is_cloudflare_stream(url: str, _storage_url: str) -> bool:
    return "cloudflarestream.com" in url or "videodelivery.net" in url


def _is_self_hosted(url: str, storage_url: str) -> bool:
    return url.startswith(SELF_HOSTED_PATH_PREFIX) or storage_url in url


# Checked in order; the first matching predicate wins. Hostname checks come
# before the self-hosted path check.
VIDEO_TYPE_RULES: tuple[tuple[Callable[[str, str], bool], VideoType], ...] = (
    (_is_youtube, VideoType.YOUTUBE),
    (_is_vimeo, VideoType.VIMEO),
    (_is_cloudflare_stream, VideoType.CLOUDFLARE_STREAM),
    (_is_self_hosted, VideoType.SELF_HOSTED),
)


def detect_video_type(url: str | None, storage_url: str = "localhost") -> VideoType:
    """
    Detect the hosting provider of a video URL.

    Pure substring matching against known hosts. Never raises and never touches
    the network; anything unrecognised is EXTERNAL.

    Args:
        url: Raw URL as stored by the content author (may be None or empty)
        storage_url: Storage host whose URLs count as self-hosted

    Returns:
        The first VideoType whose rule matches, or VideoType.EXTERNAL

    Example:
        >>> detect_video_type("https://youtu.be/abc123")
        <VideoType.YOUTUBE: 'YOUTUBE'>
        >>> detect_video_type("https://youtube.com/uploads/x")
        <VideoType.YOUTUBE: 'YOUTUBE'>
        >>> detect_video_type("/uploads/lesson1.mp4")
        <VideoType.SELF_HOSTED: 'SELF_HOSTED'>
    """
    if not url:
        return VideoType.EXTERNAL

    for predicate, video_type in VIDEO_TYPE_RULES:
        if predicate(url, storage_url):
            return video_type

    return VideoType.EXTERNAL


# =============================================================================
# EMBED URL DERIVATION
# =============================================================================


def extract_youtube_video_id(url: str | None) -> str | None:
    """Return the YouTube video ID from the first matching URL shape."""
    if not url:
        return None

    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def get_youtube_embed_url(url: str | None) -> str | None:
    """
    Build the canonical YouTube embed URL.

    Supports watch?v=, youtu.be/, /embed/, /shorts/ and /v/ URLs.

    Returns:
        https://www.youtube.com/embed/{id}, or None when no shape matches
        (callers fall back to the raw URL)

    Example:
        >>> get_youtube_embed_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=30")
        'https://www.youtube.com/embed/dQw4w9WgXcQ'
    """
    video_id = extract_youtube_video_id(url)
    if video_id is None:
        return None
    return f"{YOUTUBE_EMBED_BASE}{video_id}"


def get_vimeo_embed_url(url: str | None) -> str | None:
    """
    Build the canonical Vimeo player URL.

    Example:
        >>> get_vimeo_embed_url("https://vimeo.com/76979871")
        'https://player.vimeo.com/video/76979871'
    """
    if not url:
        return None

    match = VIMEO_ID_PATTERN.search(url)
    if match:
        return f"{VIMEO_EMBED_BASE}{match.group(1)}"
    return None


def extract_cloudflare_video_id(url: str | None) -> str | None:
    """
    Return the Cloudflare Stream video UID.

    Accepts delivery URLs (videodelivery.net/{uid}/...,
    customer-x.cloudflarestream.com/{uid}/...) as well as a bare UID.

    Returns:
        The UID, or None for URLs without a UID path segment
        (e.g. https://watch.cloudflarestream.com/?v=x)
    """
    if not url:
        return None

    match = CLOUDFLARE_ID_PATTERN.search(url)
    if match:
        return match.group(1)

    candidate = url.strip()
    if CLOUDFLARE_BARE_ID_PATTERN.match(candidate):
        return candidate
    return None


def split_signed_url(url: str) -> tuple[str, str | None, str | None]:
    """
    Split a self-hosted signed URL into its base URL, signature and expiry.

    Args:
        url: URL possibly ending in sig={hex}&exp={epoch}

    Returns:
        (base_url, sig, exp). For URLs without a signature the input is
        returned as base_url with sig and exp set to None.

    Example:
        >>> split_signed_url("/uploads/a.pdf?sig=ab12&exp=1700000000")
        ('/uploads/a.pdf', 'ab12', '1700000000')
    """
    match = SIGNED_URL_PATTERN.match(url)
    if match is None:
        return url, None, None
    return match.group("base"), match.group("sig"), match.group("exp")


def _hmac_sha256_hex(key: str, message: str) -> str:
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


# =============================================================================
# VIDEO URL SERVICE CLASS
# =============================================================================


class VideoURLService:
    """
    Signs and verifies lesson media URLs.

    Secrets are read from the injected Settings and never mutated. The clock is
    injectable so tests can pin "now" and get byte-identical output.

    Example:
        >>> service = VideoURLService(Settings(url_signing_secret="s3cret"))
        >>> signed = service.sign_url("/uploads/doc.pdf", VideoType.SELF_HOSTED)
        >>> base, sig, exp = split_signed_url(signed)
        >>> service.verify_signed_url(base, sig, int(exp))
        True
    """

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the video URL service.

        Args:
            settings: Settings holding signing secrets, storage host and TTL
            clock: Returns the current Unix time in seconds (default: time.time)
        """
        self.logger = logging.getLogger(__name__)
        self.settings = settings
        self._clock = clock

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def detect_video_type(self, url: str | None) -> VideoType:
        """Classify a URL using the configured storage host."""
        return detect_video_type(url, self.settings.storage_url)

    # =========================================================================
    # SIGNING
    # =========================================================================

    def sign_url(
        self,
        url: str,
        video_type: VideoType,
        expires_in_seconds: int | None = None,
    ) -> str:
        """
        Produce the URL to hand to the client for the given provider kind.

        The expiry is computed once here and shared by the signature and the
        exp parameter.

        Args:
            url: Raw URL (or Cloudflare video UID)
            video_type: Provider kind, normally from detect_video_type
            expires_in_seconds: Grant lifetime; defaults to settings.signed_url_ttl_seconds

        Returns:
            - YOUTUBE / VIMEO: embed URL, or the raw URL if no ID could be found
            - CLOUDFLARE_STREAM: signed manifest URL (unsigned if keys are missing)
            - SELF_HOSTED: url with sig/exp appended (unchanged if no secret)
            - EXTERNAL: url unchanged

        Raises:
            ValueError: If url is None
        """
        if url is None:
            raise ValueError("url is required for signing")

        if expires_in_seconds is None:
            expires_in_seconds = self.settings.signed_url_ttl_seconds
        expires_at = int(self._clock()) + int(expires_in_seconds)

        if video_type == VideoType.CLOUDFLARE_STREAM:
            return self._sign_cloudflare_url(url, expires_at)
        if video_type == VideoType.SELF_HOSTED:
            return self._sign_self_hosted_url(url, expires_at)
        if video_type == VideoType.YOUTUBE:
            return get_youtube_embed_url(url) or url
        if video_type == VideoType.VIMEO:
            return get_vimeo_embed_url(url) or url
        return url

    def create_grant(
        self, url: str, expires_in_seconds: int | None = None
    ) -> SignedAccessGrant | None:
        """
        Create a self-hosted access grant as a value object.

        Returns:
            SignedAccessGrant, or None when URL_SIGNING_SECRET is not configured
        """
        if not self.settings.url_signing_secret:
            self.logger.warning("URL_SIGNING_SECRET not configured, cannot create grant")
            return None

        if expires_in_seconds is None:
            expires_in_seconds = self.settings.signed_url_ttl_seconds
        return self._grant(url, int(self._clock()) + int(expires_in_seconds))

    def _grant(self, url: str, expires_at: int) -> SignedAccessGrant:
        return SignedAccessGrant(
            target_url=url,
            expires_at=expires_at,
            signature=_hmac_sha256_hex(self.settings.url_signing_secret, f"{url}{expires_at}"),
        )

    def _sign_cloudflare_url(self, url: str, expires_at: int) -> str:
        """
        Build a Cloudflare Stream manifest URL with an HMAC token.

        The token covers the video UID and expiry only. The key ID gates signing
        but is not part of the token; this is a simplified HMAC scheme, not
        Cloudflare's JWT-based signed URL format. URLs without a recognisable
        UID are returned unchanged.
        """
        video_id = extract_cloudflare_video_id(url)
        if video_id is None:
            self.logger.warning(f"No Cloudflare Stream video UID in {url}, returning original URL")
            return url

        manifest_url = f"{CLOUDFLARE_DELIVERY_BASE}/{video_id}/manifest/video.m3u8"

        if not self.settings.is_cloudflare_signing_enabled:
            self.logger.warning(
                "Cloudflare Stream signing keys not configured, serving unsigned manifest"
            )
            return manifest_url

        token = _hmac_sha256_hex(
            self.settings.cloudflare_stream_signing_key, f"{video_id}{expires_at}"
        )
        self.logger.debug(f"Signed Cloudflare Stream video {video_id} until {expires_at}")
        return f"{manifest_url}?token={token}&exp={expires_at}"

    def _sign_self_hosted_url(self, url: str, expires_at: int) -> str:
        """Append sig and exp query parameters to a self-hosted URL."""
        if not self.settings.url_signing_secret:
            self.logger.warning("URL_SIGNING_SECRET not configured, returning original URL")
            return url

        self.logger.debug(f"Signed self-hosted URL {url} until {expires_at}")
        return self._grant(url, expires_at).to_url()

    def sign_hls_playlist(self, playlist: str, playlist_path: str, expires_at: int) -> str:
        """
        Sign the media references of a self-hosted HLS playlist.

        Players resolve variant playlists, segments, keys and init sections
        relative to the playlist and request them without its query string.
        Every reference that resolves under /uploads/ is rewritten to its own
        signed absolute path carrying the playlist's expiry, so access ends
        for the whole stream at the same moment. Other references are left
        as they are.

        Args:
            playlist: Playlist text
            playlist_path: Path the playlist was requested at (without sig/exp)
            expires_at: Expiry of the verified playlist grant

        Returns:
            The rewritten playlist text
        """

        def sign_reference(reference: str) -> str:
            target = urljoin(playlist_path, reference)
            if not target.startswith(SELF_HOSTED_PATH_PREFIX):
                return reference
            return self._sign_self_hosted_url(target, expires_at)

        lines = []
        for line in playlist.splitlines():
            stripped = line.strip()
            if not stripped:
                lines.append(line)
            elif stripped.startswith("#"):
                lines.append(
                    HLS_URI_ATTRIBUTE_PATTERN.sub(
                        lambda m: f'URI="{sign_reference(m.group(1))}"', line
                    )
                )
            else:
                lines.append(sign_reference(stripped))
        return "\n".join(lines) + "\n"

    # =========================================================================
    # VERIFICATION
    # =========================================================================

    def is_expired(self, expires_at: int) -> bool:
        """Check whether an expiry time is already in the past."""
        return self._clock() > expires_at

    def verify_signed_url(self, url: str, signature: str, expires_at: int | str) -> bool:
        """
        Verify a self-hosted sig/exp pair.

        Expired grants are rejected before any HMAC work. The comparison is
        constant-time over the ASCII bytes of both hex digests.

        Args:
            url: The URL as it was signed (without sig/exp)
            signature: Presented hex signature
            expires_at: Presented expiry (int or numeric string)

        Returns:
            True only for an authentic, unexpired grant. Malformed input of any
            kind returns False.
        """
        try:
            expires_at = int(expires_at)
        except (TypeError, ValueError):
            self.logger.debug(f"Rejecting signed URL with malformed expiry: {expires_at!r}")
            return False

        if self.is_expired(expires_at):
            self.logger.debug(f"Rejecting expired signed URL for {url}")
            return False

        secret = self.settings.url_signing_secret
        if not secret:
            return False

        if url is None or signature is None:
            return False

        expected = _hmac_sha256_hex(secret, f"{url}{expires_at}")
        try:
            return hmac.compare_digest(signature.encode("ascii"), expected.encode("ascii"))
        except (AttributeError, UnicodeEncodeError):
            self.logger.debug(f"Rejecting signed URL with malformed signature for {url}")
            return False

    # =========================================================================
    # LESSON SANITIZATION
    # =========================================================================

    def secure_lesson_content(self, lesson: dict[str, Any] | None) -> dict[str, Any] | None:
        """
        Return a copy of a lesson with client-safe media URLs.

        The primary video is classified and signed according to its provider.
        Attachments are always signed as self-hosted without classification.
        Attachment order and all non-url fields are preserved; the input
        document is not modified.

        Args:
            lesson: Lesson document with video_url and attachments, or None

        Returns:
            The secured copy with video_url, video_type and attachments replaced,
            or the input unchanged when it is None/empty

        Example:
            >>> secured = service.secure_lesson_content(
            ...     {"video_url": "https://youtu.be/abc123", "attachments": []}
            ... )
            >>> secured["video_type"], secured["video_url"]
            (<VideoType.YOUTUBE: 'YOUTUBE'>, 'https://www.youtube.com/embed/abc123')
        """
        if not lesson:
            return lesson

        video_url = lesson.get("video_url")
        video_type = self.detect_video_type(video_url or "")
        secure_video_url = self.sign_url(video_url, video_type) if video_url else None

        secure_attachments = [
            self._secure_attachment(attachment) for attachment in lesson.get("attachments") or []
        ]

        return {
            **lesson,
            "video_url": secure_video_url,
            "video_type": video_type,
            "attachments": secure_attachments,
        }

    def _secure_attachment(self, attachment: dict[str, Any]) -> dict[str, Any]:
        url = attachment.get("url")
        if not url:
            return dict(attachment)
        return {**attachment, "url": self.sign_url(url, VideoType.SELF_HOSTED)}


__all__ = [
    "VIDEO_TYPE_RULES",
    "VideoURLService",
    "detect_video_type",
    "extract_cloudflare_video_id",
    "extract_youtube_video_id",
    "get_vimeo_embed_url",
    "get_youtube_embed_url",
    "split_signed_url",
]
