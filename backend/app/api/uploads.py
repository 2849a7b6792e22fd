"""
Signed Upload Serving for the LMS Video Service.

Endpoints:
- GET /uploads/{file_path} - Serve a self-hosted file after checking its sig/exp

When URL_SIGNING_SECRET is configured, every request must carry the sig and
exp parameters produced by VideoURLService for the same URL, either the
relative /uploads/... form or the absolute form on this host. Without a secret,
files are served unsigned, matching the unsigned URLs handed out in that mode.

HLS playlists (.m3u8) served with a valid signature are rewritten so that each
variant playlist, segment, key and init section they reference carries its own
signature with the playlist's expiry. A player that opened a signed master can
therefore fetch the rest of the stream until that expiry.
"""

import logging

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import FileResponse

from app.api.deps import get_video_url_service
from app.config import Settings, get_settings
from app.services.video_service import HLS_PLAYLIST_SUFFIX, VideoURLService, split_signed_url


# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])

HLS_PLAYLIST_MEDIA_TYPE = "application/vnd.apple.mpegurl"


def _resolve_upload_path(upload_dir: str, file_path: str) -> Path:
    """
    Map a request path onto the upload directory.

    Raises:
        HTTPException: 404 for missing files and paths escaping the directory
    """
    upload_root = Path(upload_dir).resolve()
    target = (upload_root / file_path).resolve()

    if not target.is_relative_to(upload_root) or not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return target


def _verified_expiry(request: Request, service: VideoURLService) -> int:
    """
    Check the request's sig/exp against its relative and absolute URL.

    Returns:
        The verified expiry

    Raises:
        HTTPException: 403 if the signature is missing, forged or expired
    """
    relative_url = request.url.path
    if request.url.query:
        relative_url = f"{relative_url}?{request.url.query}"

    relative_base, sig, exp = split_signed_url(relative_url)
    absolute_base, _, _ = split_signed_url(str(request.url))

    if sig is None or exp is None or not any(
        service.verify_signed_url(candidate, sig, exp)
        for candidate in (relative_base, absolute_base)
    ):
        logger.warning(f"Rejected unsigned or invalid access to {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired signed URL",
        )
    return int(exp)


@router.get(
    "/{file_path:path}",
    response_class=FileResponse,
    summary="Download a self-hosted file",
    description="Serves a file from the upload directory when its signed URL is valid",
)
async def serve_upload(
    file_path: str,
    request: Request,
    settings: Settings = Depends(get_settings),
    service: VideoURLService = Depends(get_video_url_service),
) -> Response:
    """
    Serve an uploaded file.

    Raises:
        HTTPException: 403 if signing is enabled and the signature is missing,
            forged or expired
        HTTPException: 404 if the file does not exist
    """
    if not settings.is_self_hosted_signing_enabled:
        return FileResponse(_resolve_upload_path(settings.upload_dir, file_path))

    expires_at = _verified_expiry(request, service)
    target = _resolve_upload_path(settings.upload_dir, file_path)

    if target.suffix.lower() != HLS_PLAYLIST_SUFFIX:
        return FileResponse(target)

    playlist = service.sign_hls_playlist(
        target.read_text(encoding="utf-8"), request.url.path, expires_at
    )
    return Response(content=playlist, media_type=HLS_PLAYLIST_MEDIA_TYPE)
