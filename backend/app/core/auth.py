"""
LMS Video Service Authentication Module

Identifies the user requesting lesson content. Tokens are HS256 JWTs issued by
the platform's auth service and signed with the shared secret_key; this module
only validates them and exposes the claims needed for the lesson access rules:

- sub: User ID, matched against enrollments
- role: "ADMIN" bypasses the enrollment check

Authentication is optional here: free lessons are served to anonymous users,
so the dependency returns None instead of failing when no valid token is sent.

Usage:
    ```python
    from fastapi import Depends
    from app.core.auth import get_current_user_optional

    @router.get("/lessons/{lesson_id}/content")
    async def lesson_content(user: dict | None = Depends(get_current_user_optional)):
        ...
    ```
"""

import logging

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import Settings, get_settings


# Configure module logger
logger = logging.getLogger(__name__)

ADMIN_ROLE = "ADMIN"
DEFAULT_ROLE = "USER"


# HTTPBearer security scheme; missing headers are allowed for anonymous access
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token issued by the platform auth service.",
    auto_error=False,
)


def create_access_token(
    user_id: str,
    role: str = DEFAULT_ROLE,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create an HS256 access token.

    Token claims:
    - sub: User ID (subject)
    - role: User role (USER or ADMIN)
    - exp: Expiration timestamp (jwt_expiration_hours from now by default)
    - iat: Issued at timestamp

    Args:
        user_id: The user's unique identifier.
        role: The user's role.
        settings: Optional Settings instance. If not provided, uses get_settings().
        expires_delta: Optional custom lifetime.

    Returns:
        str: The encoded JWT token string.
    """
    if settings is None:
        settings = get_settings()

    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.jwt_expiration_hours)

    payload = {
        "sub": user_id,
        "role": role,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Validate an access token and return its claims.

    Raises:
        HTTPException: 401 if the token is invalid, expired or has no subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("Access token validation failed: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject claim",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any] | None:
    """
    Get the current user if authenticated, or None if not.

    Returns:
        Optional[dict]: {"_id": user_id, "role": role} for a valid token,
        None for a missing or invalid token.
    """
    if credentials is None:
        return None

    try:
        payload = decode_access_token(credentials.credentials, settings)
    except HTTPException:
        logger.debug("Ignoring invalid bearer token for optional auth")
        return None

    return {
        "_id": str(payload["sub"]),
        "role": str(payload.get("role", DEFAULT_ROLE)).upper(),
    }


def is_admin(user: dict[str, Any] | None) -> bool:
    """Check whether a user carries the admin role."""
    return user is not None and user.get("role") == ADMIN_ROLE


__all__ = [
    "ADMIN_ROLE",
    "DEFAULT_ROLE",
    "create_access_token",
    "decode_access_token",
    "get_current_user_optional",
    "is_admin",
    "security",
]
