"""
LMS Video Service Backend Application Package

This package contains the FastAPI application that serves lesson media for the
course platform. It provides:

- Video URL classification (YouTube, Vimeo, Cloudflare Stream, self-hosted, external)
- Embed URL derivation for public providers
- Time-limited HMAC signed URLs for private media and their verification
- Secured lesson content with access rules for free, enrolled and admin users
- Signed file serving for self-hosted uploads

Package Structure:
- api/: REST API endpoints
- core/: Core infrastructure (database, auth)
- models/: Pydantic data models
- services/: Business logic layer
- utils/: Logging helpers
"""

__version__ = "1.0.0"
__app_name__ = "LMS-Video-Service"
