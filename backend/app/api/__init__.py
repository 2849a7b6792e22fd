"""
LMS Video Service API Package.

Package Structure:
    - deps.py: Shared FastAPI dependencies (service construction)
    - uploads.py: Signed access to files under /uploads
    - v1/: Version 1 API endpoints
        - lessons.py: Secured lesson content
        - media.py: Video URL resolution and signature verification

Versioned endpoints are served under the /api/v1 prefix. The /uploads route is
unversioned because its URLs are embedded in signed grants.
"""
