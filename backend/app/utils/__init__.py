"""
Utilities Package for the LMS Video Service.

Modules:
--------
logger:
    Structured logging configuration including:
    - JSONFormatter for structured log output
    - StandardFormatter for human-readable development logs
    - SignedQueryRedactionFilter to keep sig/token values out of logs
    - setup_logging for application-wide configuration
"""

from app.utils.logger import (
    JSONFormatter,
    SignedQueryRedactionFilter,
    StandardFormatter,
    redact_signed_query,
    setup_logging,
)


__all__ = [
    "JSONFormatter",
    "SignedQueryRedactionFilter",
    "StandardFormatter",
    "redact_signed_query",
    "setup_logging",
]
