"""
LMS Video Service API - FastAPI Application Entry Point.

This module initializes the FastAPI application with CORS middleware, request
logging, the /api/v1 routers and the signed /uploads route, and manages the
MongoDB connection through the lifespan handler.

API Structure:
    /api/v1/lessons - Secured lesson content
    /api/v1/media   - Video URL resolution and signature verification
    /uploads        - Signed access to self-hosted files

Usage:
    # Run with uvicorn directly
    uvicorn app.main:app --host 0.0.0.0 --port 8000 --reload

    # Run as Python script
    python -m app.main
"""

import logging
import time

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __app_name__, __version__
from app.api.uploads import router as uploads_router
from app.api.v1 import api_router
from app.config import Settings, get_settings
from app.core.database import close_db, get_db_client, init_db
from app.utils.logger import setup_logging


# Configure module logger
logger = logging.getLogger(__name__)

# HTTP status code constants
HTTP_ERROR_THRESHOLD = 400  # Status codes >= 400 indicate errors


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Manage application lifecycle events for startup and shutdown.

    - Startup: configure logging, report signing mode, connect to MongoDB
    - Shutdown: close the MongoDB connection

    A failed MongoDB connection does not stop startup: URL resolution,
    verification and file serving work without it, and /ready reports the
    database as unavailable.
    """
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info("=" * 60)
    logger.info("LMS Video Service API Starting...")
    logger.info("=" * 60)
    logger.info(f"Application: {settings.app_name}")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"Host: {settings.host}:{settings.port}")

    if not settings.is_self_hosted_signing_enabled:
        logger.warning("URL_SIGNING_SECRET not set: self-hosted media will be served unsigned")
    if not settings.is_cloudflare_signing_enabled:
        logger.warning("Cloudflare Stream signing keys not set: manifests will be served unsigned")

    try:
        logger.info("Initializing MongoDB connection...")
        await init_db(settings)
        logger.info("MongoDB connection established successfully")
    except Exception:
        logger.exception("Failed to initialize MongoDB")
        logger.warning("Lesson content endpoints will be unavailable")

    yield

    logger.info("LMS Video Service API Shutting Down...")
    try:
        await close_db()
    except Exception:
        logger.exception("Error closing MongoDB connection")
    logger.info("LMS Video Service API Shutdown Complete")


# =============================================================================
# FastAPI Application Instance
# =============================================================================

def _docs_urls(settings: Settings) -> dict[str, str | None]:
    """Interactive docs and the OpenAPI schema are not published in production."""
    if settings.is_production:
        return {"docs_url": None, "redoc_url": None, "openapi_url": None}
    return {"docs_url": "/docs", "redoc_url": "/redoc", "openapi_url": "/openapi.json"}


_settings = get_settings()

app = FastAPI(
    title="LMS Video Service API",
    description=(
        "Resolves lesson video URLs, issues time-limited signed URLs for private "
        "media and serves secured lesson content."
    ),
    version=__version__,
    **_docs_urls(_settings),
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """
    Log requests and add X-Request-ID / X-Process-Time headers.

    Only the path is logged; query strings may carry signatures.
    """
    request_id = f"{time.time_ns()}"
    start_time = time.perf_counter()

    logger.debug(f"Request started: {request.method} {request.url.path} [Request-ID: {request_id}]")

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed: %s %s [Request-ID: %s]",
            request.method,
            request.url.path,
            request_id,
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        f"Request completed: {request.method} {request.url.path} "
        f"[Status: {response.status_code}] [Time: {process_time_ms}ms] "
        f"[Request-ID: {request_id}]",
    )

    return response


# =============================================================================
# Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/uploads")


# =============================================================================
# Core Endpoints
# =============================================================================


@app.get("/", response_class=JSONResponse, tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    """Return API name, version and documentation links."""
    return {
        "name": "LMS Video Service API",
        "version": __version__,
        "documentation": {
            "swagger": app.docs_url,
            "redoc": app.redoc_url,
            "openapi": app.openapi_url,
        },
        "api_prefix": "/api/v1",
        "endpoints": {
            "lessons": "/api/v1/lessons",
            "media": "/api/v1/media",
            "uploads": "/uploads",
        },
    }


@app.get("/health", response_class=JSONResponse, tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """Liveness check; does not check dependencies."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "service": __app_name__,
    }


@app.get("/ready", response_class=JSONResponse, tags=["health"], summary="Readiness Check")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Reports MongoDB connectivity and which signing modes are active. The
    service is ready when MongoDB is reachable.
    """
    settings = get_settings()
    checks: dict[str, bool] = {}

    try:
        checks["mongodb"] = await get_db_client().ping()
    except RuntimeError:
        checks["mongodb"] = False

    checks["self_hosted_signing"] = settings.is_self_hosted_signing_enabled
    checks["cloudflare_signing"] = settings.is_cloudflare_signing_enabled

    return {
        "ready": checks["mongodb"],
        "timestamp": datetime.now(UTC).isoformat(),
        "checks": checks,
    }


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a consistent JSON body for 404 errors."""
    detail = getattr(exc, "detail", None)
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": detail or f"The requested path '{request.url.path}' was not found",
            "status_code": 404,
            "path": str(request.url.path),
        },
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the error and return a generic body without internal details."""
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {exc!s}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
            "status_code": 500,
        },
    )


# =============================================================================
# Main Execution Block
# =============================================================================

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug and settings.is_development,
        log_level=settings.log_level,
        access_log=settings.debug,
    )
