"""
Pytest Configuration and Test Fixtures for the LMS Video Service Backend

This module provides test fixtures including:
- Settings with and without signing secrets
- VideoURLService instances pinned to a fixed clock
- Sample lesson documents
- A mocked Motor database for lesson and enrollment lookups
- FastAPI TestClient with dependency overrides
"""

import hashlib
import hmac
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.api.deps import get_lesson_content_service, get_video_url_service
from app.config import Settings, get_settings
from app.main import app
from app.services.lesson_content_service import LessonContentService
from app.services.video_service import VideoURLService


# Fixed "now" for deterministic signatures (2023-11-14T22:13:20Z)
FIXED_NOW: int = 1_700_000_000

TEST_URL_SIGNING_SECRET = "test-url-signing-secret"
TEST_CLOUDFLARE_SIGNING_KEY = "test-cloudflare-signing-key"
TEST_CLOUDFLARE_KEY_ID = "test-cloudflare-key-id"
TEST_STORAGE_HOST = "storage.lms.test"


def expected_signature(secret: str, message: str) -> str:
    """Independently compute the hex HMAC-SHA256 a signed URL should carry."""
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


# ==============================================================================
# Pytest Configuration
# ==============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers for test categorization.

    Markers defined:
    - unit: For unit tests (isolated, no external dependencies)
    - integration: For tests exercising the FastAPI app end to end
    """
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def mock_settings(tmp_path) -> Settings:
    """
    Create a Settings instance with every signing secret configured.

    The upload directory points at a per-test temporary directory.
    """
    return Settings(
        app_env="testing",
        app_name="LMS-Video-Service-Test",
        debug=True,
        secret_key="test-secret-key-for-jwt-signing-minimum-32-chars",
        url_signing_secret=TEST_URL_SIGNING_SECRET,
        cloudflare_stream_signing_key=TEST_CLOUDFLARE_SIGNING_KEY,
        cloudflare_stream_key_id=TEST_CLOUDFLARE_KEY_ID,
        storage_url=TEST_STORAGE_HOST,
        signed_url_ttl_seconds=3600,
        upload_dir=str(tmp_path),
    )


@pytest.fixture
def unsigned_settings(tmp_path) -> Settings:
    """Create a Settings instance with no signing secrets configured."""
    return Settings(
        app_env="testing",
        app_name="LMS-Video-Service-Test",
        secret_key="test-secret-key-for-jwt-signing-minimum-32-chars",
        url_signing_secret=None,
        cloudflare_stream_signing_key=None,
        cloudflare_stream_key_id=None,
        storage_url=TEST_STORAGE_HOST,
        upload_dir=str(tmp_path),
    )


# ==============================================================================
# Service Fixtures
# ==============================================================================


@pytest.fixture
def video_service(mock_settings: Settings) -> VideoURLService:
    """VideoURLService with secrets configured and the clock pinned to FIXED_NOW."""
    return VideoURLService(mock_settings, clock=lambda: FIXED_NOW)


@pytest.fixture
def unsigned_video_service(unsigned_settings: Settings) -> VideoURLService:
    """VideoURLService without secrets and the clock pinned to FIXED_NOW."""
    return VideoURLService(unsigned_settings, clock=lambda: FIXED_NOW)


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


@pytest.fixture
def course_id() -> ObjectId:
    """Course identifier shared by the sample lessons."""
    return ObjectId()


@pytest.fixture
def test_lesson(course_id: ObjectId) -> dict[str, Any]:
    """
    Paid lesson with a YouTube video and two attachments, as stored in MongoDB.
    """
    return {
        "_id": ObjectId(),
        "course_id": course_id,
        "title": "Introduction to Signals",
        "is_free": False,
        "video_url": "https://youtu.be/abc123",
        "attachments": [
            {"name": "Slides", "url": "/uploads/slides.pdf", "type": "pdf"},
            {"name": "Workbook", "url": "https://cdn.example.com/workbook.pdf?v=2", "type": "pdf"},
        ],
    }


@pytest.fixture
def test_free_lesson(course_id: ObjectId) -> dict[str, Any]:
    """Free preview lesson with a self-hosted video."""
    return {
        "_id": ObjectId(),
        "course_id": course_id,
        "title": "Course Preview",
        "is_free": True,
        "video_url": "/uploads/hls/preview/master.m3u8",
        "attachments": [],
    }


@pytest.fixture
def test_user() -> dict[str, Any]:
    """Regular user as returned by get_current_user_optional."""
    return {"_id": str(ObjectId()), "role": "USER"}


@pytest.fixture
def test_admin() -> dict[str, Any]:
    """Admin user as returned by get_current_user_optional."""
    return {"_id": str(ObjectId()), "role": "ADMIN"}


# ==============================================================================
# Database Fixtures
# ==============================================================================


@pytest.fixture
def mock_db() -> MagicMock:
    """
    Create a mock Motor database with lessons and enrollments collections.

    find_one on both collections is an AsyncMock returning None by default;
    tests set return_value to the documents they need.
    """
    collections = {
        "lessons": MagicMock(),
        "enrollments": MagicMock(),
    }
    for collection in collections.values():
        collection.find_one = AsyncMock(return_value=None)

    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections[name]
    return db


@pytest.fixture
def lesson_content_service(
    mock_db: MagicMock, video_service: VideoURLService
) -> LessonContentService:
    """LessonContentService over the mock database."""
    return LessonContentService(mock_db, video_service)


# ==============================================================================
# FastAPI Client Fixtures
# ==============================================================================


@pytest.fixture
def test_client(
    mock_settings: Settings,
    video_service: VideoURLService,
    lesson_content_service: LessonContentService,
) -> Generator[TestClient, None, None]:
    """
    TestClient with settings and services replaced by the test fixtures.

    The lifespan is not started, so no MongoDB connection is attempted.
    """
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_video_url_service] = lambda: video_service
    app.dependency_overrides[get_lesson_content_service] = lambda: lesson_content_service

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def unsigned_test_client(
    unsigned_settings: Settings,
    unsigned_video_service: VideoURLService,
) -> Generator[TestClient, None, None]:
    """TestClient running without any signing secrets."""
    app.dependency_overrides[get_settings] = lambda: unsigned_settings
    app.dependency_overrides[get_video_url_service] = lambda: unsigned_video_service

    yield TestClient(app)

    app.dependency_overrides.clear()
