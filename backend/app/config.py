"""
LMS Video Service Configuration Management Module

This module provides configuration management for the LMS video service using
Pydantic Settings. It loads and validates all environment variables required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection for lesson and enrollment lookups
- Local JWT authentication for lesson access checks
- URL signing secrets for self-hosted files and Cloudflare Stream
- Storage host used to recognise self-hosted media

Signing secrets are optional. When they are absent the video service degrades to
serving unsigned URLs and logs a warning instead of failing requests.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration settings for the LMS video service.

    Loaded once per process from environment variables and an optional .env
    file. The signing secrets are read-only for the lifetime of the process and
    are injected into the video service rather than read ad hoc.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Database connection URI and connection pool settings
    - Auth: Local JWT settings used to identify the requesting user
    - Video signing: HMAC secrets, storage host and grant TTL
    - Uploads: Local directory served under /uploads

    Example usage:
        ```python
        from app.config import Settings

        settings = Settings(url_signing_secret="s3cret")
        print(settings.is_self_hosted_signing_enabled)
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="LMS-Video-Service",
        description="Service name used in logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(
        default=True, description="Debug mode; also enables uvicorn reload when run as a script"
    )

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=False, description="Emit structured JSON log lines instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8000, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins of the LMS web client allowed by CORS",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(
        default="lms", description="MongoDB database holding lessons and enrollments"
    )

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in MongoDB connection pool", ge=0
    )

    mongodb_max_pool_size: int = Field(
        default=50, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # Auth Configuration
    # =========================================================================

    secret_key: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret key for local JWT signing. Must be a secure random string.",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_expiration_hours: int = Field(
        default=24, description="JWT token expiration time in hours", ge=1, le=168
    )

    # =========================================================================
    # Video URL Signing
    # =========================================================================

    url_signing_secret: str | None = Field(
        default=None,
        description="HMAC key for signing and verifying self-hosted content URLs",
    )

    cloudflare_stream_signing_key: str | None = Field(
        default=None,
        description="HMAC key for Cloudflare Stream signed manifest URLs",
    )

    cloudflare_stream_key_id: str | None = Field(
        default=None,
        description="Cloudflare Stream signing key ID (presence gate for Cloudflare signing)",
    )

    storage_url: str = Field(
        default="localhost",
        description="Storage host whose URLs are treated as self-hosted content",
    )

    signed_url_ttl_seconds: int = Field(
        default=3600,
        description="Lifetime of signed media URLs in seconds (1 hour)",
        ge=60,
        le=86400,
    )

    upload_dir: str = Field(
        default="uploads", description="Local directory served under the /uploads path"
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize LOG_LEVEL to a lowercase stdlib level name."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"log_level must be one of {sorted(valid_levels)}, got {v!r}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Restrict APP_ENV to the known deployment environments."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"app_env must be one of {sorted(valid_envs)}, got {v!r}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only symmetric algorithms are usable with a shared secret key."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"jwt_algorithm must be one of {sorted(valid_algorithms)}, got {v!r}"
            )
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept CORS_ORIGINS as a comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator(
        "url_signing_secret",
        "cloudflare_stream_signing_key",
        "cloudflare_stream_key_id",
        mode="before",
    )
    @classmethod
    def empty_secret_as_none(cls, v: str | None) -> str | None:
        """Treat blank secrets as unset so the unsigned fallback applies."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("storage_url")
    @classmethod
    def validate_storage_url(cls, v: str) -> str:
        """An empty storage host would match every URL as self-hosted."""
        normalized = v.strip()
        return normalized or "localhost"

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_self_hosted_signing_enabled(self) -> bool:
        """Check if self-hosted URLs can be signed and verified."""
        return self.url_signing_secret is not None

    @property
    def is_cloudflare_signing_enabled(self) -> bool:
        """
        Check if Cloudflare Stream signing is fully configured.

        Both the signing key and the key ID must be present. The key ID is not
        part of the computed token; it only gates whether signing happens.
        """
        return all([self.cloudflare_stream_signing_key, self.cloudflare_stream_key_id])

    @property
    def is_development(self) -> bool:
        """True for APP_ENV=development."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """True for APP_ENV=production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Return the process-wide Settings.

    Settings are read once; later calls return the cached instance. Tests
    construct Settings directly or override this dependency.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
