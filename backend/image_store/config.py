"""
Application configuration using Pydantic Settings.

All environment variables are accessed through this config object.
Never use os.getenv() directly in business logic.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Image store settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Configuration
    PORT: int = Field(
        default=8080,
        description="Port the image store listens on",
    )
    ALLOWED_ORIGINS: List[str] = Field(
        default=["*"],
        description="CORS allowed origins",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root logger level",
    )

    # Storage Configuration
    STORAGE_PATH: str = Field(
        default="/tmp/image_store/uploads",
        description="Directory holding accepted images",
    )
    STAGING_PATH: str = Field(
        default="/tmp/image_store/staging",
        description="Directory holding received files until they are validated",
    )
    PUBLIC_URL_PREFIX: str = Field(
        default="/uploads",
        description="URL path prefix stored images are served under",
    )

    # Admission Configuration
    UPLOAD_FIELD_NAME: str = Field(
        default="images",
        description="Multipart field name carrying the image parts",
    )
    MAX_FILES: int = Field(
        default=10,
        description="Maximum number of files per upload request",
    )
    MAX_FILE_SIZE: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum size of a single file in bytes (5MB)",
    )
    RATE_LIMIT_REQUESTS: int = Field(
        default=30,
        description="Number of upload requests allowed per window and client",
    )
    RATE_LIMIT_WINDOW: int = Field(
        default=60,
        description="Rate limit time window in seconds",
    )


# Global settings instance
settings = Settings()
