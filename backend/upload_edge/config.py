"""
Application configuration using Pydantic Settings.

All environment variables are accessed through this config object.
Never use os.getenv() directly in business logic.
"""

import tempfile
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Upload edge settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Image Store Configuration
    BACKEND_URL: str = Field(
        default="http://localhost:8080",
        description="Image store base URL",
    )
    BACKEND_UPLOAD_PATH: str = Field(
        default="/api/upload",
        description="Image store upload endpoint path",
    )
    RELAY_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Timeout for the relayed upload request in seconds",
    )

    # Application Configuration
    PORT: int = Field(
        default=3000,
        description="Port the upload edge listens on",
    )
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root logger level",
    )

    # Temp Capture Configuration
    TEMP_PATH: str = Field(
        default=str(Path(tempfile.gettempdir()) / "upload_edge"),
        description="Directory captured upload parts are written to",
    )
    MAX_FORM_PARTS: int = Field(
        default=1000,
        description="Maximum number of multipart parts parsed per request",
    )
    TEMP_FILE_TTL_HOURS: int = Field(
        default=1,
        description="Age after which orphaned capture files are swept",
    )
    CLEANUP_INTERVAL_HOURS: int = Field(
        default=1,
        description="Interval between sweeps of the capture directory",
    )


# Global settings instance
settings = Settings()
