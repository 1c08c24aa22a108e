"""
Image Store API

Main FastAPI application entry point for the storage backend.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from image_store.config import Settings, settings as default_settings
from image_store.middleware import ErrorHandlerMiddleware, http_exception_handler
from image_store.routes import images, upload
from image_store.services.rate_limiter import UploadRateLimiter

SERVICE_NAME = "Image Upload API Server"
VERSION = "1.0.0"


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the image store application.

    Args:
        settings: Configuration to run with (defaults to environment settings)
    """
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Image Store API",
        description="Validates and stores uploaded images",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.rate_limiter = UploadRateLimiter(
        max_requests=settings.RATE_LIMIT_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handling middleware
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Register routers
    app.include_router(upload.router, prefix="/api", tags=["Upload"])
    app.include_router(images.router, prefix="/api", tags=["Images"])

    # Serve stored images read-only
    storage_path = Path(settings.STORAGE_PATH)
    storage_path.mkdir(parents=True, exist_ok=True)
    app.mount(
        "/" + settings.PUBLIC_URL_PREFIX.strip("/"),
        StaticFiles(directory=storage_path),
        name="uploads",
    )

    @app.get("/")
    async def root():
        """Service banner"""
        return {"message": f"{SERVICE_NAME} is running!"}

    @app.get("/health")
    async def health_check():
        """
        Detailed health check endpoint.

        Returns service health status for monitoring and deployment health checks.
        """
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
        }

    return app


app = create_app()
