"""
Upload Edge API

Main FastAPI application entry point for the browser-facing relay.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from upload_edge.config import Settings, settings as default_settings
from upload_edge.middleware import ErrorHandlerMiddleware, http_exception_handler
from upload_edge.routes import relay
from upload_edge.services.cleanup_scheduler import (
    create_cleanup_scheduler,
    get_scheduler_status,
    start_cleanup_scheduler,
    stop_cleanup_scheduler,
)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    settings = app.state.settings
    app.state.scheduler = create_cleanup_scheduler(
        temp_dir=settings.TEMP_PATH,
        ttl_hours=settings.TEMP_FILE_TTL_HOURS,
        interval_hours=settings.CLEANUP_INTERVAL_HOURS,
    )
    # Startup
    start_cleanup_scheduler(app.state.scheduler)
    yield
    # Shutdown
    stop_cleanup_scheduler(app.state.scheduler)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the upload edge application.

    Args:
        settings: Configuration to run with (defaults to environment settings)
    """
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Upload Edge API",
        description="Captures browser uploads and relays them to the image store",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.scheduler = None

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
    app.include_router(relay.router, prefix="/api", tags=["Upload"])

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "ok",
            "service": "Upload Edge API",
            "version": VERSION,
        }

    @app.get("/health")
    async def health_check():
        """
        Detailed health check endpoint.

        Reports the capture sweep scheduler alongside the service status.
        """
        scheduler = app.state.scheduler
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
            "backendUrl": settings.BACKEND_URL,
            "cleanupScheduler": get_scheduler_status(scheduler) if scheduler else None,
        }

    return app


app = create_app()
