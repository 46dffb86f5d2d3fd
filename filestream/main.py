"""
Main application entrypoint for the filestream upload API
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from filestream.api import upload_router
from filestream.config import Settings, get_settings
from filestream.services.chunk_service import ChunkUploadService
from filestream.utils.error_handler import (
    api_exception_handler,
    internal_exception_handler,
    validation_exception_handler,
)
from filestream.utils.exceptions import BaseAPIException
from filestream.utils.logger import configure_logging, get_logger

logger = get_logger("main")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings

    Returns:
        Configured FastAPI instance
    """
    settings = settings or get_settings()
    configure_logging(settings.DEBUG)

    upload_service = ChunkUploadService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        upload_service.ensure_directory(settings.UPLOAD_DIR)
        logger.info(f"Starting {settings.APP_NAME}. Upload dir: {settings.UPLOAD_DIR}")
        if settings.DEBUG:
            logger.info("Enabled debug mode...")
        yield
        logger.info("Shutting down application...")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Chunked file upload API",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)

    app.state.settings = settings
    app.state.upload_service = upload_service

    app.include_router(upload_router, prefix="/api/upload", tags=["uploads"])

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
