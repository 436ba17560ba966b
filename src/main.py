"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn src.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import gallery, health, uploads
from .api.routes.schemas import describe_validation_errors
from .config.settings import get_settings
from .core.errors import GalleryServiceError, ValidationError
from .infrastructure.storage.client import MockStorageClient

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs configuration problems at startup. Missing storage credentials
    don't stop the process; each upload/gallery request reports them.
    """
    settings = get_settings()

    logger.info(
        "Memorial Gallery API starting",
        extra={
            "version": settings.api_version,
            "bucket": settings.r2_bucket_name,
            "mock_mode": settings.r2_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Memorial Gallery API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Shared photo and video gallery backed by Cloudflare R2.

        ## Workflow

        1. **Get an upload URL**: `POST /api/upload-url`
           - Send the filename (and optionally a content hash)
           - PUT the file to the returned URL, or skip if already uploaded

        2. **Or push files directly**: `POST /api/upload`
           - multipart/form-data with files and an optional `contributor` field

        3. **View the gallery**: `GET /api/gallery`
           - Up to 50 random photos/videos with one-hour read URLs
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # One in-memory store per app, only used when R2_MOCK_MODE is set
    app.state.mock_storage = MockStorageClient() if settings.r2_mock_mode else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        uploads.router,
        prefix="/api",
        tags=["Uploads"],
    )

    app.include_router(
        gallery.router,
        prefix="/api",
        tags=["Gallery"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - redirect to docs."""
        return {
            "message": settings.api_title,
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(GalleryServiceError)
    async def service_error_handler(request: Request, exc: GalleryServiceError):
        """
        Translate domain errors into JSON responses.

        Client faults are logged as warnings, server faults as errors.
        """
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            exc.message,
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "details": exc.details,
            }
        )

        content = {"success": False, "error": exc.message}
        if exc.details:
            content["details"] = exc.details

        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Report malformed query, header or body input as a 400 ValidationError."""
        return await service_error_handler(
            request,
            ValidationError(describe_validation_errors(exc.errors())),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Prevents stack traces from leaking to clients. We log the full
        error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"}
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
