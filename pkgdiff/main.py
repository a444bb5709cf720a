"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.
It sets up all routes, middleware, and exception handlers.

Design Decisions:
- Use lifespan events for startup/shutdown
- Validate GitHub credentials on startup (fail fast)
- Expose health and readiness endpoints
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from pkgdiff import __version__
from pkgdiff.config import get_settings
from pkgdiff.logging_config import get_logger, setup_logging
from pkgdiff.webhook import router as webhook_router

# Initialize logging first
setup_logging()

logger = get_logger(__name__)

SERVICE_NAME = "pkgdiff"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events for the application.
    """
    settings = get_settings()
    logger.info(
        "Starting package.json dependency diff bot",
        host=settings.host,
        port=settings.port,
        sections=list(settings.dependency_sections_tuple)
    )

    try:
        settings.validate_credentials()
        logger.info(
            "Configuration validated successfully",
            auth_mode="token" if settings.uses_personal_token else "app"
        )
    except ValueError as e:
        logger.error("Configuration validation failed", error=str(e))
        raise

    yield

    logger.info("Shutting down package.json dependency diff bot")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="pkgdiff",
        description="Comments package.json dependency changes on pull request commits",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.include_router(webhook_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__
            }
        )

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": SERVICE_NAME,
            "version": __version__,
            "status": "running",
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers and monitors."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": __version__
        }

    @app.get("/ready")
    async def readiness_check():
        """
        Readiness check endpoint.

        Verifies that GitHub credentials are configured.
        """
        try:
            get_settings().validate_credentials()
        except ValueError as e:
            logger.error("Readiness check failed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Not ready: {e}"
            )

        return {
            "status": "ready",
            "service": SERVICE_NAME
        }

    return app


# Create the application instance
app = create_app()
