"""
FastAPI application entry point.

Uses structured logging from core.logging module.
The shared PunkApiClient lives for the lifetime of the app.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.logging import RequestLoggingMiddleware, configure_logging, get_logger
from packages.beer_stream.punk import PunkApiClient

from .error_handlers import register_exception_handlers
from .middleware.request_id import RequestIDMiddleware
from .routers import beers as beers_router

# Configure structured logging
settings = get_settings()
configure_logging(level="DEBUG" if settings.debug else settings.log_level)
logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the upstream client on startup and close it on shutdown."""
    logger.info("app_startup", app_name=settings.app_name, upstream=settings.punk_api_url)

    async with PunkApiClient() as client:
        app.state.punk_client = client
        try:
            yield
        finally:
            app.state.punk_client = None
            logger.info("app_shutdown")


def create_app() -> FastAPI:
    # API version prefix
    api_version = "v1"
    api_prefix = f"{settings.api_prefix}/{api_version}"

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    # Request ID middleware (for tracing)
    app.add_middleware(RequestIDMiddleware)

    # Structured request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Exception handlers
    register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    # API is accessible at /api/v1/*
    app.include_router(beers_router.router, prefix=api_prefix)

    return app


app = create_app()
