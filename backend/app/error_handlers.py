"""
Custom exception handlers for FastAPI.

Security:
- Request IDs are logged server-side for tracing but NOT exposed to clients
- Upstream error details are logged, not echoed back
"""

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from core.logging import get_logger
from packages.beer_stream.errors import FetchError, PageLimitExceeded

logger = get_logger("backend.errors")


def _get_request_id() -> str:
    """
    Get the current request ID from context.

    Used for server-side logging only - NOT exposed to clients.
    """
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("request_id", "-")


def _response_payload(detail: str, status_code: int) -> dict:
    return {
        "detail": detail,
        "status_code": status_code,
    }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            detail=exc.detail,
            status_code=exc.status_code,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_response_payload(str(exc.detail), exc.status_code),
        )

    @app.exception_handler(FetchError)
    async def fetch_error_handler(request: Request, exc: FetchError):
        logger.error(
            "upstream_fetch_failed",
            error=str(exc),
            page=exc.page,
            upstream_status=exc.status,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=_response_payload("Upstream catalogue request failed", status.HTTP_502_BAD_GATEWAY),
        )

    @app.exception_handler(PageLimitExceeded)
    async def page_limit_handler(request: Request, exc: PageLimitExceeded):
        logger.error(
            "upstream_page_limit_exceeded",
            max_pages=exc.max_pages,
            request_id=_get_request_id(),
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=_response_payload("Upstream catalogue did not terminate", status.HTTP_502_BAD_GATEWAY),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(),
        )
        # Return generic message - don't expose exception details
        return JSONResponse(
            status_code=500,
            content=_response_payload("Internal server error", 500),
        )
