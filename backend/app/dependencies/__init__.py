"""
FastAPI dependency injection module.

Provides centralized dependencies for:
- The shared upstream catalogue client
- The page fetch callable handed to each pipeline
"""

from fastapi import Depends, HTTPException, Request, status

from packages.beer_stream.pipeline import FetchPage
from packages.beer_stream.punk import PunkApiClient

# =============================================================================
# Upstream Client Dependencies
# =============================================================================


def get_punk_client(request: Request) -> PunkApiClient:
    """Get the PunkApiClient opened by the application lifespan."""
    client = getattr(request.app.state, "punk_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Upstream client not initialized",
        )
    return client


def get_fetch_page(client: PunkApiClient = Depends(get_punk_client)) -> FetchPage:
    """Get the page fetch callable used to build pipelines."""
    return client.fetch_page


__all__ = [
    "get_punk_client",
    "get_fetch_page",
]
