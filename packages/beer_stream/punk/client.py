"""
Async Punk API client.

Features:
- Async HTTP with aiohttp
- One request per page, 1-based page numbers
- Decodes each page into Beer records
- Every transport, status or body problem surfaces as FetchError
"""

import asyncio
from typing import Any, List, Optional

import aiohttp

from core.config import get_settings
from core.logging import punk_logger as logger

from ..errors import FetchError
from ..models import Beer


class PunkApiClient:
    """
    Fetch collaborator for the beer pipeline.

    Example:
        async with PunkApiClient() as client:
            beers = await client.fetch_page(1)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        per_page: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.punk_api_url).rstrip("/")
        self.per_page = settings.punk_per_page if per_page is None else per_page
        self.timeout = settings.punk_timeout_seconds if timeout is None else timeout
        if self.per_page < 1:
            raise ValueError(f"per_page must be >= 1 (got {self.per_page})")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0 (got {self.timeout})")
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "PunkApiClient":
        """Create aiohttp session on context entry."""
        self._session = aiohttp.ClientSession(
            headers={"Accept": "application/json"},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close session on context exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch_page(self, page: int) -> List[Beer]:
        """
        Fetch and decode one page of beers.

        Args:
            page: 1-based page number

        Returns:
            The page's beers in upstream order; empty past the last page.

        Raises:
            FetchError: network failure, timeout, non-200 status or malformed body
        """
        if page < 1:
            raise ValueError(f"page must be >= 1 (got {page})")
        if not self._session:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        url = f"{self.base_url}/beers"
        params = {"page": page, "per_page": self.per_page}

        try:
            async with self._session.get(url, params=params) as response:
                if response.status != 200:
                    text = await response.text(errors="replace")
                    logger.warning("punk_api_error", page=page, status=response.status, body=text[:200])
                    raise FetchError(
                        f"page {page}: upstream returned HTTP {response.status}",
                        page=page,
                        status=response.status,
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    # json.JSONDecodeError or UnicodeDecodeError
                    raise FetchError(
                        f"page {page}: response body is not valid JSON", page=page, status=200
                    ) from e

        except asyncio.TimeoutError as e:
            logger.warning("punk_api_timeout", page=page, timeout=self.timeout)
            raise FetchError(f"page {page}: request timed out after {self.timeout}s", page=page) from e

        except aiohttp.ClientError as e:
            logger.error("punk_api_client_error", page=page, error=str(e))
            raise FetchError(f"page {page}: {e}", page=page) from e

        return self._parse_page(page, payload)

    def _parse_page(self, page: int, payload: Any) -> List[Beer]:
        """Decode a page payload into Beer records."""
        if not isinstance(payload, list):
            raise FetchError(
                f"page {page}: expected a JSON array, got {type(payload).__name__}",
                page=page,
                status=200,
            )

        beers = []
        for position, item in enumerate(payload):
            try:
                beers.append(Beer.from_payload(item))
            except ValueError as e:
                raise FetchError(f"page {page}, item {position}: {e}", page=page, status=200) from e
        return beers
