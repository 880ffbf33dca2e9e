"""
Pytest fixtures for Beer Stream tests.

The upstream catalogue is replaced by an in-memory fake that records every
page it was asked for.
"""

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from core.config import get_settings  # noqa: E402
from packages.beer_stream.errors import FetchError  # noqa: E402
from packages.beer_stream.models import Beer  # noqa: E402


def make_beer(abv: float, name: str | None = None) -> Beer:
    """Build a beer whose name defaults to its ABV."""
    return Beer(name=name or f"beer-{abv}", tagline=f"A {abv}% beer", abv=abv)


class FakeCatalogue:
    """
    In-memory paged catalogue.

    Page n (1-based) is ``pages[n - 1]``; anything past the list is empty.
    ``fail_at`` makes that page raise ``error`` (FetchError by default).
    """

    def __init__(self, pages, fail_at: int | None = None, error: Exception | None = None):
        self.pages = [list(page) for page in pages]
        self.fail_at = fail_at
        self.error = error
        self.calls: list[int] = []
        self.events: list[tuple] = []

    async def fetch_page(self, page: int) -> list[Beer]:
        self.calls.append(page)
        self.events.append(("fetch", page))
        if page == self.fail_at:
            raise self.error or FetchError(f"page {page}: boom", page=page)
        if page - 1 < len(self.pages):
            return list(self.pages[page - 1])
        return []


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached process-wide; reset them around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def strong_and_weak_pages():
    """Two populated pages followed by the empty terminal page."""
    return [
        [make_beer(55.0, "End of History"), make_beer(10.0, "Tokyo")],
        [make_beer(16.5, "Sink the Bismarck")],
        [],
    ]


@pytest.fixture
def beer_factory():
    """Build a Beer from an ABV and optional name."""
    return make_beer


@pytest.fixture
def catalogue_factory():
    """Build a FakeCatalogue from a list of pages."""
    return FakeCatalogue
