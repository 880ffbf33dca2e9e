"""Pipeline error taxonomy."""

from typing import Optional


class PipelineError(Exception):
    """Base error for the paginated beer pipeline."""


class FetchError(PipelineError):
    """A single page request failed: transport, status or body decoding."""

    def __init__(self, message: str, page: Optional[int] = None, status: Optional[int] = None):
        super().__init__(message)
        self.page = page
        self.status = status


class PageLimitExceeded(PipelineError):
    """The upstream kept returning pages past the configured ``max_pages``."""

    def __init__(self, max_pages: int):
        super().__init__(f"Upstream returned no empty page within {max_pages} pages")
        self.max_pages = max_pages


__all__ = ["PipelineError", "FetchError", "PageLimitExceeded"]
