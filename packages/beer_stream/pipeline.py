"""
Paginated fetch -> flatten -> filter pipeline.

Stages are pull-based async iterators chained together:

    PageSequencer  ->  flatten_pages  ->  filter_records  ->  consumer

Nothing is fetched until the consumer asks for the next record, and at most
one page is held in memory at a time. Closing the outer stream closes every
stage beneath it, so no fetch starts after the consumer goes away.

Example:
    async with PunkApiClient() as client:
        pipeline = BeerPipeline(client.fetch_page, abv_above(15.0))
        async for beer in pipeline.stream():
            print(beer.name)
"""

from contextlib import aclosing
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from core.logging import pipeline_logger as logger

from .errors import FetchError, PageLimitExceeded, PipelineError
from .models import Beer

Page = Sequence[Beer]
FetchPage = Callable[[int], Awaitable[Page]]
Predicate = Callable[[Beer], bool]


class SequencerState(str, Enum):
    """Lifecycle of a PageSequencer."""

    RUNNING = "running"
    EXHAUSTED = "exhausted"  # an empty page was yielded
    FAILED = "failed"  # a fetch raised, or the page limit was hit
    CANCELLED = "cancelled"  # closed by the consumer before exhaustion


class PageSequencer:
    """
    Async iterator of pages for indices start_index, start_index + 1, ...

    The terminal empty page is yielded like any other; deciding that it means
    end-of-stream is left to the consumer. After it, or after a failure, the
    sequencer is terminal and issues no further fetches.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        start_index: int = 1,
        max_pages: Optional[int] = None,
    ):
        if start_index < 1:
            raise ValueError(f"start_index must be >= 1 (got {start_index})")
        if max_pages is not None and max_pages < 1:
            raise ValueError(f"max_pages must be >= 1 (got {max_pages})")

        self._fetch_page = fetch_page
        self.next_index = start_index
        self.max_pages = max_pages
        self.fetch_count = 0
        self.state = SequencerState.RUNNING

    def __aiter__(self) -> "PageSequencer":
        return self

    async def __anext__(self) -> Page:
        if self.state is not SequencerState.RUNNING:
            raise StopAsyncIteration

        if self.max_pages is not None and self.fetch_count >= self.max_pages:
            self.state = SequencerState.FAILED
            raise PageLimitExceeded(self.max_pages)

        index = self.next_index
        self.fetch_count += 1
        try:
            page = await self._fetch_page(index)
        except FetchError:
            self.state = SequencerState.FAILED
            raise
        except Exception as e:
            self.state = SequencerState.FAILED
            raise FetchError(f"page {index}: {e}", page=index) from e

        self.next_index += 1
        if len(page) == 0:
            self.state = SequencerState.EXHAUSTED

        logger.debug("page_fetched", page=index, size=len(page))
        return page

    async def aclose(self) -> None:
        """Stop the sequencer; later pulls end the iteration without fetching."""
        if self.state is SequencerState.RUNNING:
            self.state = SequencerState.CANCELLED


async def flatten_pages(pages: AsyncIterator[Page]) -> AsyncIterator[Beer]:
    """Yield the records of each page in order, ending at the first empty page."""
    async with aclosing(pages):
        async for page in pages:
            if len(page) == 0:
                return
            for record in page:
                yield record


async def filter_records(records: AsyncIterator[Beer], predicate: Predicate) -> AsyncIterator[Beer]:
    """Pass through records for which ``predicate`` holds, in arrival order."""
    async with aclosing(records):
        async for record in records:
            if predicate(record):
                yield record


def abv_above(threshold: float) -> Predicate:
    """Build a predicate matching beers strictly stronger than ``threshold``."""

    def predicate(beer: Beer) -> bool:
        return beer.abv > threshold

    return predicate


class BeerPipeline:
    """
    One run of the sequencer -> flattener -> filter chain.

    A pipeline streams once; build a new one per request.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        predicate: Predicate,
        *,
        start_index: int = 1,
        max_pages: Optional[int] = None,
    ):
        self.sequencer = PageSequencer(fetch_page, start_index=start_index, max_pages=max_pages)
        self.predicate = predicate
        self.matched_count = 0
        self._started = False

    @property
    def fetch_count(self) -> int:
        return self.sequencer.fetch_count

    @property
    def state(self) -> SequencerState:
        return self.sequencer.state

    async def stream(self) -> AsyncIterator[Beer]:
        """Lazily yield matching records; propagates PipelineError."""
        if self._started:
            raise RuntimeError("BeerPipeline.stream() can only be consumed once")
        self._started = True

        logger.info("pipeline_started", start_index=self.sequencer.next_index, max_pages=self.sequencer.max_pages)

        records = filter_records(flatten_pages(self.sequencer), self.predicate)
        try:
            async with aclosing(records):
                async for beer in records:
                    self.matched_count += 1
                    yield beer
        except PipelineError as e:
            logger.warning(
                "pipeline_failed",
                error=str(e),
                error_type=type(e).__name__,
                pages_fetched=self.fetch_count,
                matched=self.matched_count,
            )
            raise
        except GeneratorExit:
            logger.info("pipeline_cancelled", pages_fetched=self.fetch_count, matched=self.matched_count)
            raise

        logger.info("pipeline_complete", pages_fetched=self.fetch_count, matched=self.matched_count)

    async def collect(self) -> List[Beer]:
        """Drain the stream into a list."""
        return [beer async for beer in self.stream()]


__all__ = [
    "Page",
    "FetchPage",
    "Predicate",
    "SequencerState",
    "PageSequencer",
    "flatten_pages",
    "filter_records",
    "abv_above",
    "BeerPipeline",
]
