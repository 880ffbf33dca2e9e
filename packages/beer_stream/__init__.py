"""
Beer Stream Package.

Streams beers from a paginated upstream catalogue, one page at a time,
keeping only those that match a predicate.

Features:
- Pull-based page sequencer that stops at the first empty page
- Flattening with at most one page in memory
- Order-preserving predicate filter
- Async aiohttp client for the Punk API paging contract
"""

from .errors import FetchError, PageLimitExceeded, PipelineError
from .models import Beer
from .pipeline import (
    BeerPipeline,
    PageSequencer,
    SequencerState,
    abv_above,
    filter_records,
    flatten_pages,
)

__version__ = "1.0.0"

__all__ = [
    "Beer",
    "BeerPipeline",
    "FetchError",
    "PageLimitExceeded",
    "PageSequencer",
    "PipelineError",
    "SequencerState",
    "abv_above",
    "filter_records",
    "flatten_pages",
]
