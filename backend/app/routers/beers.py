"""
Beer catalogue streaming endpoints.

The filtered catalogue is written as a JSON array while the pipeline is
still pulling pages, so memory stays bounded by one upstream page.
"""

from contextlib import aclosing
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from core.config import get_settings
from core.logging import api_logger as logger
from packages.beer_stream.errors import PipelineError
from packages.beer_stream.models import Beer
from packages.beer_stream.pipeline import BeerPipeline, FetchPage, abv_above

from ..dependencies import get_fetch_page
from ..schemas import BeerResponse, ErrorResponse

router = APIRouter(prefix="/beers", tags=["beers"])


class StreamAborted(RuntimeError):
    """The pipeline failed after the response body had started."""


def _encode(beer: Beer) -> bytes:
    return BeerResponse.model_validate(beer.to_dict()).model_dump_json().encode()


async def _json_array(first: Optional[Beer], rest: AsyncIterator[Beer]) -> AsyncIterator[bytes]:
    """
    Encode ``first`` followed by ``rest`` as one JSON array.

    Status 200 is already on the wire by the time this runs, so a pipeline
    failure can only cut the body short.
    """
    async with aclosing(rest):
        if first is None:
            yield b"[]"
            return

        yield b"[" + _encode(first)
        try:
            async for beer in rest:
                yield b"," + _encode(beer)
        except PipelineError as e:
            logger.error("stream_aborted", error=str(e), error_type=type(e).__name__)
            raise StreamAborted(str(e)) from e
        yield b"]"


@router.get(
    "/strong",
    response_model=list[BeerResponse],
    responses={status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse}},
)
async def stream_strong_beers(
    min_abv: Optional[float] = Query(default=None, description="Keep beers with ABV strictly above this value"),
    fetch_page: FetchPage = Depends(get_fetch_page),
):
    """
    Stream every catalogue beer stronger than ``min_abv``.

    Pages are requested one at a time until the upstream returns an empty
    page. A failure before the first match becomes a 502; a client
    disconnect stops further page requests.
    """
    settings = get_settings()
    threshold = settings.default_min_abv if min_abv is None else min_abv

    pipeline = BeerPipeline(fetch_page, abv_above(threshold), max_pages=settings.max_pages)
    beers = pipeline.stream()

    # Pull the first match before committing to a 200, so early failures
    # still reach the exception handlers.
    try:
        first = await beers.__anext__()
    except StopAsyncIteration:
        first = None

    return StreamingResponse(_json_array(first, beers), media_type="application/json")
