"""
Leaderboard API Routes
Polling endpoint plus a Server-Sent Events stream of ranking changes
"""
import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from timed_quiz.api.dependencies import get_leaderboard, get_settings
from timed_quiz.core.config import Settings
from timed_quiz.models.leaderboard import LeaderboardEntry, LeaderboardResponse
from timed_quiz.services.leaderboard import Leaderboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])

KEEPALIVE_FRAME = ": keepalive\n\n"


def resolve_limit(limit: Optional[int], settings: Settings) -> int:
    """Default when absent, clamped to 1..leaderboard_max_limit"""
    if limit is None:
        limit = settings.leaderboard_default_limit
    return max(1, min(limit, settings.leaderboard_max_limit))


def format_event(entries: List[LeaderboardEntry]) -> str:
    """One SSE `message` event carrying the leaderboard body"""
    return f"data: {LeaderboardResponse(entries=entries).model_dump_json()}\n\n"


async def leaderboard_events(
    leaderboard: Leaderboard,
    limit: int,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float
) -> AsyncIterator[str]:
    """
    Yield the current board, then one event per ranking change

    The listener is registered only once the response starts streaming, and
    removed when the client disconnects or the subscription is dropped.
    """
    subscription = leaderboard.subscribe(limit)
    logger.info(f"📡 Leaderboard stream opened ({leaderboard.subscriber_count} listeners)")
    try:
        yield format_event(subscription.last or [])
        while True:
            if await is_disconnected():
                break
            try:
                entries = await asyncio.wait_for(subscription.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if entries is None:
                break
            yield format_event(entries)
    finally:
        subscription.close()
        logger.debug("Leaderboard stream closed")


@router.get(
    "",
    response_model=LeaderboardResponse,
    summary="Get the leaderboard",
    description="Top entries by score (desc), then time taken (asc), then submission order"
)
async def read_leaderboard(
    limit: Optional[int] = Query(None, description="Maximum entries to return"),
    leaderboard: Leaderboard = Depends(get_leaderboard),
    settings: Settings = Depends(get_settings)
) -> LeaderboardResponse:
    return LeaderboardResponse(entries=leaderboard.get_leaderboard(resolve_limit(limit, settings)))


@router.get(
    "/stream",
    summary="Stream leaderboard updates",
    description="Server-Sent Events; each `message` event has the same body as GET /leaderboard",
    response_class=StreamingResponse
)
async def stream_leaderboard(
    request: Request,
    limit: Optional[int] = Query(None, description="Maximum entries per update"),
    leaderboard: Leaderboard = Depends(get_leaderboard),
    settings: Settings = Depends(get_settings)
):
    return StreamingResponse(
        leaderboard_events(
            leaderboard,
            resolve_limit(limit, settings),
            request.is_disconnected,
            settings.stream_keepalive_seconds
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no"
        }
    )
