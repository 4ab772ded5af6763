"""Server-Sent Events feed of portal events for the admin command center."""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from portal.core.config import constants
from portal.core.events import EventBus
from portal.interface.dependencies import get_event_bus, require_admin


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/command-center", tags=["events"])


async def event_stream(
    request: Request, event_bus: EventBus, *, keepalive_seconds: float = constants.EVENT_STREAM_KEEPALIVE_SECONDS
) -> AsyncIterator[str]:
    """Yield SSE frames until the client disconnects."""
    queue = event_bus.subscribe()
    logger.info("event_stream_opened", extra={"subscribers": event_bus.subscriber_count})
    try:
        yield "event: connected\ndata: {}\n\n"
        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield event.to_sse()
    finally:
        event_bus.unsubscribe(queue)
        logger.info("event_stream_closed", extra={"subscribers": event_bus.subscriber_count})


@router.get("/stream")
async def stream_events(
    request: Request,
    _admin: str = Depends(require_admin),
    event_bus: EventBus = Depends(get_event_bus),
) -> StreamingResponse:
    return StreamingResponse(
        event_stream(request, event_bus),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
