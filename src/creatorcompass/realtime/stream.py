"""SSE response producer.

One long-lived response per client per channel:

    OPENING    register a fresh StreamHandle for the user
    CONNECTED  emit a `connected` frame immediately
    HEARTBEAT  forward published frames as they arrive, and emit a
               `heartbeat` frame every heartbeat_interval seconds
    CLOSED     client aborted; close and unregister the handle

The close is driven by the client. When the connection drops, Starlette
cancels the response task, which raises inside the generator and runs the
finally block. There is no server-side timeout.
"""

import asyncio
from typing import AsyncIterator

import structlog
from starlette.responses import StreamingResponse

from creatorcompass.realtime.connections import ConnectionManager, StreamHandle
from creatorcompass.realtime.frames import connected_frame, heartbeat_frame

logger = structlog.get_logger()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # Stop nginx from buffering the stream
    "X-Accel-Buffering": "no",
}


async def stream_events(
    connections: ConnectionManager,
    user_id: str,
    heartbeat_interval: float,
) -> AsyncIterator[str]:
    """Yield SSE frames for one user's connection until the consumer stops."""
    handle = StreamHandle(user_id)
    connections.register(user_id, handle)
    logger.info("sse.connected", channel=connections.channel, user_id=user_id)

    loop = asyncio.get_running_loop()
    try:
        yield connected_frame()

        # Fixed cadence: heartbeats are due on schedule even while events flow
        next_heartbeat = loop.time() + heartbeat_interval
        while True:
            timeout = max(0.0, next_heartbeat - loop.time())
            try:
                frame = await asyncio.wait_for(handle.next_frame(), timeout=timeout)
            except asyncio.TimeoutError:
                next_heartbeat = loop.time() + heartbeat_interval
                frame = heartbeat_frame()
            yield frame
    finally:
        handle.close()
        connections.unregister(user_id, handle)
        logger.info("sse.disconnected", channel=connections.channel, user_id=user_id)


def sse_response(frames: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
