"""Connection registry and best-effort publisher for SSE streams.

A ConnectionManager maps user id → the StreamHandle of that user's open SSE
response on this process. One manager exists per stream channel
(notifications, analytics) and per application instance; create_app()
builds them and stores them on app.state, so nothing here is a module-level
global.

Rules:
- At most one handle per user. A second connection overwrites the entry and
  the first stream is orphaned (it keeps its heartbeat until the client goes
  away, but receives no more events).
- publish() never raises. No handle → dropped. Closed handle → evicted and
  dropped. There is no queueing for offline users and no retry.

Mutations happen from request handlers running on one event loop, with no
await between read and write, so no lock is needed.
"""

import asyncio
from typing import Any, Optional

import structlog

from creatorcompass.events.types import FRAME_ANALYTICS_UPDATE, FRAME_NOTIFICATION
from creatorcompass.realtime.frames import encode_frame

logger = structlog.get_logger()


class ConnectionClosedError(Exception):
    """Raised when writing to a stream whose client has gone away."""


class StreamHandle:
    """Writable side of one open SSE response.

    Frames are buffered in an unbounded queue and drained by the response
    generator. Once closed, send() raises ConnectionClosedError.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        # Unbounded: a dead client keeps queueing until its generator
        # finally runs and closes the handle
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> None:
        if self._closed:
            raise ConnectionClosedError(f"stream for user {self.user_id} is closed")
        self._queue.put_nowait(frame)

    async def next_frame(self) -> str:
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True


class ConnectionManager:
    """Process-local registry of open streams for one channel."""

    def __init__(self, channel: str):
        self.channel = channel
        self._handles: dict[str, StreamHandle] = {}

    def register(self, user_id: str, handle: StreamHandle) -> None:
        """Attach a handle to a user, replacing any previous one."""
        previous = self._handles.get(user_id)
        self._handles[user_id] = handle
        if previous is not None and previous is not handle:
            logger.info(
                "sse.connection_superseded",
                channel=self.channel,
                user_id=user_id,
            )

    def unregister(self, user_id: str, handle: Optional[StreamHandle] = None) -> None:
        """Drop a user's entry.

        With `handle`, only drop it if it is still the registered one, so a
        superseded stream shutting down leaves its replacement alone.
        """
        current = self._handles.get(user_id)
        if current is None:
            return
        if handle is not None and current is not handle:
            return
        del self._handles[user_id]

    def get(self, user_id: str) -> Optional[StreamHandle]:
        return self._handles.get(user_id)

    def is_connected(self, user_id: str) -> bool:
        return user_id in self._handles

    def publish(self, user_id: str, event: dict[str, Any]) -> None:
        """Deliver an event to the user's open stream, if there is one."""
        handle = self._handles.get(user_id)
        if handle is None:
            return

        try:
            frame = encode_frame(event)
        except (TypeError, ValueError) as e:
            logger.warning(
                "sse.event_unserializable",
                channel=self.channel,
                user_id=user_id,
                error=str(e),
            )
            return

        try:
            handle.send(frame)
        except ConnectionClosedError:
            self.unregister(user_id, handle)
            logger.debug(
                "sse.stale_connection_evicted",
                channel=self.channel,
                user_id=user_id,
            )


def send_notification_to_user(
    connections: ConnectionManager,
    user_id: str,
    notification: dict[str, Any],
) -> None:
    """Push a notification frame to one user's notification stream."""
    connections.publish(
        user_id, {"type": FRAME_NOTIFICATION, "notification": notification}
    )


def send_analytics_update(
    connections: ConnectionManager,
    user_id: str,
    update: dict[str, Any],
) -> None:
    """Push an analytics-update frame to one user's analytics stream."""
    connections.publish(user_id, {"type": FRAME_ANALYTICS_UPDATE, "update": update})
