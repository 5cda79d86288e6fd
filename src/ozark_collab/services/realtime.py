"""Realtime fan-out of collaboration changes to connected WebSocket viewers.

Services call :meth:`Broadcaster.publish` only after their own transaction has
committed. Delivery is best effort: a failing or slow subscriber never turns a
successful write into an error.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from fastapi import WebSocket

from ozark_collab.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)


class RealtimeEvent(str, Enum):
    """Event names understood by the web client."""

    VOTE_UPDATE = "voteUpdate"
    COMMENT_VOTE_UPDATE = "commentVoteUpdate"
    COMMENT_ADDED = "commentAdded"
    COMMENT_EDITED = "commentEdited"
    COMMENT_DELETED = "commentDeleted"
    POST_EDITED = "postEdited"
    POST_DELETED = "postDeleted"
    CHAT_UPDATE = "chatUpdate"


class Broadcaster:
    """Keeps the open subscriber sockets and pushes events to all of them."""

    def __init__(self) -> None:
        # Keyed by id(websocket); starlette sockets are not hashable.
        self.active_connections: dict[int, tuple[int, WebSocket]] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self.active_connections)

    async def connect(self, websocket: WebSocket, user_id: int) -> None:
        await websocket.accept()
        self.active_connections[id(websocket)] = (user_id, websocket)
        logger.debug("Realtime subscriber %d connected", user_id)

    def disconnect(self, websocket: WebSocket) -> None:
        entry = self.active_connections.pop(id(websocket), None)
        if entry is not None:
            logger.debug("Realtime subscriber %d disconnected", entry[0])

    async def publish(self, event: RealtimeEvent, payload: dict[str, Any]) -> None:
        """Send ``payload`` to every subscriber under the ``event`` name.

        Errors are logged and discarded.
        """
        message = {"type": event.value, "data": payload}
        try:
            await self._deliver(message)
        except Exception:  # noqa: BLE001
            logger.warning("Broadcast of %s failed", event.value, exc_info=True)

    async def _deliver(self, message: dict[str, Any]) -> None:
        connections = [connection for _user_id, connection in list(self.active_connections.values())]
        if not connections:
            return
        timeout = settings.realtime_send_timeout_seconds
        # Concurrent sends, each bounded by the timeout.
        results = await asyncio.gather(
            *(asyncio.wait_for(connection.send_json(message), timeout) for connection in connections),
            return_exceptions=True,
        )
        for connection, result in zip(connections, results):
            if isinstance(result, BaseException):
                logger.debug("Dropping realtime subscriber after failed send: %r", result)
                self.disconnect(connection)


class _BroadcasterSingleton:
    """Singleton wrapper for Broadcaster."""

    _instance: Broadcaster | None = None

    @classmethod
    def get_instance(cls) -> Broadcaster:
        if cls._instance is None:
            cls._instance = Broadcaster()
        return cls._instance


def get_broadcaster() -> Broadcaster:
    """Return the process-wide broadcaster."""
    return _BroadcasterSingleton.get_instance()


async def publish(broadcaster: Broadcaster | None, event: RealtimeEvent, payload: dict[str, Any]) -> None:
    """Publish through ``broadcaster``; services built for reads carry none."""
    if broadcaster is not None:
        await broadcaster.publish(event, payload)
