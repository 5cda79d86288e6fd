# tests/services/test_realtime.py
"""Broadcaster delivery semantics with fake sockets."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import pytest

from ozark_collab.core.settings import settings
from ozark_collab.services.realtime import Broadcaster, RealtimeEvent, get_broadcaster, publish


class FakeSocket:
    def __init__(self, *, broken: bool = False, delay: float = 0.0) -> None:
        self.accepted = False
        self.sent: list[dict[str, Any]] = []
        self.broken = broken
        self.delay = delay

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber() -> None:
    broadcaster = Broadcaster()
    first, second = FakeSocket(), FakeSocket()
    await broadcaster.connect(first, 1)
    await broadcaster.connect(second, 2)

    await broadcaster.publish(RealtimeEvent.POST_DELETED, {"postId": 5})

    expected = {"type": "postDeleted", "data": {"postId": 5}}
    assert first.accepted and second.accepted
    assert first.sent == [expected]
    assert second.sent == [expected]


@pytest.mark.asyncio
async def test_dead_subscribers_are_dropped() -> None:
    broadcaster = Broadcaster()
    alive, dead = FakeSocket(), FakeSocket(broken=True)
    await broadcaster.connect(alive, 1)
    await broadcaster.connect(dead, 2)

    await broadcaster.publish(RealtimeEvent.CHAT_UPDATE, {"chatId": 1})

    assert broadcaster.subscriber_count == 1
    assert len(alive.sent) == 1


@pytest.mark.asyncio
async def test_publish_never_raises(failing_broadcaster) -> None:
    await failing_broadcaster.publish(RealtimeEvent.VOTE_UPDATE, {"subjectId": 1})


@pytest.mark.asyncio
async def test_disconnect_is_idempotent() -> None:
    broadcaster = Broadcaster()
    socket = FakeSocket()
    await broadcaster.connect(socket, 3)

    broadcaster.disconnect(socket)
    broadcaster.disconnect(socket)

    assert broadcaster.subscriber_count == 0


def test_process_wide_broadcaster_is_shared() -> None:
    assert get_broadcaster() is get_broadcaster()


@pytest.mark.asyncio
async def test_slow_subscriber_does_not_hold_up_publish(monkeypatch) -> None:
    monkeypatch.setattr(settings, "realtime_send_timeout_seconds", 0.05)
    broadcaster = Broadcaster()
    slow, fast = FakeSocket(delay=5.0), FakeSocket()
    await broadcaster.connect(slow, 1)
    await broadcaster.connect(fast, 2)

    started = time.monotonic()
    await broadcaster.publish(RealtimeEvent.COMMENT_ADDED, {"commentId": 9})
    elapsed = time.monotonic() - started

    assert elapsed < 1.0
    assert fast.sent == [{"type": "commentAdded", "data": {"commentId": 9}}]
    assert slow.sent == []
    assert broadcaster.subscriber_count == 1


@pytest.mark.asyncio
async def test_publish_helper_skips_missing_broadcaster() -> None:
    await publish(None, RealtimeEvent.POST_DELETED, {"postId": 1})
