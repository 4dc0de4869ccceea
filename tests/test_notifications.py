"""Tests for toasts and connectivity monitoring."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from jobtracker.services.connectivity import (
    OFFLINE_INDICATOR,
    OFFLINE_MESSAGE,
    ONLINE_MESSAGE,
    ConnectivityMonitor,
)
from jobtracker.services.notifications import Notifier, ToastLevel


class TestNotifier:
    """Tests for the toast queue."""

    def test_push_and_drain(self):
        notifier = Notifier()
        notifier.success("Saved")
        notifier.error("Failed")

        toasts = notifier.drain()
        assert [(t.level, t.message) for t in toasts] == [
            (ToastLevel.SUCCESS, "Saved"),
            (ToastLevel.ERROR, "Failed"),
        ]
        assert toasts[0].duration == 2.0
        assert notifier.pending == 0

    def test_queue_is_bounded(self):
        notifier = Notifier(max_pending=3)
        for i in range(5):
            notifier.info(f"message {i}")
        assert [t.message for t in notifier.drain()] == [
            "message 2",
            "message 3",
            "message 4",
        ]

    @pytest.mark.asyncio
    async def test_subscribe_receives_pending_then_live(self):
        notifier = Notifier()
        notifier.success("before")
        stream = notifier.subscribe()

        first = await stream.__anext__()
        notifier.error("after")
        second = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()

        assert first.message == "before"
        assert second.message == "after"
        assert notifier.pending == 1


class TestConnectivityMonitor:
    """Tests for online/offline transitions."""

    def _messages(self, notifier):
        return [(t.level, t.message) for t in notifier.drain()]

    def test_initially_online_without_toast(self):
        notifier = Notifier()
        monitor = ConnectivityMonitor(notifier, AsyncMock(), interval_seconds=30)
        monitor.set_online(True)
        assert monitor.is_online is True
        assert monitor.indicator is None
        assert notifier.pending == 0

    def test_offline_toast_once_per_period(self):
        notifier = Notifier()
        monitor = ConnectivityMonitor(notifier, AsyncMock(), interval_seconds=30)

        monitor.set_online(False)
        monitor.set_online(False)
        assert monitor.indicator == OFFLINE_INDICATOR
        assert self._messages(notifier) == [(ToastLevel.ERROR, OFFLINE_MESSAGE)]

        monitor.set_online(True)
        assert self._messages(notifier) == [(ToastLevel.SUCCESS, ONLINE_MESSAGE)]

        monitor.set_online(False)
        assert self._messages(notifier) == [(ToastLevel.ERROR, OFFLINE_MESSAGE)]

    @pytest.mark.asyncio
    async def test_probe_failure_counts_as_offline(self):
        notifier = Notifier()
        probe = AsyncMock(side_effect=RuntimeError("dns failure"))
        monitor = ConnectivityMonitor(notifier, probe, interval_seconds=30)

        assert await monitor.check() is False
        assert monitor.is_online is False

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        notifier = Notifier()
        monitor = ConnectivityMonitor(
            notifier, AsyncMock(return_value=True), interval_seconds=30
        )

        await monitor.start()
        assert monitor.get_status()["monitor_running"] is True
        assert monitor.get_status()["online"] is True

        await monitor.stop()
        assert monitor.get_status()["monitor_running"] is False


class TestSubscriberBound:
    """Tests for slow SSE subscribers."""

    @pytest.mark.asyncio
    async def test_slow_subscriber_keeps_newest(self):
        notifier = Notifier(max_pending=2)
        notifier.info("m0")
        stream = notifier.subscribe()
        assert (await stream.__anext__()).message == "m0"

        for i in range(1, 5):
            notifier.info(f"m{i}")

        received = [
            (await asyncio.wait_for(stream.__anext__(), timeout=1)).message
            for _ in range(2)
        ]
        await stream.aclose()
        assert received == ["m3", "m4"]
