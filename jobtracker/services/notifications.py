"""Toast notifications for the front end."""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 2.0


class ToastLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    LOADING = "loading"


class Toast(BaseModel):
    """A short-lived user notification."""

    level: ToastLevel
    message: str
    duration: float = DEFAULT_DURATION
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Notifier:
    """Bounded queue of pending toasts plus live subscribers."""

    def __init__(self, max_pending: int = 100):
        self.max_pending = max_pending
        self._pending: deque[Toast] = deque(maxlen=max_pending)
        self._subscribers: set[asyncio.Queue[Toast]] = set()

    def push(
        self, level: ToastLevel, message: str, duration: float = DEFAULT_DURATION
    ) -> Toast:
        toast = Toast(level=level, message=message, duration=duration)
        self._pending.append(toast)
        for queue in self._subscribers:
            # Slow subscribers lose their oldest toasts.
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(toast)
        logger.debug(f"Toast ({level.value}): {message}")
        return toast

    def success(self, message: str, duration: float = DEFAULT_DURATION) -> Toast:
        return self.push(ToastLevel.SUCCESS, message, duration)

    def error(self, message: str, duration: float = DEFAULT_DURATION) -> Toast:
        return self.push(ToastLevel.ERROR, message, duration)

    def info(self, message: str, duration: float = DEFAULT_DURATION) -> Toast:
        return self.push(ToastLevel.INFO, message, duration)

    def drain(self) -> list[Toast]:
        """Return and forget all pending toasts."""
        toasts = list(self._pending)
        self._pending.clear()
        return toasts

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def subscribe(self) -> AsyncIterator[Toast]:
        """Yield toasts as they are pushed, starting with the pending ones."""
        queue: asyncio.Queue[Toast] = asyncio.Queue(maxsize=self.max_pending)
        for toast in self.drain():
            queue.put_nowait(toast)
        self._subscribers.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)
