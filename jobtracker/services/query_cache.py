"""Request-level query cache with invalidation and retry."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, TypeVar

from jobtracker.core.config import settings
from jobtracker.core.exceptions import AppwriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")
QueryKey = tuple[Hashable, ...]


def retry_delay(attempt: int, base: float = 1.0, cap: float = 30.0) -> float:
    """Capped exponential delay before retry ``attempt`` (0-based)."""
    return min(base * 2**attempt, cap)


def is_retryable(error: BaseException) -> bool:
    """Client errors are final; everything else may be transient."""
    if isinstance(error, AppwriteError):
        return not error.is_client_error
    return isinstance(error, Exception)


def matches_prefix(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


@dataclass
class QueryEntry:
    """Cached result of one query."""

    data: Any
    updated_at: float
    stale_time: float
    invalidated: bool = False

    def is_stale(self, now: float) -> bool:
        return self.invalidated or now - self.updated_at >= self.stale_time


class QueryClient:
    """Caches read results per query key.

    At most one fetch per key is in flight; concurrent readers share it.
    Mutations run through ``mutate`` so their success callbacks, usually
    invalidations, complete before the caller sees the result.
    """

    def __init__(
        self,
        retry: int | None = None,
        mutation_retry: int | None = None,
        default_stale_time: float | None = None,
        retry_base_delay: float = 1.0,
        max_retry_delay: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.retry = settings.query_retry if retry is None else retry
        self.mutation_retry = (
            settings.mutation_retry if mutation_retry is None else mutation_retry
        )
        self.default_stale_time = (
            settings.applications_stale_seconds
            if default_stale_time is None
            else default_stale_time
        )
        self.retry_base_delay = retry_base_delay
        self.max_retry_delay = (
            settings.retry_max_delay if max_retry_delay is None else max_retry_delay
        )
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[QueryKey, QueryEntry] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}
        self._invalidated_inflight: set[QueryKey] = set()

    async def _run_with_retry(
        self, fn: Callable[[], Awaitable[T]], retries: int, label: str
    ) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except Exception as e:
                if attempt >= retries or not is_retryable(e):
                    raise
                delay = retry_delay(attempt, self.retry_base_delay, self.max_retry_delay)
                attempt += 1
                logger.warning(
                    f"{label} failed ({e}). Retry {attempt}/{retries} after {delay:.2f}s"
                )
                await self._sleep(delay)

    async def _fetch_and_store(
        self, key: QueryKey, fn: Callable[[], Awaitable[T]], stale_time: float
    ) -> T:
        try:
            data = await self._run_with_retry(fn, self.retry, f"Query {key!r}")
            self._entries[key] = QueryEntry(
                data=data,
                updated_at=self._clock(),
                stale_time=stale_time,
                invalidated=key in self._invalidated_inflight,
            )
            return data
        finally:
            self._inflight.pop(key, None)
            self._invalidated_inflight.discard(key)

    async def fetch_query(
        self,
        key: QueryKey,
        fn: Callable[[], Awaitable[T]],
        stale_time: float | None = None,
    ) -> T:
        """Return cached data for ``key`` or fetch it."""
        entry = self._entries.get(key)
        if entry is not None and not entry.is_stale(self._clock()):
            return entry.data

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._fetch_and_store(
                    key,
                    fn,
                    self.default_stale_time if stale_time is None else stale_time,
                )
            )
            self._inflight[key] = task
        return await asyncio.shield(task)

    def get_query_data(self, key: QueryKey) -> Any | None:
        entry = self._entries.get(key)
        return entry.data if entry is not None else None

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.is_stale(self._clock())

    def invalidate_queries(self, prefix: QueryKey) -> int:
        """Mark every query whose key starts with ``prefix`` as stale."""
        count = 0
        for key, entry in self._entries.items():
            if matches_prefix(key, prefix):
                entry.invalidated = True
                count += 1
        for key in self._inflight:
            if matches_prefix(key, prefix):
                self._invalidated_inflight.add(key)
        logger.debug(f"Invalidated {count} queries matching {prefix!r}")
        return count

    def remove_queries(self, prefix: QueryKey) -> None:
        for key in [k for k in self._entries if matches_prefix(k, prefix)]:
            del self._entries[key]

    async def mutate(
        self,
        fn: Callable[[], Awaitable[T]],
        on_success: Callable[[T], None] | None = None,
        label: str = "Mutation",
    ) -> T:
        """Run a mutation and its success callback; errors propagate."""
        result = await self._run_with_retry(fn, self.mutation_retry, label)
        if on_success is not None:
            on_success(result)
        return result

    def clear(self) -> None:
        self._entries.clear()
        self._invalidated_inflight.clear()
