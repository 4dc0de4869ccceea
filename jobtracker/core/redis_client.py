"""Redis client for the auth snapshot and browser session tokens."""

import logging
import secrets

from redis.asyncio import Redis
from redis.exceptions import RedisError

from jobtracker.core.config import settings

logger = logging.getLogger(__name__)

# Async Redis client
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """Get or create async Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class AuthSnapshotStore:
    """Single serialized auth snapshot with TTL expiration.

    Storage failures are logged and reported as a missing snapshot; the
    caller then falls back to a remote check.
    """

    PREFIX = "jobtracker:auth_snapshot:"

    def __init__(
        self,
        redis: Redis | None = None,
        project_id: str | None = None,
        ttl_seconds: int | None = None,
    ):
        self._redis = redis
        self.key = f"{self.PREFIX}{project_id or settings.appwrite_project_id}"
        self.ttl_seconds = ttl_seconds or settings.auth_cache_ttl_seconds

    async def _client(self) -> Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def load(self) -> str | None:
        """Return the raw serialized snapshot, if any."""
        try:
            redis = await self._client()
            return await redis.get(self.key)
        except RedisError as e:
            logger.error(f"Failed to load cached auth data: {e}")
            return None

    async def save(self, payload: str) -> None:
        """Store the serialized snapshot for the validity window."""
        try:
            redis = await self._client()
            await redis.setex(self.key, self.ttl_seconds, payload)
            logger.debug(f"Stored auth snapshot (TTL: {self.ttl_seconds}s)")
        except RedisError as e:
            logger.error(f"Failed to cache auth data: {e}")

    async def clear(self) -> None:
        """Delete the snapshot."""
        try:
            redis = await self._client()
            await redis.delete(self.key)
            logger.debug("Deleted auth snapshot")
        except RedisError as e:
            logger.error(f"Failed to clear cached auth data: {e}")


class BrowserSessionStore:
    """Opaque session tokens handed to the browser after login.

    A token is valid while its key exists. Lookup failures count as an
    invalid token, so a Redis outage signs callers out instead of in.
    """

    PREFIX = "jobtracker:browser_session:"

    def __init__(self, redis: Redis | None = None, ttl_seconds: int | None = None):
        self._redis = redis
        self.ttl_seconds = ttl_seconds or settings.session_ttl_seconds

    async def _client(self) -> Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def issue(self, user_id: str) -> str:
        """Create a token bound to ``user_id``."""
        token = secrets.token_urlsafe(32)
        redis = await self._client()
        await redis.setex(f"{self.PREFIX}{token}", self.ttl_seconds, user_id)
        logger.debug(f"Issued browser session (TTL: {self.ttl_seconds}s)")
        return token

    async def is_valid(self, token: str | None) -> bool:
        if not token:
            return False
        try:
            redis = await self._client()
            return await redis.exists(f"{self.PREFIX}{token}") > 0
        except RedisError as e:
            logger.error(f"Failed to look up browser session: {e}")
            return False

    async def revoke(self, token: str | None) -> None:
        if not token:
            return
        try:
            redis = await self._client()
            await redis.delete(f"{self.PREFIX}{token}")
            logger.debug("Revoked browser session")
        except RedisError as e:
            logger.error(f"Failed to revoke browser session: {e}")
