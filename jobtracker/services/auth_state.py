"""Client-side auth state with a stale-while-revalidate snapshot cache.

On the first check a persisted snapshot that is still inside the validity
window is served immediately and confirmed against the identity service in
the background. Otherwise the identity service is asked synchronously. The
decision itself is a pure function of the snapshot, the in-memory state and
the current time, see ``plan_auth_check``.
"""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

from pydantic import ValidationError

from jobtracker.core.config import settings
from jobtracker.core.exceptions import AuthenticationError
from jobtracker.schemas.auth import AuthStatus, Session, User
from jobtracker.services.auth_service import AuthService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotStore(Protocol):
    async def load(self) -> str | None: ...

    async def save(self, payload: str) -> None: ...

    async def clear(self) -> None: ...


@dataclass(frozen=True)
class AuthSnapshot:
    """Persisted copy of the auth state. ``last_fetch`` is epoch seconds."""

    user: User | None
    is_authenticated: bool
    last_fetch: float

    def to_json(self) -> str:
        return json.dumps(
            {
                "user": self.user.model_dump(by_alias=True) if self.user else None,
                "isAuthenticated": self.is_authenticated,
                "lastFetch": int(self.last_fetch * 1000),
            }
        )

    @classmethod
    def from_json(cls, payload: str) -> "AuthSnapshot":
        """Parse a stored snapshot; raises ValueError when it is malformed."""
        try:
            data = json.loads(payload)
            user = data.get("user")
            return cls(
                user=User.model_validate(user) if user else None,
                is_authenticated=bool(data["isAuthenticated"]),
                last_fetch=float(data["lastFetch"]) / 1000,
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise ValueError(f"Malformed auth snapshot: {e}") from e


class CheckPlan(str, Enum):
    """What an auth check should do."""

    SERVE_CACHED = "serve_cached"
    REUSE_STATE = "reuse_state"
    VERIFY_REMOTE = "verify_remote"


def snapshot_age(snapshot: AuthSnapshot, now: float) -> float:
    return now - snapshot.last_fetch


def is_within_window(last_fetch: float | None, now: float, window: float) -> bool:
    if last_fetch is None:
        return False
    return 0 <= now - last_fetch < window


def is_snapshot_fresh(
    snapshot: AuthSnapshot | None, now: float, window: float
) -> bool:
    """A snapshot is trusted only if authenticated, with a user, inside the window."""
    if snapshot is None or not snapshot.is_authenticated or snapshot.user is None:
        return False
    return 0 <= snapshot_age(snapshot, now) < window


def plan_auth_check(
    *,
    snapshot: AuthSnapshot | None,
    initialized: bool,
    authenticated: bool,
    last_fetch: float | None,
    force_refresh: bool,
    now: float,
    window: float,
) -> CheckPlan:
    if force_refresh:
        return CheckPlan.VERIFY_REMOTE
    if not initialized:
        if is_snapshot_fresh(snapshot, now, window):
            return CheckPlan.SERVE_CACHED
        return CheckPlan.VERIFY_REMOTE
    if authenticated and is_within_window(last_fetch, now, window):
        return CheckPlan.REUSE_STATE
    return CheckPlan.VERIFY_REMOTE


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    done: Callable[[T], bool],
    *,
    timeout: float,
    initial_delay: float,
    max_delay: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """Call ``fetch`` with exponential backoff until ``done`` or timeout.

    Returns the last fetched value, whether or not it satisfied ``done``.
    """
    deadline = clock() + timeout
    delay = initial_delay
    while True:
        value = await fetch()
        if done(value) or clock() >= deadline:
            return value
        await sleep(min(delay, max(deadline - clock(), 0)))
        delay = min(delay * 2 if delay else max_delay, max_delay)


class AuthState:
    """Auth state for the single supported account."""

    def __init__(
        self,
        auth_service: AuthService,
        store: SnapshotStore,
        *,
        window: float | None = None,
        revalidate_delay: float | None = None,
        confirm_timeout: float | None = None,
        confirm_initial_delay: float | None = None,
        confirm_max_delay: float | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.auth_service = auth_service
        self.store = store
        self.window = window if window is not None else settings.auth_cache_ttl_seconds
        self.revalidate_delay = (
            revalidate_delay
            if revalidate_delay is not None
            else settings.auth_revalidate_delay
        )
        self.confirm_timeout = (
            confirm_timeout
            if confirm_timeout is not None
            else settings.login_confirm_timeout
        )
        self.confirm_initial_delay = (
            confirm_initial_delay
            if confirm_initial_delay is not None
            else settings.login_confirm_initial_delay
        )
        self.confirm_max_delay = (
            confirm_max_delay
            if confirm_max_delay is not None
            else settings.login_confirm_max_delay
        )
        self._clock = clock
        self._sleep = sleep

        self.user: User | None = None
        self.is_authenticated = False
        self.is_loading = True
        self.is_authenticating = False
        self.last_fetch: float | None = None
        self.has_initialized = False
        self._revalidation: asyncio.Task | None = None

    @property
    def user_id(self) -> str:
        return self.auth_service.get_existing_user_id()

    def status(self) -> AuthStatus:
        return AuthStatus(
            authenticated=self.is_authenticated,
            is_loading=self.is_loading,
            is_authenticating=self.is_authenticating,
            user_id=self.user_id,
            user=self.user,
        )

    async def load_snapshot(self) -> AuthSnapshot | None:
        """Load the persisted snapshot, purging it when corrupt or expired."""
        payload = await self.store.load()
        if not payload:
            return None
        try:
            snapshot = AuthSnapshot.from_json(payload)
        except ValueError as e:
            logger.warning(f"Discarding cached auth data: {e}")
            await self.store.clear()
            return None
        if not is_within_window(snapshot.last_fetch, self._clock(), self.window):
            await self.store.clear()
            return None
        return snapshot

    async def _update(self, user: User | None, authenticated: bool) -> None:
        timestamp = self._clock()
        self.user = user
        self.is_authenticated = authenticated
        self.last_fetch = timestamp
        self.has_initialized = True

        if authenticated and user is not None:
            snapshot = AuthSnapshot(user, authenticated, timestamp)
            await self.store.save(snapshot.to_json())
        else:
            await self.store.clear()

    async def _reset(self) -> None:
        await self._update(None, False)

    async def check_auth(self, force_refresh: bool = False) -> None:
        """Decide whether the user is authenticated."""
        snapshot = None
        if not force_refresh and not self.has_initialized:
            snapshot = await self.load_snapshot()

        plan = plan_auth_check(
            snapshot=snapshot,
            initialized=self.has_initialized,
            authenticated=self.is_authenticated,
            last_fetch=self.last_fetch,
            force_refresh=force_refresh,
            now=self._clock(),
            window=self.window,
        )

        if plan is CheckPlan.SERVE_CACHED:
            self.user = snapshot.user
            self.is_authenticated = True
            self.last_fetch = snapshot.last_fetch
            self.has_initialized = True
            self.is_loading = False
            self._schedule_revalidation()
            return

        if plan is CheckPlan.REUSE_STATE:
            self.is_loading = False
            return

        if not self.has_initialized:
            self.is_loading = True
        try:
            current_user = await self.auth_service.get_current_user()
            if current_user is not None:
                await self._update(current_user, True)
            else:
                await self._reset()
        except Exception as e:
            logger.error(f"Auth check failed: {e}")
            await self._reset()
        finally:
            self.is_loading = False

    def _schedule_revalidation(self) -> None:
        if self._revalidation is not None and not self._revalidation.done():
            return
        self._revalidation = asyncio.create_task(self._revalidate())

    async def _revalidate(self) -> None:
        await self._sleep(self.revalidate_delay)
        try:
            current_user = await self.auth_service.get_current_user()
        except Exception as e:
            logger.warning(f"Background auth verification failed: {e}")
            current_user = None
        if current_user is None:
            logger.info("Cached session is no longer valid, clearing auth state")
            await self._reset()

    async def wait_for_revalidation(self) -> None:
        """Wait for a pending background verification, if any."""
        if self._revalidation is not None:
            await self._revalidation

    async def _confirm_session(self, signed_in: bool) -> User | None:
        return await poll_until(
            self.auth_service.get_current_user,
            lambda user: (user is not None) == signed_in,
            timeout=self.confirm_timeout,
            initial_delay=self.confirm_initial_delay,
            max_delay=self.confirm_max_delay,
            sleep=self._sleep,
        )

    async def login(self, email: str, password: str) -> Session:
        """Sign in, returning the session once the identity service confirms it.

        Raises AuthenticationError when the new session never shows up.
        """
        self.is_authenticating = True
        try:
            await self.store.clear()

            try:
                await self.auth_service.logout()
            except Exception as e:
                logger.warning(f"Pre-login logout failed: {e}")
            await self._confirm_session(signed_in=False)

            session = await self.auth_service.login(email, password)
            if session:
                current_user = await self._confirm_session(signed_in=True)
                if current_user is not None:
                    await self._update(current_user, True)
                    logger.info(f"User {current_user.id} logged in")
                    return session

            logger.warning("Login session was not confirmed by the identity service")
            await self._reset()
            raise AuthenticationError("Login session was not confirmed")
        except AuthenticationError:
            raise
        except Exception as e:
            logger.error(f"Login error: {e}")
            await self._reset()
            raise
        finally:
            self.is_authenticating = False

    async def logout(self) -> None:
        """Sign out; local state is cleared even when the remote call fails."""
        self.is_authenticating = True
        try:
            await self.auth_service.logout()
            logger.info("User logged out")
        except Exception as e:
            logger.error(f"Logout error: {e}")
        finally:
            await self._reset()
            self.is_authenticating = False

    async def refresh_user(self) -> None:
        await self.check_auth(force_refresh=True)

    async def close(self) -> None:
        """Cancel the background verification task."""
        if self._revalidation is not None and not self._revalidation.done():
            self._revalidation.cancel()
            try:
                await self._revalidation
            except asyncio.CancelledError:
                pass
        self._revalidation = None
