"""Connectivity monitoring with online/offline toasts."""

import logging
from collections.abc import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from jobtracker.core.config import settings
from jobtracker.services.notifications import Notifier

logger = logging.getLogger(__name__)

OFFLINE_INDICATOR = "No internet connection"
OFFLINE_MESSAGE = "You are offline, some content won't be visible"
ONLINE_MESSAGE = "You're back online!"

PROBE_JOB_ID = "connectivity_probe"


class ConnectivityMonitor:
    """Tracks whether the backend is reachable.

    Going offline posts one error toast per offline period; coming back
    online always posts a success toast.
    """

    def __init__(
        self,
        notifier: Notifier,
        probe: Callable[[], Awaitable[bool]],
        interval_seconds: int | None = None,
    ):
        self.notifier = notifier
        self.probe = probe
        self.interval_seconds = (
            interval_seconds or settings.connectivity_probe_interval_seconds
        )
        self._online: bool | None = None
        self._has_shown_offline_toast = False
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def is_online(self) -> bool:
        return self._online is not False

    @property
    def indicator(self) -> str | None:
        return None if self.is_online else OFFLINE_INDICATOR

    def set_online(self, online: bool) -> None:
        previous = self._online
        self._online = online

        if online:
            if previous is False:
                self._has_shown_offline_toast = False
                self.notifier.success(ONLINE_MESSAGE)
                logger.info("Connectivity restored")
            return

        if not self._has_shown_offline_toast:
            self.notifier.error(OFFLINE_MESSAGE)
            self._has_shown_offline_toast = True
        if previous is not False:
            logger.warning("Backend unreachable, switching to offline mode")

    async def check(self) -> bool:
        try:
            online = await self.probe()
        except Exception as e:
            logger.warning(f"Connectivity probe failed: {e}")
            online = False
        self.set_online(online)
        return online

    async def start(self) -> None:
        """Probe once, then on a fixed interval."""
        if self._scheduler is not None and self._scheduler.running:
            logger.info("Connectivity monitor already running")
            return
        await self.check()
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.check,
            "interval",
            seconds=self.interval_seconds,
            id=PROBE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            f"Connectivity monitor started (every {self.interval_seconds}s)"
        )

    async def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Connectivity monitor stopped")
        self._scheduler = None

    def get_status(self) -> dict:
        return {
            "online": self.is_online,
            "indicator": self.indicator,
            "monitor_running": bool(self._scheduler and self._scheduler.running),
        }
