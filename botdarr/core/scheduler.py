"""
Periodic cache refresh and notification jobs.

One RefreshScheduler is built by the startup routine and shared by reference.
Each job purpose can only be registered once per scheduler.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Sequence

from apscheduler.job import Job  # type: ignore[import-untyped]
from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from .plugin_base import PluginBase

logger = logging.getLogger(__name__)

CACHE_REFRESH = "cache_refresh"
NOTIFICATION_SWEEP = "notification_sweep"

DEFAULT_CACHE_INTERVAL = timedelta(minutes=2)
DEFAULT_NOTIFICATION_INTERVAL = timedelta(hours=1)


class RefreshScheduler:
    """
    Runs the cache refresh and notification sweep on fixed intervals.
    A failing backend is logged and skipped; it never cancels the job.
    """

    def __init__(self,
                 cache_interval: timedelta = DEFAULT_CACHE_INTERVAL,
                 notification_interval: timedelta = DEFAULT_NOTIFICATION_INTERVAL,
                 scheduler: Optional[BackgroundScheduler] = None):
        self.cache_interval = cache_interval
        self.notification_interval = notification_interval
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    # --- Public API ---

    def start_cache_refresh(self, backends: Sequence[PluginBase]) -> Job:
        """
        Reloads every backend cache once, synchronously, then schedules a
        reload of every cache each cache_interval. Calling it again is a no-op.
        """
        with self._lock:
            if CACHE_REFRESH in self._jobs:
                logger.debug("Cache refresh already started, ignoring")
                return self._jobs[CACHE_REFRESH]

            logger.info(f"Populating caches for {len(backends)} backends...")
            self._reload_all(backends)
            return self._register(CACHE_REFRESH, lambda: self._reload_all(backends), self.cache_interval)

    def start_notification_sweep(self, backends: Sequence[PluginBase], notifier) -> Job:
        """
        Schedules each backend's periodic notifications every
        notification_interval. Calling it again is a no-op.
        """
        with self._lock:
            if NOTIFICATION_SWEEP in self._jobs:
                logger.debug("Notification sweep already started, ignoring")
                return self._jobs[NOTIFICATION_SWEEP]

            return self._register(
                NOTIFICATION_SWEEP, lambda: self._notify_all(backends, notifier), self.notification_interval
            )

    def is_started(self, purpose: str) -> bool:
        return purpose in self._jobs

    def cancel(self, purpose: str):
        """Removes a registered job. The purpose can be registered again afterwards."""
        with self._lock:
            job = self._jobs.pop(purpose, None)
            if job is None:
                logger.warning(f"No '{purpose}' job to cancel")
                return
            job.remove()
            logger.info(f"Cancelled '{purpose}' job")

    def shutdown(self, wait: bool = True):
        with self._lock:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=wait)
            self._jobs.clear()
        logger.info("Scheduler stopped")

    # --- Ticks ---

    def _reload_all(self, backends: Sequence[PluginBase]):
        for backend in backends:
            try:
                count = backend.cache.reload()
                logger.debug(f"Cached {count} entries for {backend.get_name()}")
            except Exception as e:
                logger.error(f"Error during cache reload of {backend.get_name()}: {e}", exc_info=True)

    def _notify_all(self, backends: Sequence[PluginBase], notifier):
        for backend in backends:
            try:
                backend.send_periodic_notifications(notifier)
            except Exception as e:
                logger.error(f"Error during notifications of {backend.get_name()}: {e}", exc_info=True)

    # --- Helpers ---

    def _register(self, purpose: str, tick: Callable[[], None], interval: timedelta) -> Job:
        if not self._scheduler.running:
            self._scheduler.start()

        job = self._scheduler.add_job(
            tick,
            trigger=IntervalTrigger(seconds=interval.total_seconds()),
            id=purpose,
            name=purpose,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._jobs[purpose] = job
        logger.info(f"Scheduled '{purpose}' every {interval}")
        return job
