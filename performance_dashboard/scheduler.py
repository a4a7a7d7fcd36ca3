"""
Timer-driven refresh for running dashboard sessions.

Wires config.refresh_intervals (milliseconds) to controller jobs on a
private schedule.Scheduler polled from a single daemon thread. One scheduler
serves every session of a server process: sessions attach their controller,
and controllers are held by weak reference, so a session that goes away
stops being refreshed once its controller is garbage collected.
"""

import logging
import threading
import weakref

import schedule

from .config import DashboardConfig
from .dashboard import DashboardController

logger = logging.getLogger(__name__)

# interval name -> controller method run for every attached session
REFRESH_JOBS = {
    "metrics": "refresh",
    "tnps": "reload_surveys",
}


class RefreshScheduler:
    """Runs periodic refresh jobs for the attached controllers.

    Interval names without a job are ignored with a warning.
    """

    def __init__(self, config: DashboardConfig, poll_seconds: float = 1.0):
        self.config = config
        self.poll_seconds = poll_seconds
        self.scheduler = schedule.Scheduler()
        self.stop_event = threading.Event()
        self.thread: threading.Thread | None = None
        self.is_running = False
        self._controllers: weakref.WeakSet = weakref.WeakSet()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def attach(self, controller: DashboardController) -> None:
        with self._lock:
            self._controllers.add(controller)
        logger.info("Attached session for %s (%d active)", controller.user.name, len(self._controllers))

    def detach(self, controller: DashboardController) -> None:
        with self._lock:
            self._controllers.discard(controller)

    @property
    def controllers(self) -> list[DashboardController]:
        with self._lock:
            return list(self._controllers)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    def _run_job(self, name: str) -> None:
        method = REFRESH_JOBS[name]
        for controller in self.controllers:
            try:
                getattr(controller, method)()
            except Exception:
                logger.exception("Scheduled %s refresh failed for %s", name, controller.user.name)

    def register_jobs(self) -> list[schedule.Job]:
        """Schedule one job per configured interval; returns the jobs."""
        self.scheduler.clear()
        registered = []
        for name, interval_ms in self.config.refresh_intervals.items():
            if name not in REFRESH_JOBS:
                logger.warning("No refresh job for interval '%s'", name)
                continue
            seconds = max(1, int(interval_ms) // 1000)
            job = self.scheduler.every(seconds).seconds.do(self._run_job, name)
            registered.append(job)
            logger.info("Scheduled %s refresh every %ds", name, seconds)
        return registered

    # ------------------------------------------------------------------
    # Thread
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Start the polling thread. No-op when real-time sync is disabled."""
        if self.is_running:
            logger.warning("Refresh scheduler is already running")
            return False
        if not self.config.features.real_time_sync:
            logger.info("Real-time sync disabled; refresh scheduler not started")
            return False

        self.register_jobs()
        self.stop_event.clear()
        self.is_running = True
        self.thread = threading.Thread(target=self._loop, name="refresh-scheduler", daemon=True)
        self.thread.start()
        logger.info("Refresh scheduler started")
        return True

    def stop(self) -> None:
        if not self.is_running:
            return
        self.is_running = False
        self.stop_event.set()
        if self.thread:
            self.thread.join(timeout=10)
        self.scheduler.clear()
        logger.info("Refresh scheduler stopped")

    def run_pending(self) -> None:
        self.scheduler.run_pending()

    def _loop(self) -> None:
        while not self.stop_event.is_set():
            self.run_pending()
            self.stop_event.wait(self.poll_seconds)
