from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

from ..activity.policy import EvictionPolicy
from ..activity.repository import ActivityFeedRepository
from ..common.datetime_utils import isoformat_or_none, now_local
from ..core.constants import DAILY_CLEANUP_JOB, DEFAULT_MANUAL_CLEANUP_TIMEOUT_SECONDS, WEEKLY_CLEANUP_JOB
from ..core.enums import ChangeKind
from ..core.exceptions import CleanupTimeoutError
from ..sync.broadcaster import SyncBroadcaster
from .triggers import DailyTrigger, WeeklyTrigger

logger = logging.getLogger(__name__)

Trigger = Union[DailyTrigger, WeeklyTrigger]

# Upper bound on one sleep so wall-clock jumps are noticed within a minute.
MAX_SLEEP_SECONDS = 60.0


@dataclass(frozen=True)
class CleanupResult:
    job: str
    deleted_count: int
    started_at: datetime
    finished_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job,
            "deletedCount": self.deleted_count,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat(),
        }


class CleanupJob:
    """One periodic cleanup with its own timer thread.

    Runs (scheduled or manual) are serialized; a failed scheduled run is logged and the
    job keeps its schedule.
    """

    def __init__(
        self,
        name: str,
        trigger: Trigger,
        action: Callable[[], int],
        *,
        clock: Callable[[], datetime],
        on_deleted: Optional[Callable[[str, int], None]] = None,
        max_sleep: float = MAX_SLEEP_SECONDS,
    ):
        self.name = name
        self.trigger = trigger
        self._action = action
        self._clock = clock
        self._on_deleted = on_deleted
        self._max_sleep = float(max_sleep)

        self._run_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._running = False
        self._next_run: Optional[datetime] = None
        self._last_run: Optional[datetime] = None
        self._last_deleted: Optional[int] = None
        self._last_error: Optional[str] = None

    @property
    def scheduled(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def run(self) -> CleanupResult:
        with self._run_lock:
            started = self._clock()
            with self._state_lock:
                self._running = True
            try:
                deleted = int(self._action())
            except Exception as exc:
                with self._state_lock:
                    self._last_run = started
                    self._last_error = str(exc)
                raise
            finally:
                with self._state_lock:
                    self._running = False

            finished = self._clock()
            with self._state_lock:
                self._last_run = started
                self._last_deleted = deleted
                self._last_error = None

        logger.info("%s deleted %s activity records", self.name, deleted)
        if deleted and self._on_deleted:
            self._on_deleted(self.name, deleted)
        return CleanupResult(job=self.name, deleted_count=deleted, started_at=started, finished_at=finished)

    def fire(self) -> None:
        logger.info("Running scheduled %s", self.name)
        try:
            self.run()
        except Exception:
            logger.exception("Scheduled %s failed, will retry at next fire time", self.name)

    def start(self) -> None:
        if self.scheduled:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, args=(self._stop,), name=self.name, daemon=True)
        self._thread.start()
        logger.info("Scheduled %s (%s)", self.name, self.trigger.describe())

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("%s still finishing a run after %ss", self.name, timeout)
        with self._state_lock:
            self._next_run = None
        logger.info("Stopped %s", self.name)

    def _loop(self, stop: threading.Event) -> None:
        next_run = self.trigger.next_after(self._clock())
        with self._state_lock:
            self._next_run = next_run

        while not stop.is_set():
            now = self._clock()
            if now >= next_run:
                self.fire()
                next_run = self.trigger.next_after(self._clock())
                with self._state_lock:
                    self._next_run = next_run
                continue
            stop.wait(min((next_run - now).total_seconds(), self._max_sleep))

    def status(self) -> Dict[str, Any]:
        with self._state_lock:
            return {
                "name": self.name,
                "schedule": self.trigger.describe(),
                "scheduled": self.scheduled,
                "running": self._running,
                "lastDate": isoformat_or_none(self._last_run),
                "nextDate": isoformat_or_none(self._next_run) if self.scheduled else None,
                "lastDeletedCount": self._last_deleted,
                "lastError": self._last_error,
            }


class EvictionScheduler:
    """Daily full wipe and weekly age sweep of the activity feed.

    Together with the per-entry TTL these are three overlapping eviction paths driven by
    one EvictionPolicy. The daily job deletes every row, not just rows older than the
    retention window.
    """

    def __init__(
        self,
        feed: ActivityFeedRepository,
        *,
        policy: EvictionPolicy | None = None,
        daily_trigger: DailyTrigger | None = None,
        weekly_trigger: WeeklyTrigger | None = None,
        timezone: str = "Asia/Kolkata",
        broadcaster: Optional[SyncBroadcaster] = None,
        manual_timeout: float = DEFAULT_MANUAL_CLEANUP_TIMEOUT_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
        store_clock: Callable[[], datetime] = now_local,
    ):
        self._feed = feed
        self._policy = policy or EvictionPolicy()
        self._broadcaster = broadcaster
        self._manual_timeout = float(manual_timeout)
        self._store_clock = store_clock

        tz = ZoneInfo(timezone)
        job_clock = clock or (lambda: datetime.now(tz))

        self._daily = CleanupJob(
            DAILY_CLEANUP_JOB,
            daily_trigger or DailyTrigger(0, 0),
            self._delete_all,
            clock=job_clock,
            on_deleted=self._announce,
        )
        self._weekly = CleanupJob(
            WEEKLY_CLEANUP_JOB,
            weekly_trigger or WeeklyTrigger(6, 2, 0),
            self._delete_older_than_week,
            clock=job_clock,
            on_deleted=self._announce,
        )
        self._jobs: List[CleanupJob] = [self._daily, self._weekly]
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="manual-cleanup")

    @property
    def jobs(self) -> List[CleanupJob]:
        return list(self._jobs)

    def _delete_all(self) -> int:
        return self._feed.delete_all()

    def _delete_older_than_week(self) -> int:
        return self._feed.delete_older_than(self._policy.weekly_cutoff(self._store_clock()))

    def _announce(self, job: str, deleted: int) -> None:
        if self._broadcaster:
            self._broadcaster.notify(ChangeKind.EVICTION, job=job, deleted=deleted)

    def run_daily_cleanup(self) -> CleanupResult:
        logger.info("Running manual daily cleanup")
        return self._run_manual(self._daily)

    def run_weekly_cleanup(self) -> CleanupResult:
        logger.info("Running manual weekly cleanup")
        return self._run_manual(self._weekly)

    def _run_manual(self, job: CleanupJob) -> CleanupResult:
        future = self._executor.submit(job.run)
        try:
            return future.result(timeout=self._manual_timeout)
        except FutureTimeout:
            logger.error("Manual %s did not finish within %ss", job.name, self._manual_timeout)
            raise CleanupTimeoutError(
                f"{job.name} did not finish within {self._manual_timeout:g}s; it may still complete in the background"
            ) from None

    def get_status(self) -> List[Dict[str, Any]]:
        return [job.status() for job in self._jobs]

    def start_all(self) -> None:
        logger.info("Starting all scheduled tasks")
        for job in self._jobs:
            job.start()

    def stop_all(self, timeout: Optional[float] = None) -> None:
        """Stop every timer; waits for an in-flight run to finish before returning."""

        logger.info("Stopping all scheduled tasks")
        for job in self._jobs:
            job.stop(timeout)

    def shutdown(self) -> None:
        self.stop_all()
        self._executor.shutdown(wait=True)
