# app/services/scheduler.py
from __future__ import annotations

import asyncio
import logging
from datetime import date as date_type, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.schemas.materialization import CycleSummary, SchedulerStatus
from app.services.materialization_cycle import run_materialization_cycle

logger = logging.getLogger(__name__)

DAILY_JOB_ID = "materialize_recurring_meetings_daily"
STARTUP_JOB_ID = "materialize_recurring_meetings_startup"


class MaterializationScheduler:
    """
    Owns the timer that triggers materialization cycles.

    - Runs one cycle daily at SCHEDULER_CRON_HOUR:SCHEDULER_CRON_MINUTE
      (server local time) and one catch-up cycle shortly after start.
    - At most one cycle runs at a time: a trigger that fires while a cycle is
      still in progress is skipped, not queued.
    - `stop()` asks the running cycle to finish the meeting it is creating
      and not start any further dates, then shuts the timer down.

    The scheduler holds no materialization state of its own beyond the last
    cycle summary kept for status reporting.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self._lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._scheduler: AsyncIOScheduler | None = None
        self.last_cycle: CycleSummary | None = None

    @property
    def is_running_cycle(self) -> bool:
        return self._lock.locked()

    @property
    def is_started(self) -> bool:
        return self._scheduler is not None

    async def run_once(
        self,
        reference_date: date_type | datetime | None = None,
        lookahead_days: int | None = None,
    ) -> CycleSummary | None:
        """
        Run one materialization cycle unless another one is in progress.

        Returns
        -------
        CycleSummary | None
            The cycle summary, or None if the call was skipped because a
            cycle was already running or the scheduler is stopping.
        """
        if self._lock.locked():
            logger.warning(
                "[MeetingScheduler] Previous cycle still running, skipping this trigger"
            )
            return None
        if self._stop_event.is_set():
            logger.info("[MeetingScheduler] Scheduler is stopping, skipping this trigger")
            return None

        async with self._lock:
            summary = await run_materialization_cycle(
                self.session_factory,
                reference_date=reference_date,
                lookahead_days=lookahead_days,
                stop_event=self._stop_event,
                concurrency=self.settings.MATERIALIZATION_CONCURRENCY,
            )
            self.last_cycle = summary
            return summary

    async def _scheduled_run(self) -> None:
        logger.info("[MeetingScheduler] Cron job triggered")
        await self.run_once()

    def start(self) -> None:
        """
        Register the daily and startup jobs and start the timer.

        Must be called from within a running event loop.
        """
        if self._scheduler is not None:
            logger.warning("[MeetingScheduler] Scheduler already running")
            return

        self._stop_event.clear()
        scheduler = AsyncIOScheduler()

        scheduler.add_job(
            self._scheduled_run,
            CronTrigger(
                hour=self.settings.SCHEDULER_CRON_HOUR,
                minute=self.settings.SCHEDULER_CRON_MINUTE,
            ),
            id=DAILY_JOB_ID,
            name="Materialize recurring meetings (daily)",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        # Catch up on anything missed while the process was down.
        scheduler.add_job(
            self._scheduled_run,
            DateTrigger(
                run_date=datetime.now()
                + timedelta(seconds=self.settings.SCHEDULER_STARTUP_DELAY_SECONDS)
            ),
            id=STARTUP_JOB_ID,
            name="Materialize recurring meetings (startup)",
            replace_existing=True,
            max_instances=1,
        )

        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            f"[MeetingScheduler] Cron job initialized - will run daily at "
            f"{self.settings.SCHEDULER_CRON_HOUR:02d}:{self.settings.SCHEDULER_CRON_MINUTE:02d}"
        )

    async def stop(self) -> None:
        """
        Signal the running cycle to stop and shut down the timer.

        Waits for the in-flight cycle to reach a safe point (between dates).
        """
        self._stop_event.set()

        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        if self._lock.locked():
            logger.info("[MeetingScheduler] Waiting for the running cycle to stop...")
            async with self._lock:
                pass

        logger.info("[MeetingScheduler] Scheduler stopped")

    def next_run_time(self) -> datetime | None:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(DAILY_JOB_ID)
        if job is None:
            return None
        return job.next_run_time

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            enabled=self.settings.SCHEDULER_ENABLED,
            running=self.is_running_cycle,
            next_run_time=self.next_run_time(),
            last_cycle=self.last_cycle,
        )
