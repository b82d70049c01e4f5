"""Scheduler service - runs the recurring check-all cycle.

Each cycle loads the service list, probes every service concurrently, then
applies the results one by one (history, status, alerts). Cycles never
overlap: a timer tick that fires while a cycle is running is skipped, and
an on-demand check waits for the running cycle to finish before starting.
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..utils.timestamps import isoformat_z
from .checker import CheckResult
from .monitor import MonitorContext

logger = logging.getLogger(__name__)

STATUS_LOG_MINUTES = 1


class SchedulerService:
    """Service for scheduling and running periodic checks."""

    def __init__(self, context: MonitorContext, interval_seconds: Optional[int] = None):
        self.context = context
        self.interval_seconds = interval_seconds or context.settings.check_interval_seconds
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._cycle_lock = asyncio.Lock()

    def start(self):
        """Start the scheduler. The first cycle runs immediately."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()

        self.scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id="check_all_services",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(),
        )

        self.scheduler.add_job(
            self._log_statuses,
            trigger=IntervalTrigger(minutes=STATUS_LOG_MINUTES),
            id="log_statuses",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started (interval={self.interval_seconds}s)")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock.locked()

    async def check_now(self) -> List[CheckResult]:
        """Run one cycle on demand without touching the timer.

        If a cycle is already running this waits for it and then runs.
        """
        return await self.run_cycle()

    async def run_cycle(self) -> List[CheckResult]:
        async with self._cycle_lock:
            return await self._run_cycle()

    async def _tick(self) -> Optional[List[CheckResult]]:
        """Timer entry point; skips when the previous cycle is still running."""
        if self.cycle_in_progress:
            logger.warning("Previous check cycle still running, skipping this tick")
            return None
        try:
            return await self.run_cycle()
        except Exception as e:
            logger.error(f"Error running checks: {e}")
            return None

    async def _run_cycle(self) -> List[CheckResult]:
        ctx = self.context

        async with ctx.lock:
            specs = await ctx.services.list_specs()
        if not specs:
            logger.debug("No services to check")
            return []

        logger.info(f"Checking {len(specs)} services")
        results = await asyncio.gather(*[ctx.checker.check(spec) for spec in specs])

        async with ctx.lock:
            for result in results:
                try:
                    await ctx.record_result(result)
                except Exception as e:
                    logger.error(f"Error recording result for {result.name}: {type(e).__name__}: {e}")

        up_count = sum(1 for result in results if result.status == "up")
        logger.info(f"Check cycle complete: {up_count}/{len(results)} services up")
        return list(results)

    async def _log_statuses(self):
        statuses = self.context.store.snapshot()
        logger.info("=== CURRENT SERVICE STATUSES ===")
        for name, result in statuses.items():
            logger.info(f"{name}: {result.status} (last checked: {isoformat_z(result.observed_at)})")
