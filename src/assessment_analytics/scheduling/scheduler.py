"""
Scheduler - Runs named periodic jobs as async background tasks.

Each job runs on its own task and repeats every interval until the
scheduler stops. Used for:
- Cache cleanup (expired entry sweep)
- Market alert regeneration
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ScheduledJob:
    """A registered job and its run status."""

    name: str
    interval_minutes: float
    fn: Callable[[], Any]

    running: bool = False
    run_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0
    last_started_at: Optional[datetime] = None
    last_finished_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60


class Scheduler:
    """
    Manages periodic background jobs.

    Jobs are isolated: a failing run is logged and counted, and the job
    runs again at its next interval. A run never overlaps a still-running
    invocation of the same job.

    Usage:
        scheduler = Scheduler()
        scheduler.add_job("cache-cleanup", 60, cache.sweep_expired)
        scheduler.add_job("market-alerts", 720, alert_generator.regenerate)
        await scheduler.start()
        # ... service runs ...
        await scheduler.stop()
    """

    def __init__(self, error_pause_seconds: float = 5.0) -> None:
        """
        Initialize the scheduler.

        Args:
            error_pause_seconds: Pause after an unexpected loop error
        """
        self._jobs: Dict[str, ScheduledJob] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._error_pause_seconds = error_pause_seconds

        self._running = False
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def is_running(self) -> bool:
        """Whether the scheduler is running."""
        return self._running

    @property
    def jobs(self) -> List[ScheduledJob]:
        """Registered jobs, in registration order."""
        return list(self._jobs.values())

    def get_job(self, name: str) -> Optional[ScheduledJob]:
        """Look up a job by name."""
        return self._jobs.get(name)

    def add_job(
        self,
        name: str,
        interval_minutes: float,
        fn: Callable[[], Any],
    ) -> ScheduledJob:
        """
        Register a periodic job.

        If the scheduler is already running the job starts immediately.

        Args:
            name: Unique job name
            interval_minutes: Minutes between runs (fractions allowed)
            fn: Coroutine function or plain callable taking no arguments

        Returns:
            The registered job

        Raises:
            ValueError: If the name is taken or the interval is not positive
        """
        if name in self._jobs:
            raise ValueError(f"Job already registered: {name}")
        if interval_minutes <= 0:
            raise ValueError(f"Job interval must be positive, got {interval_minutes}")

        job = ScheduledJob(name=name, interval_minutes=interval_minutes, fn=fn)
        self._jobs[name] = job
        logger.info(f"Registered job {name} (interval={interval_minutes}m)")

        if self._running:
            self._start_job(job)

        return job

    async def start(self) -> None:
        """Start all registered jobs."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting scheduler...")
        self._running = True
        self._stop_event = asyncio.Event()

        for job in self._jobs.values():
            self._start_job(job)

        logger.info(f"Scheduler started: {len(self._tasks)} jobs")

    async def stop(self) -> None:
        """Stop all jobs gracefully."""
        if not self._running:
            return

        logger.info("Stopping scheduler...")
        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()

        tasks = list(self._tasks.values())
        for task in tasks:
            if not task.done():
                task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._tasks.clear()
        logger.info("Scheduler stopped")

    async def run_now(self, name: str) -> bool:
        """
        Run a job immediately, outside its interval.

        Returns:
            True if the job ran, False if skipped because it was running

        Raises:
            KeyError: If no job has that name
        """
        return await self._run_job(self._jobs[name])

    def _start_job(self, job: ScheduledJob) -> None:
        task = asyncio.create_task(self._job_loop(job), name=f"job:{job.name}")
        self._tasks[job.name] = task
        logger.info(f"Started job {job.name} (interval={job.interval_seconds}s)")

    async def _job_loop(self, job: ScheduledJob) -> None:
        """Run one job every interval until stopped."""
        while self._running:
            try:
                # Wait for interval or stop
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=job.interval_seconds,
                    )
                    break  # Stop requested
                except asyncio.TimeoutError:
                    pass

                if not self._running:
                    break

                await self._run_job(job)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in job loop {job.name}: {e}")
                await asyncio.sleep(self._error_pause_seconds)

    async def _run_job(self, job: ScheduledJob) -> bool:
        """Run a job once under its overlap guard. Failures are logged, not raised."""
        if job.running:
            job.skipped_count += 1
            logger.warning(f"Job {job.name} still running, skipping this run")
            return False

        job.running = True
        job.last_started_at = datetime.now(timezone.utc)
        logger.debug(f"Running job {job.name}...")

        try:
            result = job.fn()
            if inspect.isawaitable(result):
                await result
            job.last_error = None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            job.failure_count += 1
            job.last_error = str(e)
            logger.error(f"Job {job.name} failed: {e}", exc_info=True)
        finally:
            job.running = False
            job.run_count += 1
            job.last_finished_at = datetime.now(timezone.utc)

        return True
