"""Periodic background jobs on the engine's event loop.

Each registered :class:`CronJob` gets its own asyncio task. Runs are spaced
``period`` seconds apart measured from the start of the previous run, so a
slow run does not push the schedule back. A failing run is logged and the
schedule continues.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from wallet_auth.metrics.collector import EngineMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CronJob:
    """A recurring background job."""

    handler: Callable[[], Awaitable[None]]
    period: float  # seconds
    name: str = ""
    run_at_start: bool = False


@dataclass
class JobStats:
    runs: int = 0
    failures: int = 0
    last_run: float | None = None


class TaskManager:
    """Runs the registered cron jobs until stopped.

    Usage::

        tm = TaskManager(metrics=engine_metrics)
        tm.register("nonce_sweep", CronJob(handler=..., period=60))
        await tm.start()
        ...
        await tm.stop()
    """

    def __init__(self, *, metrics: EngineMetrics | None = None) -> None:
        self._jobs: dict[str, CronJob] = {}
        self._stats: dict[str, JobStats] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._running = False
        self._metrics = metrics

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def jobs(self) -> dict[str, CronJob]:
        """Registered jobs by name."""
        return dict(self._jobs)

    def stats(self, name: str) -> JobStats:
        """Run counters for a registered job.

        Raises:
            KeyError: If no job is registered under *name*.
        """
        return self._stats[name]

    def register(self, name: str, job: CronJob) -> None:
        """Register *job* under *name*, starting it at once if already running."""
        if job.period <= 0:
            msg = f"cron job {name!r} needs a positive period"
            raise ValueError(msg)
        job = CronJob(
            handler=job.handler, period=job.period, name=name, run_at_start=job.run_at_start
        )
        self._jobs[name] = job
        self._stats.setdefault(name, JobStats())
        if self._running:
            self._spawn(job)

    async def start(self) -> None:
        """Start every registered job. A second call is a no-op."""
        if self._running:
            return
        self._running = True
        for job in self._jobs.values():
            self._spawn(job)
        logger.info("TaskManager started with %d jobs", len(self._jobs))

    async def stop(self) -> None:
        """Cancel all jobs and wait for them to finish."""
        if not self._running:
            return
        self._running = False
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("TaskManager stopped")

    async def run_once(self, name: str) -> bool:
        """Run a registered job now, outside its schedule.

        Returns:
            True if the run completed without raising.

        Raises:
            KeyError: If no job is registered under *name*.
        """
        return await self._execute(self._jobs[name])

    def _spawn(self, job: CronJob) -> None:
        previous = self._tasks.pop(job.name, None)
        if previous is not None:
            previous.cancel()
        self._tasks[job.name] = asyncio.create_task(self._run_loop(job), name=f"cron:{job.name}")

    async def _execute(self, job: CronJob) -> bool:
        stats = self._stats[job.name]
        stats.runs += 1
        stats.last_run = time.time()
        try:
            if self._metrics is not None:
                with self._metrics.track_cron(job.name):
                    await job.handler()
            else:
                await job.handler()
        except Exception:
            stats.failures += 1
            logger.exception("Cron job %r failed", job.name)
            return False
        return True

    async def _run_loop(self, job: CronJob) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time() if job.run_at_start else loop.time() + job.period
        while True:
            await asyncio.sleep(max(0.0, next_run - loop.time()))
            next_run = loop.time() + job.period
            await self._execute(job)
