"""
Self-rescheduling periodic jobs.

Each PeriodicJob runs its handler, waits for it to settle (success or handled
failure) and only then arms the next run, so a job never overlaps itself.
Cancelling a job never interrupts a handler that is already running; it only
prevents the next run.

This is a pure asyncio primitive with no HA or network dependencies.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

_LOGGER = logging.getLogger(__name__)

JobHandler = Callable[[], Awaitable[None]]
ErrorHandler = Callable[[str, Exception], Awaitable[None]]
TaskFactory = Callable[[Coroutine[Any, Any, Any], str], asyncio.Task]


def default_task_factory(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
    """Create a plain task on the running loop."""
    return asyncio.get_running_loop().create_task(coro, name=name)


class JobState(enum.Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    CANCELLED = "cancelled"


class PeriodicJob:
    """A single named job with its own timer chain."""

    def __init__(
        self,
        name: str,
        interval: float,
        handler: JobHandler,
        on_error: ErrorHandler,
        may_reschedule: Callable[[], bool] = lambda: True,
        task_factory: TaskFactory = default_task_factory,
    ) -> None:
        self.name = name
        self.interval = interval
        self._handler = handler
        self._on_error = on_error
        self._may_reschedule = may_reschedule
        self._task_factory = task_factory
        self._task: asyncio.Task | None = None
        self._next_delay: float | None = None
        self.state = JobState.IDLE

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def start(self, run_now: bool = False) -> None:
        """Arm the job; run_now executes the handler immediately instead of after one interval."""
        if self.interval <= 0:
            _LOGGER.debug("Job %s disabled (interval %s)", self.name, self.interval)
            return
        self._arm(0 if run_now else self.interval)

    def run_soon(self, delay: float) -> None:
        """
        Bring the next run forward to `delay` seconds from now.

        If the handler is currently running, the shortened delay applies to the
        run after it settles.
        """
        if self.state == JobState.SCHEDULED:
            self._task.cancel()
            self._arm(delay)
        elif self.state == JobState.RUNNING:
            self._next_delay = delay

    def cancel(self) -> None:
        """Prevent any further runs. A running handler is left to finish."""
        if self.state == JobState.SCHEDULED and self._task is not None:
            self._task.cancel()
        self.state = JobState.CANCELLED

    def _arm(self, delay: float) -> None:
        self.state = JobState.SCHEDULED
        self._task = self._task_factory(self._run(delay), f"job_{self.name}")

    async def _run(self, delay: float) -> None:
        while True:
            await asyncio.sleep(delay)
            if self.state == JobState.CANCELLED:
                return
            self.state = JobState.RUNNING
            try:
                await self._handler()
            except Exception as exc:  # noqa: BLE001
                try:
                    await self._on_error(self.name, exc)
                except Exception:  # noqa: BLE001
                    _LOGGER.exception("Error handler for job %s failed", self.name)

            if self.state == JobState.CANCELLED or not self._may_reschedule():
                self.state = JobState.CANCELLED
                return
            delay = self.interval if self._next_delay is None else self._next_delay
            self._next_delay = None
            self.state = JobState.SCHEDULED


class JobScheduler:
    """
    Owns the set of periodic jobs of one coordinator.

    scheduling_enabled is the "stop scheduling" switch: while it is False no job
    arms its next run, which keeps stray timers from surviving a reconnect.
    """

    def __init__(self, task_factory: TaskFactory = default_task_factory) -> None:
        self._jobs: dict[str, PeriodicJob] = {}
        self._task_factory = task_factory
        self.scheduling_enabled = False

    @property
    def jobs(self) -> dict[str, PeriodicJob]:
        return dict(self._jobs)

    def add(self, name: str, interval: float, handler: JobHandler, on_error: ErrorHandler,
            run_now: bool = False) -> PeriodicJob:
        """Register and start a job, replacing (and cancelling) any job of the same name."""
        previous = self._jobs.pop(name, None)
        if previous is not None:
            previous.cancel()
        job = PeriodicJob(name, interval, handler, on_error, lambda: self.scheduling_enabled,
                          task_factory=self._task_factory)
        self._jobs[name] = job
        job.start(run_now)
        return job

    def run_soon(self, name: str, delay: float) -> None:
        job = self._jobs.get(name)
        if job is not None and self.scheduling_enabled:
            job.run_soon(delay)

    def stop(self) -> None:
        """Disable scheduling and cancel every job."""
        self.scheduling_enabled = False
        for job in self._jobs.values():
            job.cancel()
        self._jobs.clear()

    async def shutdown(self) -> None:
        """Stop all jobs and wait for their tasks to unwind."""
        current = asyncio.current_task()
        tasks = [
            job.task for job in self._jobs.values()
            if job.task is not None and job.task is not current
        ]
        self.stop()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
