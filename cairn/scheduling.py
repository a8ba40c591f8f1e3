"""Task runner contracts and an asyncio-based periodic scheduler.

Providers never loop themselves: they hand a :class:`TaskInvocation` to a
:class:`TaskRunner` when connected, and the runner decides when and how often
the callable executes.

Usage
-----
Run a provider refresh every 30 minutes::

    scheduler = AsyncioTaskScheduler()
    runner = scheduler.create_scheduled_task_runner(
        ScheduleSpec(
            frequency=dt.timedelta(minutes=30), timeout=dt.timedelta(minutes=3)
        )
    )
    await provider.connect(connection)  # registers with ``runner``
    ...
    await scheduler.aclose()

"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import typing as typ

from cairn.logging import format_fields, get_logger, log_error, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ScheduleSpec:
    """How often a task runs and how long one run may take."""

    frequency: dt.timedelta
    timeout: dt.timedelta
    initial_delay: dt.timedelta | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class TaskInvocation:
    """A named unit of scheduled work."""

    id: str
    fn: cabc.Callable[[], cabc.Awaitable[None]]


class TaskRunner(typ.Protocol):
    """Accepts a task and takes responsibility for running it."""

    async def run(self, task: TaskInvocation) -> None:
        """Register ``task`` for execution."""
        ...


class TaskScheduler(typ.Protocol):
    """Factory for task runners bound to a schedule."""

    def create_scheduled_task_runner(self, schedule: ScheduleSpec) -> TaskRunner:
        """Return a runner that executes tasks according to ``schedule``."""
        ...


class _ScheduledTaskRunner:
    """Runner created by :class:`AsyncioTaskScheduler`."""

    def __init__(
        self, scheduler: AsyncioTaskScheduler, schedule: ScheduleSpec
    ) -> None:
        self._scheduler = scheduler
        self._schedule = schedule

    async def run(self, task: TaskInvocation) -> None:
        self._scheduler.start(task, self._schedule)


class AsyncioTaskScheduler:
    """Run registered tasks periodically on the current event loop.

    Each task id has one loop and one lock, so a task never overlaps with
    itself even if it is registered twice. A run that raises or exceeds its
    timeout is logged and the loop waits for the next tick.
    """

    def __init__(self) -> None:
        """Initialise with no running loops."""
        self._loops: dict[str, asyncio.Task[None]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def create_scheduled_task_runner(self, schedule: ScheduleSpec) -> TaskRunner:
        """Return a runner that schedules tasks with ``schedule``."""
        return _ScheduledTaskRunner(self, schedule)

    def start(self, task: TaskInvocation, schedule: ScheduleSpec) -> None:
        """Start the periodic loop for ``task`` unless one is already running."""
        existing = self._loops.get(task.id)
        if existing is not None and not existing.done():
            log_warning(
                logger,
                "Task already scheduled; ignoring duplicate registration %s",
                format_fields(task_id=task.id),
            )
            return
        self._locks.setdefault(task.id, asyncio.Lock())
        self._loops[task.id] = asyncio.create_task(
            self._loop(task, schedule), name=f"cairn:{task.id}"
        )

    async def run_once(self, task: TaskInvocation, schedule: ScheduleSpec) -> bool:
        """Execute ``task`` once under its lock and timeout.

        Returns
        -------
        bool
            ``True`` when the run completed, ``False`` when it failed or timed
            out.

        """
        lock = self._locks.setdefault(task.id, asyncio.Lock())
        async with lock:
            try:
                async with asyncio.timeout(schedule.timeout.total_seconds()):
                    await task.fn()
            except TimeoutError as exc:
                log_error(
                    logger,
                    "Scheduled task timed out %s",
                    format_fields(
                        task_id=task.id,
                        timeout_seconds=schedule.timeout.total_seconds(),
                    ),
                    exc_info=exc,
                )
                return False
            except Exception as exc:  # noqa: BLE001
                log_error(
                    logger,
                    "Scheduled task failed %s",
                    format_fields(task_id=task.id, error_type=type(exc).__name__),
                    exc_info=exc,
                )
                return False
        return True

    async def _loop(self, task: TaskInvocation, schedule: ScheduleSpec) -> None:
        if schedule.initial_delay is not None:
            await asyncio.sleep(schedule.initial_delay.total_seconds())
        while True:
            await self.run_once(task, schedule)
            await asyncio.sleep(schedule.frequency.total_seconds())

    async def aclose(self) -> None:
        """Cancel every running loop and wait for them to finish."""
        loops = list(self._loops.values())
        self._loops.clear()
        for loop in loops:
            loop.cancel()
        await asyncio.gather(*loops, return_exceptions=True)
