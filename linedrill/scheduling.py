"""
Timers for the quiz session.

The session only ever asks for "run this after n seconds" and "never mind";
anything with that shape can drive it. In the app that's APScheduler on the
asyncio event loop, so callbacks run on the loop's thread one at a time. The
tests use a manual clock instead (linedrill.tests.ManualScheduler).
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, delay: float, action: Callable[[], None]) -> TimerHandle: ...


async def _run_action(action: Callable[[], None]):
    # a coroutine job runs on the event loop itself; plain callables would
    # be handed off to a thread pool executor
    action()


class _JobHandle:
    def __init__(self, job):
        self._job = job

    def cancel(self):
        try:
            self._job.remove()
        except JobLookupError:
            pass  # date jobs are dropped from the store once they've fired


class AsyncIOTimerScheduler:
    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)

    @property
    def running(self):
        return self._scheduler.running

    def start(self):
        """Needs a running event loop, so call it from inside one."""
        if not self._scheduler.running:
            self._scheduler.start()

    def schedule(self, delay: float, action: Callable[[], None]) -> _JobHandle:
        self.start()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        job = self._scheduler.add_job(
            _run_action,
            "date",
            run_date=run_date,
            args=[action],
            misfire_grace_time=None,
        )
        return _JobHandle(job)

    def shutdown(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
