"""Schedulable-task queue drained by a single loop.

Timers for simulated settlement, reminders and overdue escalation are
(fire_at, seq, entity_id, action) entries in a heap. Cancellation only marks
entries; every callback still re-checks entity status when it runs, because a
task may already be popped when it is cancelled.
"""

import asyncio
import heapq
import inspect
import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from chainflow_credit.utils.date_utils import Clock, utcnow

logger = logging.getLogger(__name__)

TaskCallback = Callable[[], Optional[Awaitable[Any]]]


@dataclass(order=True)
class ScheduledTask:
    fire_at: datetime
    seq: int
    entity_id: str = field(compare=False)
    action: str = field(compare=False)
    callback: TaskCallback = field(compare=False, repr=False)
    cancelled: bool = field(default=False, compare=False)


class TaskScheduler:
    """Priority queue of timed callbacks with cooperative draining"""

    def __init__(self, clock: Clock = utcnow, poll_interval: float = 1.0):
        self._clock = clock
        self._poll_interval = poll_interval
        self._heap: List[ScheduledTask] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()
        self._runner: asyncio.Task | None = None

    def schedule(self, fire_at: datetime, entity_id: str, action: str, callback: TaskCallback) -> ScheduledTask:
        task = ScheduledTask(
            fire_at=fire_at,
            seq=next(self._counter),
            entity_id=entity_id,
            action=action,
            callback=callback,
        )
        with self._lock:
            heapq.heappush(self._heap, task)
        logger.debug("Scheduled %s for %s at %s", action, entity_id, fire_at.isoformat())
        return task

    def cancel(self, task: ScheduledTask) -> None:
        task.cancelled = True

    def cancel_entity(self, entity_id: str) -> int:
        """Cancel every outstanding task for an entity. Returns number cancelled."""
        cancelled = 0
        with self._lock:
            for task in self._heap:
                if task.entity_id == entity_id and not task.cancelled:
                    task.cancelled = True
                    cancelled += 1
        return cancelled

    def pending(self, entity_id: str | None = None) -> List[ScheduledTask]:
        """Outstanding, non-cancelled tasks in fire order"""
        with self._lock:
            tasks = sorted(t for t in self._heap if not t.cancelled)
        if entity_id is not None:
            tasks = [t for t in tasks if t.entity_id == entity_id]
        return tasks

    def next_fire_at(self) -> datetime | None:
        tasks = self.pending()
        return tasks[0].fire_at if tasks else None

    async def run_due(self, now: datetime | None = None) -> int:
        """
        Run every task due at `now` (default: clock time) in fire-time order.

        A failing callback is logged and does not stop the drain.

        Returns:
            Number of callbacks executed
        """
        now = now or self._clock()
        executed = 0

        while True:
            task = self._pop_due(now)
            if task is None:
                break
            if task.cancelled:
                continue

            try:
                result = task.callback()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Scheduled task failed",
                    extra={"entity_id": task.entity_id, "action": task.action},
                )
            executed += 1

        return executed

    def _pop_due(self, now: datetime) -> ScheduledTask | None:
        with self._lock:
            if self._heap and self._heap[0].fire_at <= now:
                return heapq.heappop(self._heap)
        return None

    async def run_forever(self) -> None:
        while True:
            await self.run_due()
            await asyncio.sleep(self._poll_interval)

    def start(self) -> None:
        """Start the background drain loop on the running event loop"""
        if self._runner is None or self._runner.done():
            self._runner = asyncio.get_running_loop().create_task(self.run_forever())

    async def stop(self) -> None:
        if self._runner is None:
            return
        self._runner.cancel()
        try:
            await self._runner
        except asyncio.CancelledError:
            pass
        self._runner = None
