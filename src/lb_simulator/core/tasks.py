"""Timed tasks and the priority queue that orders them in virtual time."""

from __future__ import annotations

import heapq
import itertools
import sys
import threading
from dataclasses import dataclass, field, replace
from typing import Callable

#: ``remaining_repeats`` value for tasks that repeat until the scheduler stops.
UNBOUNDED = sys.maxsize


# ---------------------------------------------------------------------------
# Timed task
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimedTask:
    """A single schedulable unit of work pinned to a virtual time.

    Instances are immutable: a repeating task is re-admitted as a new
    instance produced by :meth:`rescheduled`, never mutated in the queue.
    """

    scheduled_time: int
    action: Callable[[], None] = field(repr=False)
    interval: int = 0
    remaining_repeats: int = 0

    @property
    def is_repeating(self) -> bool:
        return self.interval > 0 and self.remaining_repeats > 0

    @property
    def is_unbounded(self) -> bool:
        return self.remaining_repeats == UNBOUNDED

    def rescheduled(self, now: int) -> TimedTask:
        """Return the next firing of this task, fired at virtual time *now*."""
        remaining = self.remaining_repeats
        if remaining != UNBOUNDED:
            remaining -= 1
        return replace(
            self,
            scheduled_time=max(now, self.scheduled_time) + self.interval,
            remaining_repeats=remaining,
        )

    def run(self) -> None:
        self.action()


# ---------------------------------------------------------------------------
# Task queue
# ---------------------------------------------------------------------------

def _by_scheduled_time(task: TimedTask) -> int:
    return task.scheduled_time


class TaskQueue:
    """
    Thread-safe priority queue of :class:`TimedTask`.

    Tasks are ordered by ``key`` (the scheduled time by default). Tasks with
    equal keys come out in admission order: every admission takes the next
    value of a monotonic sequence counter, which is the heap tie-breaker.
    """

    def __init__(self, key: Callable[[TimedTask], int] = _by_scheduled_time) -> None:
        self._key = key
        self._heap: list[tuple[int, int, TimedTask]] = []
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def admit(self, task: TimedTask) -> None:
        with self._lock:
            heapq.heappush(self._heap, (self._key(task), next(self._seq), task))

    def peek_earliest(self) -> TimedTask | None:
        with self._lock:
            if not self._heap:
                return None
            return self._heap[0][2]

    def remove_earliest(self) -> TimedTask:
        """Pop and return the earliest task. Raises ``IndexError`` when empty."""
        with self._lock:
            if not self._heap:
                raise IndexError("remove_earliest from an empty TaskQueue")
            return heapq.heappop(self._heap)[2]

    def is_empty(self) -> bool:
        with self._lock:
            return not self._heap

    def clear(self) -> None:
        with self._lock:
            self._heap.clear()

    def snapshot(self) -> list[TimedTask]:
        """Return the pending tasks in the order they would run."""
        with self._lock:
            return [entry[2] for entry in sorted(self._heap)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)
