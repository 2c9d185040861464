"""Virtual-time scheduler: drains timed tasks in order on a single worker."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable

from .clock import VirtualClock
from .errors import AlreadyRunning, InvalidArgument, SchedulerShutdown, ShutdownTimeout
from .tasks import UNBOUNDED, TaskQueue, TimedTask

logger = logging.getLogger(__name__)

Action = Callable[[], None]


class Scheduler:
    """
    Core controller of the simulation.

    Owns a :class:`VirtualClock` and a :class:`TaskQueue`. ``run`` hands the
    drain loop to a dedicated single-thread executor, so no two tasks ever
    execute concurrently and the clock only moves inside that loop. Tasks may
    be admitted from any thread, including from inside a running task.
    """

    def __init__(self, clock: VirtualClock | None = None, name: str = "virtual-clock") -> None:
        self.clock = clock or VirtualClock()
        self._queue = TaskQueue()
        self._state_lock = threading.Lock()
        self._running = False
        self._target_time = 0
        self._shut_down = False
        self._run_future: Future | None = None
        self._worker_thread: threading.Thread | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    # -- state ---------------------------------------------------------------

    @property
    def current_time(self) -> int:
        return self.clock.now()

    def now(self) -> int:
        """Current virtual time; lets the scheduler stand in for a clock."""
        return self.clock.now()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def target_time(self) -> int:
        return self._target_time

    @property
    def is_shutdown(self) -> bool:
        return self._shut_down

    @property
    def pending(self) -> int:
        return len(self._queue)

    def pending_tasks(self) -> list[TimedTask]:
        return self._queue.snapshot()

    # -- scheduling ----------------------------------------------------------

    def schedule_once(self, action: Action, delay: int) -> TimedTask:
        """Run *action* once, *delay* virtual milliseconds from now."""
        self._check_delay("delay", delay)
        return self._admit(TimedTask(self.clock.now() + delay, action))

    def schedule_repeating(self, action: Action, initial_delay: int, interval: int) -> TimedTask:
        """Run *action* every *interval* ms, starting *initial_delay* ms from now."""
        return self.schedule_repeating_bounded(action, initial_delay, interval, UNBOUNDED)

    def schedule_repeating_bounded(
        self,
        action: Action,
        initial_delay: int,
        interval: int,
        repeat_count: int,
    ) -> TimedTask:
        """Like :meth:`schedule_repeating` but with *repeat_count* extra firings.

        The action fires ``repeat_count + 1`` times in total.
        """
        self._check_delay("initial_delay", initial_delay)
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise InvalidArgument(f"interval must be a positive integer, got {interval!r}")
        if isinstance(repeat_count, bool) or not isinstance(repeat_count, int) or repeat_count < 0:
            raise InvalidArgument(f"repeat_count must be >= 0, got {repeat_count!r}")
        task = TimedTask(
            self.clock.now() + initial_delay,
            action,
            interval=interval,
            remaining_repeats=repeat_count,
        )
        return self._admit(task)

    def submit_now(self, action: Action) -> TimedTask:
        """Run *action* at the current virtual time, after already-due tasks."""
        return self.schedule_once(action, 0)

    execute = submit_now

    # -- running -------------------------------------------------------------

    def run(self, target_time: int = 0) -> Future | None:
        """Start draining the queue on the worker thread.

        A *target_time* of 0 or less runs until the queue is empty (or
        ``stop`` is called). Returns ``None`` without starting anything when
        there is nothing queued; otherwise returns a ``Future`` resolved when
        the loop exits and carrying any error raised by a task.
        """
        with self._state_lock:
            if self._shut_down:
                raise SchedulerShutdown("Scheduler has been shut down")
            # A stopped loop still owns the worker until its in-flight task returns.
            if self._running or (self._run_future is not None and not self._run_future.done()):
                raise AlreadyRunning("Scheduler is already running")
            if self._queue.is_empty():
                logger.debug("Nothing queued at %d, run is a no-op", self.clock.now())
                return None
            self._running = True
            self._target_time = max(int(target_time), 0)
            logger.debug(
                "Starting run at %d (target %d, %d pending)",
                self.clock.now(), self._target_time, len(self._queue),
            )
            self._run_future = self._executor.submit(self._drain)
            return self._run_future

    def run_until(self, expected_time: int) -> Future | None:
        return self.run(expected_time)

    def stop(self) -> None:
        """Ask the run loop to exit once the in-flight task returns."""
        self._running = False

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop, wait for the active run to exit and release the worker.

        Pending tasks are discarded and the worker is released even when the
        wait times out. Raises :class:`ShutdownTimeout` if the active run does
        not exit within *timeout* seconds. Called from inside a task, it does
        not wait: the run exits once that task returns.
        """
        with self._state_lock:
            first = not self._shut_down
            self._shut_down = True
            self._running = False
            future = self._run_future

        try:
            if (
                future is not None
                and not future.done()
                and threading.current_thread() is not self._worker_thread
            ):
                done, _ = wait([future], timeout=timeout)
                if not done:
                    raise ShutdownTimeout(
                        f"Run loop did not exit within {timeout} seconds of shutdown"
                    )
        finally:
            if first:
                self._executor.shutdown(wait=False)
                self._queue.clear()
                logger.info("Scheduler shut down at %d", self.clock.now())

    # -- internals -----------------------------------------------------------

    def _drain(self) -> None:
        target = self._target_time
        clock = self.clock
        queue = self._queue
        self._worker_thread = threading.current_thread()
        try:
            while self._running and not queue.is_empty() and (target <= 0 or target > clock.now()):
                head = queue.peek_earliest()
                if head is None:
                    break
                if target > 0 and head.scheduled_time > target:
                    clock.advance_to(target)
                    break

                task = queue.remove_earliest()
                if task.scheduled_time > clock.now():
                    clock.advance_to(task.scheduled_time)
                logger.debug("Processing task, total %d, time %d", len(queue), clock.now())

                try:
                    task.run()
                except Exception:
                    logger.exception("Task failed at %d, aborting run", clock.now())
                    raise

                if task.remaining_repeats > 0 and self._running:
                    queue.admit(task.rescheduled(clock.now()))
        finally:
            self._running = False
            logger.debug("Run loop exited at %d, %d pending", clock.now(), len(queue))

    def _admit(self, task: TimedTask) -> TimedTask:
        if self._shut_down:
            raise SchedulerShutdown("Cannot schedule on a shut down scheduler")
        self._queue.admit(task)
        return task

    @staticmethod
    def _check_delay(name: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")
