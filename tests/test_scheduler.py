"""Tests for the virtual-time scheduler."""

from __future__ import annotations

import random
import threading

import pytest

from lb_simulator.core.errors import (
    AlreadyRunning,
    InvalidArgument,
    SchedulerShutdown,
    ShutdownTimeout,
)
from lb_simulator.core.scheduler import Scheduler

TIMEOUT = 5


def _record(scheduler: Scheduler, log: list, label=None):
    def action() -> None:
        log.append((label, scheduler.current_time))
    return action


class TestOrdering:

    def test_runs_in_time_order(self, scheduler: Scheduler):
        log: list = []
        for t in (100, 50, 75):
            scheduler.schedule_once(_record(scheduler, log, t), t)
        scheduler.run(0).result(TIMEOUT)
        assert log == [(50, 50), (75, 75), (100, 100)]
        assert scheduler.current_time == 100

    def test_equal_times_run_in_admission_order(self, scheduler: Scheduler):
        log: list = []
        for label in "abc":
            scheduler.schedule_once(_record(scheduler, log, label), 10)
        scheduler.run().result(TIMEOUT)
        assert [label for label, _ in log] == ["a", "b", "c"]

    def test_submit_now_runs_after_already_due_tasks(self, scheduler: Scheduler):
        log: list = []

        def first() -> None:
            log.append("first")
            scheduler.submit_now(lambda: log.append("nested"))

        scheduler.schedule_once(first, 10)
        scheduler.schedule_once(lambda: log.append("second"), 10)
        scheduler.run().result(TIMEOUT)
        assert log == ["first", "second", "nested"]

    def test_task_scheduled_from_task_uses_current_time(self, scheduler: Scheduler):
        log: list = []
        scheduler.schedule_once(
            lambda: scheduler.schedule_once(_record(scheduler, log, "late"), 5), 10
        )
        scheduler.run().result(TIMEOUT)
        assert log == [("late", 15)]

    def test_clock_is_monotonic(self, scheduler: Scheduler):
        rng = random.Random(7)
        observed: list[int] = []

        def observe() -> None:
            observed.append(scheduler.current_time)
            if rng.random() < 0.3:
                scheduler.schedule_once(observe, rng.randint(0, 40))

        for _ in range(50):
            scheduler.schedule_once(observe, rng.randint(0, 500))
        scheduler.schedule_repeating_bounded(observe, 3, 17, 20)
        scheduler.run().result(TIMEOUT)

        assert len(observed) >= 71
        assert observed == sorted(observed)


class TestRepeating:

    def test_bounded_repeat_within_target(self, scheduler: Scheduler):
        log: list = []
        scheduler.schedule_repeating_bounded(_record(scheduler, log), 10, 20, 2)
        scheduler.run(60).result(TIMEOUT)
        assert [t for _, t in log] == [10, 30, 50]
        assert scheduler.pending == 0
        assert scheduler.current_time == 50

    def test_repeat_budget(self, scheduler: Scheduler):
        log: list = []
        scheduler.schedule_repeating_bounded(_record(scheduler, log), 0, 5, 3)
        scheduler.run().result(TIMEOUT)
        assert [t for _, t in log] == [0, 5, 10, 15]
        assert scheduler.pending == 0

    def test_unbounded_repeat_stops_at_target(self, scheduler: Scheduler):
        log: list = []
        scheduler.schedule_repeating(_record(scheduler, log), 0, 100)
        scheduler.run_until(450).result(TIMEOUT)
        assert [t for _, t in log] == [0, 100, 200, 300, 400]
        assert scheduler.current_time == 450
        assert [t.scheduled_time for t in scheduler.pending_tasks()] == [500]

    def test_invalid_arguments(self, scheduler: Scheduler):
        with pytest.raises(InvalidArgument):
            scheduler.schedule_once(lambda: None, -1)
        with pytest.raises(InvalidArgument):
            scheduler.schedule_repeating(lambda: None, 0, 0)
        with pytest.raises(InvalidArgument):
            scheduler.schedule_repeating_bounded(lambda: None, 0, 10, -2)
        assert scheduler.pending == 0


class TestRunUntil:

    def test_boundary(self, scheduler: Scheduler):
        log: list = []
        for t in (10, 20, 30):
            scheduler.schedule_once(_record(scheduler, log, t), t)
        scheduler.run_until(25).result(TIMEOUT)
        assert [label for label, _ in log] == [10, 20]
        assert scheduler.current_time == 25
        assert scheduler.pending == 1

        scheduler.run().result(TIMEOUT)
        assert [label for label, _ in log] == [10, 20, 30]
        assert scheduler.current_time == 30

    def test_target_is_inclusive(self, scheduler: Scheduler):
        log: list = []
        scheduler.schedule_once(_record(scheduler, log, "edge"), 25)
        scheduler.run_until(25).result(TIMEOUT)
        assert log == [("edge", 25)]

    def test_run_on_empty_queue_is_noop(self, scheduler: Scheduler):
        assert scheduler.run() is None
        assert not scheduler.running


class TestStopAndErrors:

    def test_already_running(self, scheduler: Scheduler):
        started = threading.Event()
        release = threading.Event()

        def blocker() -> None:
            started.set()
            release.wait(TIMEOUT)

        scheduler.schedule_once(blocker, 0)
        running = scheduler.run()
        assert started.wait(TIMEOUT)
        with pytest.raises(AlreadyRunning):
            scheduler.run()
        release.set()
        running.result(TIMEOUT)
        assert not scheduler.running

    def test_stop_preserves_queue(self, scheduler: Scheduler):
        log: list = []

        def stopper() -> None:
            log.append("stopper")
            scheduler.stop()

        scheduler.schedule_once(stopper, 10)
        scheduler.schedule_once(lambda: log.append("later"), 20)
        scheduler.run().result(TIMEOUT)
        assert log == ["stopper"]
        assert scheduler.pending == 1

        scheduler.stop()
        scheduler.stop()
        scheduler.run().result(TIMEOUT)
        assert log == ["stopper", "later"]

    def test_run_after_stop_waits_for_in_flight_task(self, scheduler: Scheduler):
        log: list = []
        started = threading.Event()
        release = threading.Event()

        def blocker() -> None:
            started.set()
            release.wait(TIMEOUT)

        scheduler.schedule_once(blocker, 0)
        for t in (10, 20, 1000):
            scheduler.schedule_once(_record(scheduler, log, t), t)
        first = scheduler.run()
        assert started.wait(TIMEOUT)

        scheduler.stop()
        try:
            with pytest.raises(AlreadyRunning):
                scheduler.run(15)
        finally:
            release.set()
        first.result(TIMEOUT)
        assert log == []

        scheduler.run(15).result(TIMEOUT)
        assert log == [(10, 10)]
        assert scheduler.current_time == 15
        assert scheduler.pending == 2

    def test_stop_retires_in_flight_repeating_task(self, scheduler: Scheduler):
        scheduler.schedule_repeating(scheduler.stop, 0, 10)
        scheduler.run().result(TIMEOUT)
        assert scheduler.pending == 0

    def test_task_error_aborts_run(self, scheduler: Scheduler):
        log: list = []

        def boom() -> None:
            raise ValueError("boom")

        scheduler.schedule_once(boom, 10)
        scheduler.schedule_once(lambda: log.append("after"), 20)
        running = scheduler.run()
        with pytest.raises(ValueError, match="boom"):
            running.result(TIMEOUT)
        assert not scheduler.running
        assert log == []

        scheduler.run().result(TIMEOUT)
        assert log == ["after"]

    def test_external_admission_while_running(self, scheduler: Scheduler):
        started = threading.Event()
        release = threading.Event()
        observed: list[int] = []

        def blocker() -> None:
            started.set()
            release.wait(TIMEOUT)

        def observe() -> None:
            observed.append(scheduler.current_time)

        scheduler.schedule_once(blocker, 0)
        running = scheduler.run()
        assert started.wait(TIMEOUT)

        def admit_many(seed: int) -> None:
            rng = random.Random(seed)
            for _ in range(50):
                scheduler.schedule_once(observe, rng.randint(1, 1000))

        threads = [threading.Thread(target=admit_many, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        release.set()
        running.result(TIMEOUT)

        assert len(observed) == 200
        assert observed == sorted(observed)


class TestShutdown:

    def test_unusable_after_shutdown(self):
        scheduler = Scheduler()
        scheduler.schedule_once(lambda: None, 10)
        scheduler.shutdown(timeout=TIMEOUT)
        scheduler.shutdown(timeout=TIMEOUT)  # idempotent
        assert scheduler.pending == 0
        with pytest.raises(SchedulerShutdown):
            scheduler.run()
        with pytest.raises(SchedulerShutdown):
            scheduler.schedule_once(lambda: None, 0)

    def test_shutdown_timeout(self):
        scheduler = Scheduler()
        started = threading.Event()
        release = threading.Event()

        def blocker() -> None:
            started.set()
            release.wait(TIMEOUT)

        scheduler.schedule_once(blocker, 0)
        scheduler.schedule_once(lambda: None, 10)
        running = scheduler.run()
        assert started.wait(TIMEOUT)
        try:
            with pytest.raises(ShutdownTimeout):
                scheduler.shutdown(timeout=0.05)
            assert scheduler.is_shutdown
            assert scheduler.pending == 0
        finally:
            release.set()
        running.result(TIMEOUT)
        scheduler.shutdown(timeout=TIMEOUT)

    def test_shutdown_from_inside_task(self):
        scheduler = Scheduler()
        log: list = []
        scheduler.schedule_once(scheduler.shutdown, 10)
        scheduler.schedule_once(lambda: log.append("later"), 20)

        scheduler.run().result(TIMEOUT)
        assert scheduler.is_shutdown
        assert scheduler.pending == 0
        assert log == []
        with pytest.raises(SchedulerShutdown):
            scheduler.run()
