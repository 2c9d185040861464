"""Exception taxonomy for the simulator."""

from __future__ import annotations


class SimulationError(Exception):
    """Base class for every error raised by the simulator."""


class InvalidArgument(SimulationError, ValueError):
    """A caller supplied an invalid delay, count or state.

    Generators also raise this to signal that they have no data for the
    current request, which the traffic driver treats as the end of a firing.
    """


class DelayUnavailable(InvalidArgument):
    """The delay generator has no delay configured for a destination."""


class ServiceUnavailable(SimulationError):
    """The routing collaborator could not resolve a destination."""


class AlreadyRunning(SimulationError, RuntimeError):
    """``run`` was called while a run loop is already active."""


class SchedulerShutdown(SimulationError, RuntimeError):
    """The scheduler was used after ``shutdown``."""


class ShutdownTimeout(SimulationError, TimeoutError):
    """A shutdown acknowledgment did not arrive within the bounded wait."""
