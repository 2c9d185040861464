"""Virtual clock for deterministic simulation runs."""

from __future__ import annotations

from .errors import InvalidArgument


class VirtualClock:
    """
    A logical clock measured in integer milliseconds.

    The clock never sleeps and never looks at wall-clock time. Only the
    scheduler's run loop moves it; everyone else reads snapshots via ``now``.
    """

    def __init__(self) -> None:
        self._current: int = 0

    # -- public API ----------------------------------------------------------

    def now(self) -> int:
        """Return the current virtual time in milliseconds."""
        return self._current

    def advance_to(self, target: int) -> None:
        """Advance the clock to *target* milliseconds.

        The clock only moves forwards; going backwards is a programming
        error in the caller.
        """
        target = int(target)
        if target < self._current:
            raise InvalidArgument(
                f"Cannot move clock backwards from {self._current} to {target}"
            )
        self._current = target

    def __repr__(self) -> str:
        return f"VirtualClock(now={self._current})"
