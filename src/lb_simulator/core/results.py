"""Observability state collected while a simulation runs."""

from __future__ import annotations

import statistics
from collections import deque
from dataclasses import dataclass, field

from .errors import InvalidArgument
from .interfaces import Destination, SimulatedResponse


@dataclass
class ClientCounters:
    """
    Hits per destination since the last traffic-driver firing.

    Owned by a single :class:`~lb_simulator.simulation.driver.TrafficDriver`,
    which resets it at the start of every firing. Reading it while a run is
    in progress gives a best-effort view only.
    """

    hits: dict[Destination, int] = field(default_factory=dict)

    def reset(self) -> None:
        self.hits.clear()

    def increment(self, destination: Destination) -> int:
        count = self.hits.get(destination, 0) + 1
        self.hits[destination] = count
        return count

    @property
    def total(self) -> int:
        return sum(self.hits.values())

    def percent(self, destination: Destination) -> float:
        """Share of the total hits that went to *destination*, in ``[0, 1]``."""
        if destination not in self.hits:
            return 0.0
        total = self.total
        if total == 0:
            return 0.0
        return self.hits[destination] / total

    def snapshot(self) -> dict[Destination, int]:
        return dict(self.hits)


@dataclass
class ResponseLog:
    """Responses completed by the simulated transport, in completion order.

    Unbounded by default, so a long run keeps every response. With
    *max_responses* set only the most recent ones are kept and ``dropped``
    counts the evicted ones.
    """

    responses: deque[SimulatedResponse] = field(default_factory=deque)
    max_responses: int | None = None
    dropped: int = 0

    def __post_init__(self) -> None:
        if self.max_responses is not None and self.max_responses < 0:
            raise InvalidArgument(f"max_responses must be >= 0, got {self.max_responses}")
        self.responses = deque(self.responses, maxlen=self.max_responses)

    def record(self, response: SimulatedResponse) -> None:
        if self.max_responses is not None and len(self.responses) == self.max_responses:
            self.dropped += 1
        self.responses.append(response)

    def latencies_for(self, destination: Destination) -> list[int]:
        return [r.latency for r in self.responses if r.destination == destination]

    def mean_latency(self, destination: Destination) -> float:
        latencies = self.latencies_for(destination)
        return statistics.mean(latencies) if latencies else 0.0

    def completed_between(self, start: int, end: int) -> list[SimulatedResponse]:
        """Responses completed in the half-open virtual interval ``[start, end)``."""
        return [r for r in self.responses if start <= r.completed_at < end]

    def clear(self) -> None:
        self.responses.clear()

    def __len__(self) -> int:
        return len(self.responses)
