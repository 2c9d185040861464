"""Assertion helpers for routing-distribution tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.interfaces import Destination

if TYPE_CHECKING:
    from ..core.simulator import LoadBalancerSimulator


class DistributionAsserter:
    """
    Convenience wrapper around a ``LoadBalancerSimulator`` for writing
    expressive assertions about how traffic was spread in the last interval.
    """

    def __init__(self, simulator: LoadBalancerSimulator) -> None:
        self.simulator = simulator

    @property
    def counters(self) -> dict[Destination, int]:
        return self.simulator.get_client_counters()

    def assert_total(self, expected: int) -> None:
        total = sum(self.counters.values())
        if total != expected:
            raise AssertionError(
                f"Expected {expected} requests in the last interval, got {total}: {self.counters}"
            )

    def assert_share(self, destination: Destination, expected: float, tolerance: float = 0.05) -> None:
        """Assert *destination* received ``expected`` ± ``tolerance`` of the traffic."""
        actual = self.simulator.get_count_percent(destination)
        if abs(actual - expected) > tolerance:
            raise AssertionError(
                f"{destination} received {actual:.3f} of traffic, "
                f"expected {expected:.3f} ± {tolerance:.3f}"
            )

    def assert_converged(self, expected_shares: dict[Destination, float], tolerance: float = 0.05) -> None:
        """Assert every destination's share is within *tolerance* of its target."""
        misses = []
        for destination, expected in expected_shares.items():
            actual = self.simulator.get_count_percent(destination)
            if abs(actual - expected) > tolerance:
                misses.append(f"{destination}: {actual:.3f} (expected {expected:.3f})")
        if misses:
            raise AssertionError("Traffic has not converged: " + "; ".join(misses))

    def assert_points(self, service_name: str, partition: int, expected: dict[Destination, int]) -> None:
        actual = self.simulator.get_points(service_name, partition)
        if actual != expected:
            raise AssertionError(f"Ring points {actual} != expected {expected}")
