"""Synthetic traffic (QPS) and latency (delay) generators."""

from __future__ import annotations

from typing import Any, Iterable

import numpy as np

from ..core.errors import InvalidArgument
from ..core.interfaces import DelayGenerator, Destination, QPSGenerator


# ---------------------------------------------------------------------------
# QPS generators
# ---------------------------------------------------------------------------

class ConstantQPS:
    """The same request count every interval, optionally for *limit* intervals."""

    def __init__(self, value: int, limit: int | None = None) -> None:
        if value < 0:
            raise InvalidArgument(f"QPS must be >= 0, got {value}")
        self.value = value
        self.limit = limit
        self.calls = 0

    def next_qps(self) -> int:
        if self.limit is not None and self.calls >= self.limit:
            raise InvalidArgument("ConstantQPS exhausted")
        self.calls += 1
        return self.value


class SequenceQPS:
    """Replays a fixed sequence of counts, then reports exhaustion."""

    def __init__(self, values: Iterable[int]) -> None:
        self.values = [int(v) for v in values]
        self._index = 0

    def next_qps(self) -> int:
        if self._index >= len(self.values):
            raise InvalidArgument("SequenceQPS exhausted")
        value = self.values[self._index]
        self._index += 1
        return value


class PoissonQPS:
    """Poisson-distributed counts around *mean*, reproducible for a given seed."""

    def __init__(self, mean: float, seed: int | None = 0, limit: int | None = None) -> None:
        self.mean = mean
        self.limit = limit
        self.calls = 0
        self._rng = np.random.default_rng(seed)

    def next_qps(self) -> int:
        if self.limit is not None and self.calls >= self.limit:
            raise InvalidArgument("PoissonQPS exhausted")
        self.calls += 1
        return int(self._rng.poisson(self.mean))


# ---------------------------------------------------------------------------
# Delay generators
# ---------------------------------------------------------------------------

class FixedDelay:
    """A fixed delay per destination, with an optional fallback."""

    def __init__(self, delays: dict[Destination, int], default: int | None = None) -> None:
        self.delays = dict(delays)
        self.default = default

    def next_delay(self, destination: Destination) -> int:
        delay = self.delays.get(destination, self.default)
        if delay is None:
            raise InvalidArgument(f"No delay configured for {destination}")
        return int(delay)


class ProfileDelay:
    """
    Latency drawn from named network profiles: base latency plus Gaussian
    jitter, clamped at zero.
    """

    PROFILES: dict[str, dict[str, float]] = {
        "perfect":   {"latency": 10,  "jitter": 2},
        "good_4g":   {"latency": 50,  "jitter": 15},
        "poor_4g":   {"latency": 150, "jitter": 50},
        "bad_wifi":  {"latency": 200, "jitter": 100},
        "elevator":  {"latency": 500, "jitter": 200},
    }

    def __init__(
        self,
        assignments: dict[Destination, str | dict[str, float]],
        seed: int | None = 0,
    ) -> None:
        self.assignments: dict[Destination, dict[str, float]] = {}
        for destination, profile in assignments.items():
            if isinstance(profile, str):
                if profile not in self.PROFILES:
                    raise InvalidArgument(f"Unknown latency profile {profile!r}")
                profile = self.PROFILES[profile]
            self.assignments[destination] = {
                "latency": float(profile.get("latency", 0)),
                "jitter": float(profile.get("jitter", 0)),
            }
        self._rng = np.random.default_rng(seed)

    def next_delay(self, destination: Destination) -> int:
        profile = self.assignments.get(destination)
        if profile is None:
            raise InvalidArgument(f"No latency profile for {destination}")
        delay = profile["latency"]
        if profile["jitter"] > 0:
            delay += self._rng.normal(0, profile["jitter"])
        return max(0, int(round(delay)))


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_qps_generator(config: dict[str, Any]) -> QPSGenerator:
    """Build a QPS generator from a config mapping such as ``{"type": "constant", "value": 10}``."""
    params = dict(config)
    kind = params.pop("type", "constant")
    try:
        match kind:
            case "constant":
                return ConstantQPS(int(params["value"]), params.get("limit"))
            case "sequence":
                return SequenceQPS(params["values"])
            case "poisson":
                return PoissonQPS(float(params["mean"]), params.get("seed", 0), params.get("limit"))
    except KeyError as exc:
        raise InvalidArgument(f"QPS generator {kind!r} is missing {exc}") from exc
    raise InvalidArgument(f"Unknown QPS generator type {kind!r}")


def create_delay_generator(config: dict[str, Any]) -> DelayGenerator:
    """Build a delay generator from a config mapping such as ``{"type": "fixed", ...}``."""
    params = dict(config)
    kind = params.pop("type", "fixed")
    try:
        match kind:
            case "fixed":
                return FixedDelay(params.get("delays") or {}, params.get("default"))
            case "profile":
                return ProfileDelay(params["assignments"], params.get("seed", 0))
    except KeyError as exc:
        raise InvalidArgument(f"Delay generator {kind!r} is missing {exc}") from exc
    raise InvalidArgument(f"Unknown delay generator type {kind!r}")
