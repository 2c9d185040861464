"""Simulation configuration: routing properties, run settings and YAML loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import InvalidArgument

#: How often the router re-evaluates its state, and by default how often the
#: traffic driver fires, so both run on the same time base.
DEFAULT_UPDATE_INTERVAL_MS = 5000
DEFAULT_POINTS_PER_WEIGHT = 100


# ---------------------------------------------------------------------------
# Routing properties
# ---------------------------------------------------------------------------

@dataclass
class ServiceProperties:
    """A logical service and the routing strategy settings that apply to it."""

    service_name: str
    cluster_name: str
    path: str = ""
    strategy_properties: dict[str, Any] = field(default_factory=dict)
    banned: set[str] = field(default_factory=set)

    @property
    def update_interval_ms(self) -> int:
        return int(self.strategy_properties.get("update_interval_ms", DEFAULT_UPDATE_INTERVAL_MS))

    @property
    def points_per_weight(self) -> int:
        return int(self.strategy_properties.get("points_per_weight", DEFAULT_POINTS_PER_WEIGHT))


@dataclass
class ClusterProperties:
    cluster_name: str
    partition_count: int = 1


@dataclass
class UriProperties:
    """Destinations of a cluster with their weight in each partition."""

    cluster_name: str
    weights: dict[str, dict[int, float]] = field(default_factory=dict)

    @classmethod
    def uniform(
        cls,
        cluster_name: str,
        uris: list[str],
        weight: float = 1.0,
        partition: int = 0,
    ) -> UriProperties:
        return cls(cluster_name, {uri: {partition: weight} for uri in uris})

    def partitions(self) -> set[int]:
        return {p for per_uri in self.weights.values() for p in per_uri}

    def weights_for(self, partition: int) -> dict[str, float]:
        return {
            uri: per_uri[partition]
            for uri, per_uri in self.weights.items()
            if partition in per_uri
        }


# ---------------------------------------------------------------------------
# Run settings
# ---------------------------------------------------------------------------

@dataclass
class SimulationSettings:
    initial_delay_ms: int = 10
    interval_ms: int = DEFAULT_UPDATE_INTERVAL_MS
    start_timeout_s: float = 5.0
    shutdown_timeout_s: float = 60.0
    max_responses: int | None = None


@dataclass
class SimulationConfig:
    """Everything needed to build a simulator from a file."""

    service: ServiceProperties
    cluster: ClusterProperties
    uris: UriProperties
    settings: SimulationSettings = field(default_factory=SimulationSettings)
    qps: dict[str, Any] | None = None
    delay: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def load_config(source: str | Path | dict[str, Any]) -> SimulationConfig:
    """Build a :class:`SimulationConfig` from a YAML file or an already-parsed dict.

    The document may be wrapped in a top-level ``simulation:`` key.
    """
    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise InvalidArgument("Simulation config must be a mapping")
    data = data.get("simulation", data)

    service_cfg = _section(data, "service")
    try:
        service = ServiceProperties(
            service_name=str(service_cfg["name"]),
            cluster_name=str(service_cfg["cluster"]),
            path=str(service_cfg.get("path", "")),
            strategy_properties=dict(service_cfg.get("strategy") or {}),
            banned=set(service_cfg.get("banned") or []),
        )
    except KeyError as exc:
        raise InvalidArgument(f"service section is missing {exc}") from exc

    cluster_cfg = data.get("cluster") or {}
    cluster = ClusterProperties(
        cluster_name=service.cluster_name,
        partition_count=int(cluster_cfg.get("partition_count", 1)),
    )

    uris = UriProperties(service.cluster_name, _parse_weights(_section(data, "uris")))
    settings = SimulationSettings(**_known_keys(data.get("settings") or {}, SimulationSettings))

    return SimulationConfig(
        service=service,
        cluster=cluster,
        uris=uris,
        settings=settings,
        qps=data.get("qps"),
        delay=data.get("delay"),
    )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    if not isinstance(value, dict) or not value:
        raise InvalidArgument(f"Simulation config needs a non-empty '{name}' mapping")
    return value


def _parse_weights(raw: dict[str, Any]) -> dict[str, dict[int, float]]:
    """Accept ``uri: weight`` (partition 0) or ``uri: {partition: weight}``."""
    weights: dict[str, dict[int, float]] = {}
    for uri, value in raw.items():
        if isinstance(value, dict):
            weights[str(uri)] = {int(p): float(w) for p, w in value.items()}
        else:
            weights[str(uri)] = {0: float(value)}
        if any(w < 0 for w in weights[str(uri)].values()):
            raise InvalidArgument(f"Negative weight for {uri}")
    return weights


def _known_keys(raw: dict[str, Any], cls: type) -> dict[str, Any]:
    unknown = set(raw) - set(cls.__dataclass_fields__)
    if unknown:
        raise InvalidArgument(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return raw
