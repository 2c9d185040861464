"""Reference routing collaborator: weighted hash rings per service partition."""

from __future__ import annotations

import logging
import threading
from typing import Callable
from urllib.parse import urlsplit

from ..core.errors import ServiceUnavailable
from ..core.interfaces import Clock, Destination, RequestContext
from .registry import PropertyRegistry
from .ring import HashRing, hash_key

logger = logging.getLogger(__name__)


class RingRouter:
    """
    Resolve requests to destinations using one :class:`HashRing` per partition.

    Rings are rebuilt from the :class:`PropertyRegistry` lazily: on each
    ``resolve``, if at least ``update_interval_ms`` of virtual time has passed
    since the last update and the registry has changed, the rings for that
    service are rebuilt. Driving the update off the simulation clock keeps
    the router on the same time base as the traffic it receives.
    """

    def __init__(self, registry: PropertyRegistry, clock: Clock | None = None) -> None:
        self.registry = registry
        self._clock = clock
        self._rings: dict[str, dict[int, HashRing]] = {}
        self._built_version: dict[str, int] = {}
        self._last_update: dict[str, int] = {}
        self._lock = threading.Lock()
        self._started = False
        self.updates = 0

    def _now(self) -> int:
        if self._clock is not None:
            return self._clock.now()
        return 0

    # -- lifecycle -----------------------------------------------------------

    def start(self, on_ready: Callable[[], None]) -> None:
        with self._lock:
            for service_name in self.registry.services.keys():
                self._build(service_name)
            self._started = True
        logger.info("Router started with services %s", sorted(self._rings))
        on_ready()

    def shutdown(self, on_done: Callable[[], None]) -> None:
        with self._lock:
            self._started = False
            self._rings.clear()
        logger.info("Router shut down")
        on_done()

    # -- resolution ----------------------------------------------------------

    def resolve(self, request_uri: str, context: RequestContext) -> Destination:
        parts = urlsplit(request_uri)
        rings = self.get_rings(parts.netloc)
        partition = context.partition
        if partition is None:
            partition = self._partition_for(parts.netloc, parts.path)

        ring = rings.get(partition)
        destination = ring.get(request_uri) if ring is not None else None
        if destination is None:
            raise ServiceUnavailable(
                f"No destination available for {request_uri} in partition {partition}"
            )
        return destination

    def get_rings(self, service_name: str) -> dict[int, HashRing]:
        with self._lock:
            if not self._started:
                raise ServiceUnavailable("Router is not started")
            if self.registry.services.get(service_name) is None:
                raise ServiceUnavailable(f"Unknown service {service_name!r}")
            if service_name not in self._rings or self._update_due(service_name):
                self._build(service_name)
            return dict(self._rings[service_name])

    # -- internals -----------------------------------------------------------

    def _update_due(self, service_name: str) -> bool:
        service = self.registry.services.get(service_name)
        elapsed = self._now() - self._last_update.get(service_name, 0)
        return (
            elapsed >= service.update_interval_ms
            and self._built_version.get(service_name) != self.registry.version
        )

    def _build(self, service_name: str) -> None:
        service = self.registry.services.get(service_name)
        if service is None:
            return
        uris = self.registry.uris.get(service.cluster_name)
        rings: dict[int, HashRing] = {}
        if uris is not None:
            for partition in sorted(uris.partitions()):
                weights = {
                    uri: weight
                    for uri, weight in uris.weights_for(partition).items()
                    if uri not in service.banned
                }
                rings[partition] = HashRing(weights, service.points_per_weight)
        self._rings[service_name] = rings
        self._built_version[service_name] = self.registry.version
        self._last_update[service_name] = self._now()
        self.updates += 1
        logger.debug(
            "Rebuilt rings for %s at %d: %s",
            service_name, self._now(), {p: r.points() for p, r in rings.items()},
        )

    def _partition_for(self, service_name: str, path: str) -> int:
        service = self.registry.services.get(service_name)
        cluster = self.registry.clusters.get(service.cluster_name) if service else None
        count = cluster.partition_count if cluster is not None else 1
        if count <= 1:
            return 0
        return hash_key(path) % count
