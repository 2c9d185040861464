"""Property registry: opaque keyed storage for routing configuration."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..core.config import ClusterProperties, ServiceProperties, UriProperties

T = TypeVar("T")


@dataclass
class PropertyStore(Generic[T]):
    """A single keyed store that remembers every change made to it."""

    name: str
    _values: dict[str, T] = field(default_factory=dict)
    change_log: list[dict[str, Any]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def put(self, key: str, value: T) -> None:
        with self._lock:
            self._values[key] = value
            self.change_log.append({"op": "put", "key": key})

    def get(self, key: str) -> T | None:
        with self._lock:
            return self._values.get(key)

    def remove(self, key: str) -> None:
        with self._lock:
            if self._values.pop(key, None) is not None:
                self.change_log.append({"op": "remove", "key": key})

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._values)

    @property
    def version(self) -> int:
        return len(self.change_log)


class PropertyRegistry:
    """
    Service, cluster and URI properties consumed by the routing collaborator.

    The simulator stores and hands these out but never interprets them.
    Cluster and URI properties are both keyed by cluster name.
    """

    def __init__(self) -> None:
        self.services: PropertyStore[ServiceProperties] = PropertyStore("services")
        self.clusters: PropertyStore[ClusterProperties] = PropertyStore("clusters")
        self.uris: PropertyStore[UriProperties] = PropertyStore("uris")

    def register(
        self,
        service: ServiceProperties,
        cluster: ClusterProperties,
        uris: UriProperties,
    ) -> None:
        self.services.put(service.service_name, service)
        self.clusters.put(service.cluster_name, cluster)
        self.uris.put(service.cluster_name, uris)

    @property
    def version(self) -> int:
        """Changes the moment any store changes."""
        return self.services.version + self.clusters.version + self.uris.version
