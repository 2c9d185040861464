"""Shared pytest fixtures for the load-balancer simulator."""

from __future__ import annotations

from typing import Callable

import pytest

from lb_simulator.core.config import ClusterProperties, ServiceProperties, UriProperties
from lb_simulator.core.errors import ServiceUnavailable
from lb_simulator.core.scheduler import Scheduler
from lb_simulator.core.simulator import LoadBalancerSimulator
from lb_simulator.routing.registry import PropertyRegistry
from lb_simulator.simulation.generators import ConstantQPS, FixedDelay

HOST1 = "http://host1.example.com:8080/articles"
HOST2 = "http://host2.example.com:8080/articles"


class RoundRobinRouter:
    """Minimal routing collaborator that cycles through a fixed list."""

    def __init__(self, destinations: list[str]) -> None:
        self.destinations = destinations
        self.calls = 0
        self.started = False

    def start(self, on_ready: Callable[[], None]) -> None:
        self.started = True
        on_ready()

    def shutdown(self, on_done: Callable[[], None]) -> None:
        self.started = False
        on_done()

    def resolve(self, request_uri, context):
        if not self.destinations:
            raise ServiceUnavailable(f"No destination for {request_uri}")
        destination = self.destinations[self.calls % len(self.destinations)]
        self.calls += 1
        return destination

    def get_rings(self, service_name):
        raise ServiceUnavailable("RoundRobinRouter has no rings")


@pytest.fixture
def scheduler():
    """A scheduler that is shut down after the test."""
    sched = Scheduler()
    yield sched
    sched.shutdown(timeout=5)


@pytest.fixture
def service_properties() -> ServiceProperties:
    return ServiceProperties(service_name="articles", cluster_name="articles-cluster", path="/articles")


@pytest.fixture
def cluster_properties() -> ClusterProperties:
    return ClusterProperties(cluster_name="articles-cluster")


@pytest.fixture
def uri_properties() -> UriProperties:
    return UriProperties.uniform("articles-cluster", [HOST1, HOST2])


@pytest.fixture
def registry(service_properties, cluster_properties, uri_properties) -> PropertyRegistry:
    reg = PropertyRegistry()
    reg.register(service_properties, cluster_properties, uri_properties)
    return reg


@pytest.fixture
def make_simulator(service_properties, cluster_properties, uri_properties):
    """Factory for simulators; every simulator built is shut down afterwards."""
    built: list[LoadBalancerSimulator] = []

    def factory(
        qps_generator=None,
        delay_generator=None,
        uris: UriProperties | None = None,
        **kwargs,
    ) -> LoadBalancerSimulator:
        sim = LoadBalancerSimulator(
            service_properties,
            cluster_properties,
            uris or uri_properties,
            delay_generator or FixedDelay({}, default=30),
            qps_generator or ConstantQPS(5),
            **kwargs,
        )
        built.append(sim)
        return sim

    yield factory

    for sim in built:
        if not sim.scheduler.is_shutdown:
            sim.shutdown()


@pytest.fixture
def make_router() -> Callable[[list[str]], RoundRobinRouter]:
    return RoundRobinRouter
