"""Load-balancer simulator: wires the scheduler, router, transport and traffic."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

from ..routing.registry import PropertyRegistry
from ..routing.router import RingRouter
from ..simulation.driver import TrafficDriver
from ..simulation.generators import create_delay_generator, create_qps_generator
from ..simulation.transport import SimulatedTransport
from .config import (
    ClusterProperties,
    ServiceProperties,
    SimulationConfig,
    SimulationSettings,
    UriProperties,
    load_config,
)
from .errors import InvalidArgument, ServiceUnavailable, ShutdownTimeout, SimulationError
from .interfaces import (
    Clock,
    DelayGenerator,
    Destination,
    QPSGenerator,
    RoutingCollaborator,
    SimulatedResponse,
)
from .results import ClientCounters, ResponseLog
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class LoadBalancerSimulator:
    """
    Simulates transport delays of the destinations behind a router, so that
    routing behaviour can be tested deterministically in virtual time.

    Inputs: service, cluster and URI properties (the routing configuration),
    a delay generator (response delay per destination) and a QPS generator
    (requests per interval).

    Control: ``run`` / ``run_until`` return a ``Future`` (or ``None`` when
    nothing is queued); ``run_wait`` blocks; ``run_async`` awaits; ``stop``
    halts cooperatively; ``shutdown`` tears everything down.

    Status: ``get_client_counters`` gives the hits per destination during the
    last interval, ``get_points`` the ring points per destination.
    """

    def __init__(
        self,
        service_properties: ServiceProperties,
        cluster_properties: ClusterProperties,
        uri_properties: UriProperties,
        delay_generator: DelayGenerator,
        qps_generator: QPSGenerator,
        *,
        settings: SimulationSettings | None = None,
        registry: PropertyRegistry | None = None,
        router: RoutingCollaborator | None = None,
    ) -> None:
        self.settings = settings or SimulationSettings()
        self.service_name = service_properties.service_name

        self.registry = registry or PropertyRegistry()
        self.registry.register(service_properties, cluster_properties, uri_properties)

        self.scheduler = Scheduler()
        self.router = router if router is not None else RingRouter(self.registry, clock=self.scheduler)

        self.counters = ClientCounters()
        self.response_log = ResponseLog(max_responses=self.settings.max_responses)
        self.transport = SimulatedTransport(self.scheduler, delay_generator)
        self.driver = TrafficDriver(
            self.service_name,
            self.router,
            self.transport,
            qps_generator,
            self.counters,
            self.scheduler,
            self.response_log,
        )

        self._start_router()

        # Fire the driver repeatedly at the configured interval.
        self.scheduler.schedule_repeating(
            self.driver,
            self.settings.initial_delay_ms,
            self.settings.interval_ms,
        )

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig | str | Path,
        delay_generator: DelayGenerator | None = None,
        qps_generator: QPSGenerator | None = None,
        **kwargs,
    ) -> LoadBalancerSimulator:
        """Build a simulator from a config object or YAML file.

        Generators passed explicitly win over the ones described in the config.
        """
        if not isinstance(config, SimulationConfig):
            config = load_config(config)
        if delay_generator is None:
            if config.delay is None:
                raise InvalidArgument("No delay generator given or configured")
            delay_generator = create_delay_generator(config.delay)
        if qps_generator is None:
            if config.qps is None:
                raise InvalidArgument("No QPS generator given or configured")
            qps_generator = create_qps_generator(config.qps)
        kwargs.setdefault("settings", config.settings)
        return cls(
            config.service,
            config.cluster,
            config.uris,
            delay_generator,
            qps_generator,
            **kwargs,
        )

    # -- control -------------------------------------------------------------

    def run(self, duration: int = 0) -> Future | None:
        """Run for *duration* virtual ms, or until stopped when *duration* <= 0 (async)."""
        if duration <= 0:
            return self.scheduler.run(0)
        return self.scheduler.run(self.scheduler.current_time + duration)

    def run_until(self, expected_time: int) -> Future | None:
        """Run until the virtual clock reaches *expected_time* (async)."""
        return self.scheduler.run_until(expected_time)

    def run_wait(self, duration: int = 0) -> None:
        """Run for *duration* virtual ms and block until the run ends."""
        running = self.run(duration)
        if running is None:
            return
        try:
            running.result()
        except Exception as exc:
            logger.error("Simulation error: %s", exc)
            raise

    async def run_async(self, duration: int = 0) -> None:
        """Run for *duration* virtual ms, awaiting the run from asyncio code."""
        running = self.run(duration)
        if running is not None:
            await asyncio.wrap_future(running)

    def stop(self) -> None:
        self.scheduler.stop()

    def shutdown(self) -> None:
        """Shut the scheduler and the router down.

        Raises :class:`ShutdownTimeout` if the router does not acknowledge
        within ``settings.shutdown_timeout_s`` seconds.
        """
        timeout = self.settings.shutdown_timeout_s
        self.scheduler.shutdown(timeout=timeout)

        done = threading.Event()
        self.router.shutdown(done.set)
        if not done.wait(timeout):
            raise ShutdownTimeout("unable to shutdown state")
        logger.info("Simulator for %s shut down at %d", self.service_name, self.current_time)

    # -- status --------------------------------------------------------------

    @property
    def current_time(self) -> int:
        return self.scheduler.current_time

    def get_clock(self) -> Clock:
        return self.scheduler

    @property
    def responses(self) -> list[SimulatedResponse]:
        return list(self.response_log.responses)

    def get_client_counters(self) -> dict[Destination, int]:
        """Hits per destination during the last traffic interval."""
        return self.counters.snapshot()

    def get_points(self, service_name: str, partition: int) -> dict[Destination, int]:
        """Ring points per destination for *service_name*'s *partition*.

        Raises :class:`ServiceUnavailable` for unknown services or partitions.
        """
        ring = self.router.get_rings(service_name).get(partition)
        if ring is None:
            raise ServiceUnavailable(f"No ring for {service_name} partition {partition}")
        points: dict[Destination, int] = {}
        for destination in ring.iter_from(0):
            points[destination] = points.get(destination, 0) + 1
        return points

    def get_point(self, service_name: str, partition: int, destination: Destination) -> int:
        """Ring points of one destination; 0 when the service is unavailable."""
        try:
            points = self.get_points(service_name, partition)
        except ServiceUnavailable:
            return 0
        return points.get(destination, 0)

    def get_count_percent(self, destination: Destination) -> float:
        """Share of the last interval's requests that went to *destination*."""
        return self.counters.percent(destination)

    # -- internals -----------------------------------------------------------

    def _start_router(self) -> None:
        ready: Future = Future()
        self.router.start(lambda: ready.set_result(None))
        try:
            ready.result(timeout=self.settings.start_timeout_s)
        except FutureTimeout as exc:
            raise SimulationError(
                f"Router did not start within {self.settings.start_timeout_s} seconds"
            ) from exc
        logger.info("Simulator for %s ready", self.service_name)
