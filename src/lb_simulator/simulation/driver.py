"""Traffic driver: the periodic task that issues each interval's requests."""

from __future__ import annotations

import logging

from ..core.errors import DelayUnavailable, InvalidArgument, ServiceUnavailable
from ..core.interfaces import (
    CompletionCallback,
    Destination,
    QPSGenerator,
    RequestContext,
    RoutingCollaborator,
    SimulatedRequest,
    SimulatedResponse,
)
from ..core.results import ClientCounters, ResponseLog
from ..core.scheduler import Scheduler
from .transport import SimulatedTransport

logger = logging.getLogger(__name__)


class TrafficDriver:
    """
    Called once per interval by the scheduler.

    Each firing resets the counters, asks the QPS generator how many requests
    to issue, resolves every request through the router and hands it to the
    transport. Generator exhaustion ends a firing quietly; a router that
    cannot resolve a destination is fatal and aborts the run.
    """

    def __init__(
        self,
        service_name: str,
        router: RoutingCollaborator,
        transport: SimulatedTransport,
        qps_generator: QPSGenerator,
        counters: ClientCounters,
        scheduler: Scheduler,
        response_log: ResponseLog | None = None,
    ) -> None:
        self.service_name = service_name
        self.router = router
        self.transport = transport
        self.qps_generator = qps_generator
        self.counters = counters
        self.response_log = response_log if response_log is not None else ResponseLog()
        self._scheduler = scheduler
        self._listeners: list[CompletionCallback] = []
        self.firings = 0
        self.last_fired_at: int | None = None

    def add_response_listener(self, listener: CompletionCallback) -> None:
        self._listeners.append(listener)

    def __call__(self) -> None:
        self.fire()

    def fire(self) -> int:
        """Issue one interval's worth of requests; returns how many were sent."""
        now = self._scheduler.current_time
        self.firings += 1
        self.last_fired_at = now
        self.counters.reset()

        try:
            qps = self.qps_generator.next_qps()
        except InvalidArgument:
            logger.debug("No QPS available at %d, skipping firing", now)
            return 0

        delays: dict[Destination, int] = {}
        issued = 0
        for i in range(qps):
            request = SimulatedRequest.for_service(self.service_name, i)
            try:
                destination = self.router.resolve(request.uri, RequestContext())
            except ServiceUnavailable:
                logger.error("Could not find service for request %s", request.uri)
                raise

            delay = delays.get(destination)
            if delay is None:
                try:
                    delay = self.transport.delay_for(destination)
                except DelayUnavailable:
                    logger.error("Delay is not available for %s", destination)
                    return issued
                delays[destination] = delay

            logger.debug("Dispatching %s to %s, delay %d", request.uri, destination, delay)
            self.counters.increment(destination)
            self.transport.send(destination, request, self._on_response, delay)
            issued += 1
        return issued

    def _on_response(self, response: SimulatedResponse) -> None:
        if response.has_error:
            raise AssertionError(f"Error response from {response.destination}: {response.error}")
        logger.debug("Got response for %s @ %d", response.request.uri, response.completed_at)
        self.response_log.record(response)
        for listener in self._listeners:
            listener(response)
