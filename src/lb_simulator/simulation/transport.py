"""Simulated transport: turns "send now" into "complete after a virtual delay"."""

from __future__ import annotations

import logging
import operator

from ..core.errors import DelayUnavailable, InvalidArgument
from ..core.interfaces import (
    CompletionCallback,
    DelayGenerator,
    Destination,
    SimulatedRequest,
    SimulatedResponse,
)
from ..core.scheduler import Scheduler

logger = logging.getLogger(__name__)


class SimulatedTransport:
    """
    Stand-in for a network client.

    Sending a request schedules a one-shot completion on the scheduler; when
    the virtual clock reaches ``now + delay`` the completion callback receives
    a response echoing the request path. Nothing else is touched.
    """

    def __init__(self, scheduler: Scheduler, delay_generator: DelayGenerator | None = None) -> None:
        self._scheduler = scheduler
        self._delay_generator = delay_generator
        self.in_flight = 0
        self.sent = 0

    def delay_for(self, destination: Destination) -> int:
        """Ask the delay generator for *destination*'s delay."""
        if self._delay_generator is None:
            raise DelayUnavailable(f"No delay generator configured for {destination}")
        try:
            delay = self._delay_generator.next_delay(destination)
        except InvalidArgument as exc:
            raise DelayUnavailable(f"Delay is not available for {destination}") from exc
        return operator.index(delay)

    def send(
        self,
        destination: Destination,
        request: SimulatedRequest,
        on_complete: CompletionCallback,
        delay: int | None = None,
    ) -> None:
        """Dispatch *request* to *destination*, completing after *delay* ms.

        When *delay* is omitted it is taken from the delay generator. Raises
        :class:`DelayUnavailable` without scheduling anything if no delay can
        be found.
        """
        if delay is None:
            delay = self.delay_for(destination)
        else:
            try:
                delay = operator.index(delay)
            except TypeError as exc:
                raise InvalidArgument(f"delay must be an integer, got {delay!r}") from exc
        sent_at = self._scheduler.current_time

        def complete() -> None:
            self.in_flight -= 1
            on_complete(self._respond(destination, request, sent_at))

        self._scheduler.schedule_once(complete, delay)
        logger.debug("Sent %s to %s at %d, delay %d", request.uri, destination, sent_at, delay)
        self.in_flight += 1
        self.sent += 1

    def _respond(
        self,
        destination: Destination,
        request: SimulatedRequest,
        sent_at: int,
    ) -> SimulatedResponse:
        return SimulatedResponse(
            request=request,
            destination=destination,
            sent_at=sent_at,
            completed_at=self._scheduler.current_time,
            entity=request.path.encode(),
        )
