"""Protocol definitions and core data types for the simulator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from ..routing.ring import HashRing

#: A resolved destination, identified by its URI (e.g. ``http://host1:8080/svc``).
Destination = str

#: URI scheme of the synthetic requests routed through the simulator.
REQUEST_SCHEME = "lb"


# ---------------------------------------------------------------------------
# Core data types
# ---------------------------------------------------------------------------

@dataclass
class RequestContext:
    """Per-request routing hints handed to the routing collaborator."""

    partition: int | None = None


@dataclass(frozen=True)
class SimulatedRequest:
    """A synthetic request addressed to a logical service."""

    uri: str

    @classmethod
    def for_service(cls, service_name: str, index: int) -> SimulatedRequest:
        return cls(uri=f"{REQUEST_SCHEME}://{service_name}/{index}")

    @property
    def service_name(self) -> str:
        return urlsplit(self.uri).netloc

    @property
    def path(self) -> str:
        return urlsplit(self.uri).path


@dataclass
class SimulatedResponse:
    """The response produced by the simulated transport.

    The entity echoes the request path; it carries no backend semantics.
    """

    request: SimulatedRequest
    destination: Destination
    sent_at: int
    completed_at: int
    entity: bytes = b""
    error: str | None = None

    @property
    def latency(self) -> int:
        return self.completed_at - self.sent_at

    @property
    def has_error(self) -> bool:
        return self.error is not None


CompletionCallback = Callable[[SimulatedResponse], None]


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------

@runtime_checkable
class Clock(Protocol):
    def now(self) -> int:
        """Current virtual time in milliseconds."""
        ...


@runtime_checkable
class QPSGenerator(Protocol):
    """Supplies the number of requests to issue in the next interval."""

    def next_qps(self) -> int:
        """Return the request count, or raise ``InvalidArgument`` when exhausted."""
        ...


@runtime_checkable
class DelayGenerator(Protocol):
    """Supplies the response delay for a destination."""

    def next_delay(self, destination: Destination) -> int:
        """Return a delay in ms, or raise ``InvalidArgument`` if none is configured."""
        ...


@runtime_checkable
class RoutingCollaborator(Protocol):
    """
    The request-routing component under test.

    The simulator only submits requests through it and inspects its
    weighted-selection structure; the routing policy itself is opaque.
    """

    def start(self, on_ready: Callable[[], None]) -> None:
        """Bring the router up and invoke *on_ready* once it can resolve."""
        ...

    def shutdown(self, on_done: Callable[[], None]) -> None:
        """Tear the router down and invoke *on_done* when finished."""
        ...

    def resolve(self, request_uri: str, context: RequestContext) -> Destination:
        """Pick a destination, raising ``ServiceUnavailable`` when none exists."""
        ...

    def get_rings(self, service_name: str) -> dict[int, HashRing]:
        """Return the selection ring per partition for *service_name*."""
        ...
