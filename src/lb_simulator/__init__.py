"""
Load-Balancer Simulator
=======================

Deterministic, virtual-time simulation harness for load-testing a
request router.

Quick start::

    from lb_simulator import (
        LoadBalancerSimulator,
        ServiceProperties,
        ClusterProperties,
        UriProperties,
        ConstantQPS,
        FixedDelay,
    )
"""

from .core.errors import (
    SimulationError,
    InvalidArgument,
    DelayUnavailable,
    ServiceUnavailable,
    AlreadyRunning,
    SchedulerShutdown,
    ShutdownTimeout,
)
from .core.interfaces import (
    Destination,
    RequestContext,
    SimulatedRequest,
    SimulatedResponse,
    Clock,
    QPSGenerator,
    DelayGenerator,
    RoutingCollaborator,
)
from .core.clock import VirtualClock
from .core.tasks import TimedTask, TaskQueue, UNBOUNDED
from .core.scheduler import Scheduler
from .core.results import ClientCounters, ResponseLog
from .core.config import (
    ServiceProperties,
    ClusterProperties,
    UriProperties,
    SimulationSettings,
    SimulationConfig,
    load_config,
)
from .core.simulator import LoadBalancerSimulator

from .simulation.transport import SimulatedTransport
from .simulation.driver import TrafficDriver
from .simulation.generators import (
    ConstantQPS,
    SequenceQPS,
    PoissonQPS,
    FixedDelay,
    ProfileDelay,
    create_qps_generator,
    create_delay_generator,
)
from .simulation.asserter import DistributionAsserter

from .routing.registry import PropertyRegistry
from .routing.ring import HashRing
from .routing.router import RingRouter

__version__ = "0.1.0"

__all__ = [
    # Errors
    "SimulationError",
    "InvalidArgument",
    "DelayUnavailable",
    "ServiceUnavailable",
    "AlreadyRunning",
    "SchedulerShutdown",
    "ShutdownTimeout",
    # Core
    "Destination",
    "RequestContext",
    "SimulatedRequest",
    "SimulatedResponse",
    "Clock",
    "QPSGenerator",
    "DelayGenerator",
    "RoutingCollaborator",
    "VirtualClock",
    "TimedTask",
    "TaskQueue",
    "UNBOUNDED",
    "Scheduler",
    "ClientCounters",
    "ResponseLog",
    "ServiceProperties",
    "ClusterProperties",
    "UriProperties",
    "SimulationSettings",
    "SimulationConfig",
    "load_config",
    "LoadBalancerSimulator",
    # Simulation
    "SimulatedTransport",
    "TrafficDriver",
    "ConstantQPS",
    "SequenceQPS",
    "PoissonQPS",
    "FixedDelay",
    "ProfileDelay",
    "create_qps_generator",
    "create_delay_generator",
    "DistributionAsserter",
    # Routing
    "PropertyRegistry",
    "HashRing",
    "RingRouter",
]
