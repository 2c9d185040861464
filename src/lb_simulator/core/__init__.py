from .errors import (
    SimulationError,
    InvalidArgument,
    DelayUnavailable,
    ServiceUnavailable,
    AlreadyRunning,
    SchedulerShutdown,
    ShutdownTimeout,
)
from .interfaces import (
    Destination,
    RequestContext,
    SimulatedRequest,
    SimulatedResponse,
    Clock,
    QPSGenerator,
    DelayGenerator,
    RoutingCollaborator,
)
from .clock import VirtualClock
from .tasks import TimedTask, TaskQueue, UNBOUNDED
from .scheduler import Scheduler
from .results import ClientCounters, ResponseLog
from .config import (
    ServiceProperties,
    ClusterProperties,
    UriProperties,
    SimulationSettings,
    SimulationConfig,
    load_config,
)
from .simulator import LoadBalancerSimulator

__all__ = [
    "SimulationError",
    "InvalidArgument",
    "DelayUnavailable",
    "ServiceUnavailable",
    "AlreadyRunning",
    "SchedulerShutdown",
    "ShutdownTimeout",
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
]
