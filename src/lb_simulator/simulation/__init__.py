from .transport import SimulatedTransport
from .driver import TrafficDriver
from .generators import (
    ConstantQPS,
    SequenceQPS,
    PoissonQPS,
    FixedDelay,
    ProfileDelay,
    create_qps_generator,
    create_delay_generator,
)
from .asserter import DistributionAsserter

__all__ = [
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
]
