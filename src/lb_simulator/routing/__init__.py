from .registry import PropertyRegistry, PropertyStore
from .ring import HashRing
from .router import RingRouter

__all__ = [
    "PropertyRegistry",
    "PropertyStore",
    "HashRing",
    "RingRouter",
]
