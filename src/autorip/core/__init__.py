"""Core polling, dedup and dispatch loop.

The service object composes the poll scheduler, the dispatcher, the dedup
tracker and the operation gate, and publishes phase changes to subscribers.
"""

from .service import AutoRipService, build_service
from .status import LifecyclePhase, ServiceStatus, StatusEvent

__all__ = [
    "AutoRipService",
    "LifecyclePhase",
    "ServiceStatus",
    "StatusEvent",
    "build_service",
]
