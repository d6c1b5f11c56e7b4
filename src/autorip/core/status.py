"""Lifecycle phases and the subscriber registry that publishes them."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class LifecyclePhase(Enum):
    """Externally observable phase of the service."""

    IDLE = "idle"
    SCANNING = "scanning"
    PROCESSING = "processing"


@dataclass(frozen=True)
class StatusEvent:
    """Published on every phase transition."""

    state: LifecyclePhase

    def as_dict(self) -> dict:
        return {"state": self.state.value}


@dataclass(frozen=True)
class ServiceStatus:
    """Point-in-time view returned by ``get_status()``."""

    is_polling: bool
    current_operation: str | None = None

    @property
    def phase(self) -> LifecyclePhase:
        if self.current_operation == LifecyclePhase.PROCESSING.value:
            return LifecyclePhase.PROCESSING
        if self.is_polling:
            return LifecyclePhase.SCANNING
        return LifecyclePhase.IDLE

    def as_dict(self) -> dict:
        return {
            "is_polling": self.is_polling,
            "current_operation": self.current_operation,
        }


StatusCallback = Callable[[StatusEvent], None]


class StatusNotifier:
    """Explicit callback registry for phase transitions."""

    def __init__(self) -> None:
        self._subscribers: list[StatusCallback] = []
        self.last_event: StatusEvent | None = None

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register a callback. Returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: StatusCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, phase: LifecyclePhase) -> StatusEvent:
        event = StatusEvent(phase)
        self.last_event = event
        logger.debug("Status: %s", phase.value)

        # Subscribers may unsubscribe while being notified
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Status subscriber %r failed", callback)
        return event
