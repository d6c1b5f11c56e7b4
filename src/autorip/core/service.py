"""The auto-rip service: public start/stop/status surface."""

import logging
from collections.abc import Callable

from autorip.config import AutoRipConfig
from autorip.disc.inventory import DiscInventory, MakeMKVInventory
from autorip.disc.models import DiscRecord
from autorip.notify.ntfy import NtfyNotifier
from autorip.services.pipeline import MakeMKVPipeline, ProcessingPipeline

from .dispatcher import Dispatcher
from .scheduler import PollScheduler
from .status import LifecyclePhase, ServiceStatus, StatusCallback, StatusNotifier
from .tracker import DedupTracker, OperationGate

logger = logging.getLogger(__name__)


class AutoRipService:
    """Polls the drives and triggers one processing run per inserted disc.

    Must be started and stopped from inside a running event loop.
    """

    def __init__(
        self,
        config: AutoRipConfig,
        inventory: DiscInventory,
        pipeline: ProcessingPipeline,
        *,
        notifier: NtfyNotifier | None = None,
    ):
        self.config = config
        self.tracker = DedupTracker()
        self.gate = OperationGate()
        self.status = StatusNotifier()
        self.is_polling = False

        self.dispatcher = Dispatcher(
            inventory,
            pipeline,
            mode=config.mode,
            tracker=self.tracker,
            gate=self.gate,
            status=self.status,
            is_polling=lambda: self.is_polling,
            notifier=notifier,
        )
        self.scheduler = PollScheduler(
            config.poll_interval,
            self.gate,
            self.dispatcher.scan_cycle,
        )

    def start(self) -> None:
        """Start the polling loop."""
        if self.is_polling:
            logger.info("Auto-rip service is already running")
            return

        logger.info("Starting auto-rip service (%s mode)", self.config.mode.value)
        self.is_polling = True
        self.scheduler.start()
        self.status.publish(LifecyclePhase.SCANNING)

    def stop(self) -> None:
        """Stop polling. A scan or processing run in flight is not interrupted."""
        if not self.is_polling:
            return

        logger.info("Stopping auto-rip service")
        self.is_polling = False
        self.scheduler.stop()
        self.status.publish(LifecyclePhase.IDLE)

    def get_status(self) -> ServiceStatus:
        return ServiceStatus(
            is_polling=self.is_polling,
            current_operation=(
                LifecyclePhase.PROCESSING.value
                if self.gate.processing_active
                else None
            ),
        )

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Receive a ``StatusEvent`` on every phase transition."""
        return self.status.subscribe(callback)

    async def scan_once(self) -> list[DiscRecord]:
        """Run a single scan cycle now, unless one is already in flight."""
        if not self.gate.try_begin_scan():
            logger.info("Scan already in progress")
            return []
        try:
            return await self.dispatcher.scan_cycle()
        finally:
            self.gate.end_scan()

    async def wait_idle(self) -> None:
        await self.scheduler.wait_idle()


def build_service(config: AutoRipConfig) -> AutoRipService:
    """Wire the service to MakeMKV and, if configured, ntfy."""
    notifier = NtfyNotifier(config) if config.ntfy_topic else None
    return AutoRipService(
        config,
        MakeMKVInventory(config),
        MakeMKVPipeline(config),
        notifier=notifier,
    )
