"""Scan cycle and dispatch of new discs to the processing pipeline."""

import logging
from collections.abc import Callable

from autorip.config import AutoRipMode
from autorip.disc.inventory import DiscInventory
from autorip.disc.models import DiscRecord
from autorip.error_handling import is_executable_missing
from autorip.notify.ntfy import NtfyNotifier
from autorip.services.pipeline import ProcessingPipeline

from .status import LifecyclePhase, StatusNotifier
from .tracker import DedupTracker, OperationGate

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs one scan cycle at a time and hands new discs to the pipeline."""

    def __init__(
        self,
        inventory: DiscInventory,
        pipeline: ProcessingPipeline,
        *,
        mode: AutoRipMode,
        tracker: DedupTracker,
        gate: OperationGate,
        status: StatusNotifier,
        is_polling: Callable[[], bool],
        notifier: NtfyNotifier | None = None,
    ):
        self.inventory = inventory
        self.pipeline = pipeline
        self.mode = mode
        self.tracker = tracker
        self.gate = gate
        self.status = status
        self.is_polling = is_polling
        self.notifier = notifier
        self.last_run_ok: bool | None = None

    async def scan_cycle(self) -> list[DiscRecord]:
        """Detect, filter, enrich and dispatch. Returns the dispatched batch.

        Inventory failures end the cycle without marking anything, so the
        next tick starts over.
        """
        try:
            detected = await self.inventory.detect_available()

            present = {disc.drive_id: disc.title for disc in detected}
            self.tracker.prune(present)

            new_discs = self.tracker.filter_new(detected)
            if not new_discs:
                return []

            logger.info(
                "Detected %d new disc(s), getting full info...",
                len(new_discs),
            )
            batch = await self.inventory.enrich(new_discs)
        except Exception as e:
            if is_executable_missing(e):
                logger.debug("Scan skipped: %s", e)
            else:
                logger.warning("Scan failed: %s", e)
            return []

        if not batch:
            logger.info("No valid discs left after scanning")
            return []

        logger.info("Starting processing for %d disc(s)...", len(batch))
        await self.process(batch)
        return batch

    async def process(self, batch: list[DiscRecord]) -> bool:
        """Mark the batch processed, then run the configured pipeline.

        Pipeline failures are logged and swallowed. A failed disc stays marked
        and is only reconsidered once it leaves the drive or its title changes.
        Returns True when the pipeline finished the whole batch.
        """
        if not batch:
            return False

        if not self.gate.try_begin_processing():
            logger.warning("Processing already in progress, dropping batch")
            return False

        self.status.publish(LifecyclePhase.PROCESSING)
        titles = ", ".join(disc.title for disc in batch)
        succeeded = False
        try:
            # Mark before work so a retrigger never re-selects these discs
            self.tracker.mark(batch)
            self._notify("notify_processing_started", titles, self.mode.value)

            try:
                if self.mode is AutoRipMode.BACKUP:
                    await self.pipeline.run_backup(batch)
                else:
                    await self.pipeline.run_rip(batch)
            except Exception as e:
                logger.exception("Processing failed for %s", titles)
                self._notify("notify_error", str(e), context=titles)
            else:
                succeeded = True
                logger.info("Finished %s of %d disc(s)", self.mode.value, len(batch))
                self._notify("notify_processing_complete", titles, self.mode.value)
        finally:
            self.last_run_ok = succeeded
            self.gate.end_processing()
            self.status.publish(
                LifecyclePhase.SCANNING if self.is_polling() else LifecyclePhase.IDLE,
            )
        return succeeded

    def _notify(self, method: str, *args, **kwargs) -> None:
        if not self.notifier:
            return
        try:
            getattr(self.notifier, method)(*args, **kwargs)
        except Exception:
            logger.exception("Notification %s failed", method)
