"""Dedup tracker and operation gate.

The tracker remembers which drive holds a disc that has already been handed
to the pipeline. The gate keeps scans and processing runs from overlapping.
Both are only touched from the event loop thread, so neither needs a lock.
"""

import logging
from collections.abc import Iterable

from autorip.disc.models import DiscRecord

from .status import LifecyclePhase

logger = logging.getLogger(__name__)


class DedupTracker:
    """In-memory ``drive_id -> title`` record of processed discs."""

    def __init__(self) -> None:
        self._processed: dict[int, str] = {}

    def __contains__(self, drive_id: object) -> bool:
        return drive_id in self._processed

    def __len__(self) -> int:
        return len(self._processed)

    def get(self, drive_id: int) -> str | None:
        return self._processed.get(drive_id)

    def snapshot(self) -> dict[int, str]:
        return dict(self._processed)

    def is_processed(self, disc: DiscRecord) -> bool:
        return disc.drive_id in self._processed

    def mark(self, discs: Iterable[DiscRecord]) -> None:
        for disc in discs:
            self._processed[disc.drive_id] = disc.title

    def prune(self, present: dict[int, str]) -> list[int]:
        """Forget drives that are now empty or hold a different title.

        ``present`` maps drive id to the title currently in that drive.
        Returns the drive ids that were forgotten.
        """
        stale = [
            drive_id
            for drive_id, title in self._processed.items()
            if present.get(drive_id) != title
        ]
        for drive_id in stale:
            logger.debug(
                "Drive %s no longer holds '%s', forgetting it",
                drive_id,
                self._processed[drive_id],
            )
            del self._processed[drive_id]
        return stale

    def filter_new(self, discs: Iterable[DiscRecord]) -> list[DiscRecord]:
        return [disc for disc in discs if disc.drive_id not in self._processed]

    def clear(self) -> None:
        self._processed.clear()


class OperationGate:
    """Single three-state guard for scan cycles and processing runs.

    ``IDLE`` means nothing is in flight. A scan cycle holds ``SCANNING`` and
    moves to ``PROCESSING`` while it dispatches, so both views below report
    true during a processing run started from a scan.
    """

    def __init__(self) -> None:
        self._state = LifecyclePhase.IDLE
        self._scan_held = False

    @property
    def state(self) -> LifecyclePhase:
        return self._state

    @property
    def scan_active(self) -> bool:
        return self._scan_held

    @property
    def processing_active(self) -> bool:
        return self._state is LifecyclePhase.PROCESSING

    @property
    def busy(self) -> bool:
        return self._state is not LifecyclePhase.IDLE

    def try_begin_scan(self) -> bool:
        """IDLE -> SCANNING. Returns False if anything is in flight."""
        if self._state is not LifecyclePhase.IDLE:
            return False
        self._state = LifecyclePhase.SCANNING
        self._scan_held = True
        return True

    def end_scan(self) -> None:
        self._scan_held = False
        self._state = LifecyclePhase.IDLE

    def try_begin_processing(self) -> bool:
        """SCANNING or IDLE -> PROCESSING. Returns False if already processing."""
        if self._state is LifecyclePhase.PROCESSING:
            return False
        self._state = LifecyclePhase.PROCESSING
        return True

    def end_processing(self) -> None:
        if self._state is not LifecyclePhase.PROCESSING:
            return
        self._state = (
            LifecyclePhase.SCANNING if self._scan_held else LifecyclePhase.IDLE
        )
