"""Periodic timer that runs one scan cycle per tick."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .tracker import OperationGate

logger = logging.getLogger(__name__)


class PollScheduler:
    """Fires a tick every ``interval`` seconds on the running event loop.

    A tick that finds a scan or processing run in flight is dropped, not
    deferred. Cycles run as their own tasks so the timer keeps firing (and
    dropping) while a long cycle is running.
    """

    def __init__(
        self,
        interval: float,
        gate: OperationGate,
        scan_cycle: Callable[[], Awaitable[object]],
    ):
        self.interval = interval
        self.gate = gate
        self.scan_cycle = scan_cycle
        self.timer_task: asyncio.Task | None = None
        self._cycle_tasks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self.timer_task is not None

    def start(self) -> None:
        """Start the timer on the running loop. Restarts a live timer."""
        self.stop()
        loop = asyncio.get_running_loop()
        self.timer_task = loop.create_task(self._run_timer())
        logger.info("Polling started with interval %.1fs", self.interval)

    def stop(self) -> None:
        """Cancel the timer. Cycles already in flight run to completion."""
        if self.timer_task:
            self.timer_task.cancel()
            self.timer_task = None

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._fire()

    def _fire(self) -> None:
        if self.gate.busy:
            logger.debug("Tick skipped, operation in progress")
            return

        task = asyncio.get_running_loop().create_task(self.tick())
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    async def tick(self) -> bool:
        """Run one scan cycle if nothing else is in flight.

        Returns False when the tick was dropped.
        """
        if not self.gate.try_begin_scan():
            logger.debug("Tick skipped, operation in progress")
            return False

        try:
            await self.scan_cycle()
        except Exception:
            logger.exception("Error during poll")
        finally:
            self.gate.end_scan()
        return True

    async def wait_idle(self) -> None:
        """Wait for cycles already in flight to finish."""
        while self._cycle_tasks:
            await asyncio.gather(*list(self._cycle_tasks), return_exceptions=True)
