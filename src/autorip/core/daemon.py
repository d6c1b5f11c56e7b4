"""Daemon management for autorip."""

import asyncio
import logging
import signal
import sys
from pathlib import Path

import daemon

from autorip.config import AutoRipConfig
from autorip.process_lock import ProcessLock

from .service import AutoRipService, build_service

logger = logging.getLogger(__name__)


class AutoRipDaemon:
    """Manages the auto-rip service lifecycle as a long-running process."""

    def __init__(self, config: AutoRipConfig):
        self.config = config
        self.service: AutoRipService | None = None
        self.lock: ProcessLock | None = None
        self._stop_event: asyncio.Event | None = None

    def start_daemon(self) -> None:
        """Start autorip as a background daemon."""
        log_file_path = self.config.log_dir / "autorip.log"
        self.config.ensure_directories()

        process_info = ProcessLock.find_autorip_process()
        if process_info:
            pid, mode = process_info
            msg = f"autorip is already running in {mode} mode (PID {pid})"
            raise RuntimeError(msg)

        logger.info("Starting autorip daemon...")
        logger.info("Log file: %s", log_file_path)

        daemon_context = daemon.DaemonContext(
            working_directory=Path.cwd(),
            umask=0o002,
        )

        with daemon_context:
            self._run_daemon(log_file_path)

    def start_systemd_mode(self) -> None:
        """Start for systemd (foreground, systemd handles logging)."""
        self._run_daemon(None)

    def _run_daemon(self, log_file_path: Path | None) -> None:
        """Run the actual daemon process."""
        if log_file_path:
            self._setup_daemon_logging(log_file_path)

        self.lock = ProcessLock(self.config)
        if not self.lock.acquire():
            logger.error("Failed to acquire process lock - another instance may be running")
            sys.exit(1)

        try:
            asyncio.run(self.run())
        except Exception as e:
            logger.exception("Error in daemon: %s", e)
            sys.exit(1)
        finally:
            self.lock.release()

    async def run(self) -> None:
        """Run the service until a stop is requested."""
        self._stop_event = asyncio.Event()
        self.service = build_service(self.config)

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self._handle_signal, signum)

        self.service.start()
        try:
            await self._stop_event.wait()
        finally:
            for signum in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(signum)
            self.service.stop()
            # In-flight rips finish before the process exits
            await self.service.wait_idle()
            logger.info("autorip daemon stopped")

    def _handle_signal(self, signum: int) -> None:
        logger.info("Received signal %s, stopping daemon", signum)
        self.stop()

    def stop(self) -> None:
        """Request the daemon to stop."""
        if self._stop_event:
            self._stop_event.set()
        elif self.service:
            self.service.stop()

    def _setup_daemon_logging(self, log_file_path: Path) -> None:
        """Set up logging for daemon mode."""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
