"""Single-instance locking and process discovery."""

import fcntl
import os
import signal
import subprocess
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autorip.config import AutoRipConfig


class ProcessLock:
    """Manages single instance locking and process discovery."""

    def __init__(self, config: "AutoRipConfig") -> None:
        self.lock_file = config.log_dir / "autorip.lock"
        self.lock_fd: int | None = None

    def acquire(self) -> bool:
        """Try to acquire exclusive lock. Returns True if successful."""
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            self.lock_fd = os.open(str(self.lock_file), os.O_CREAT | os.O_WRONLY)
            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            os.ftruncate(self.lock_fd, 0)
            os.write(self.lock_fd, str(os.getpid()).encode())
            os.fsync(self.lock_fd)
            return True
        except OSError:
            if self.lock_fd is not None:
                os.close(self.lock_fd)
                self.lock_fd = None
            return False

    def release(self) -> None:
        """Release the lock."""
        if self.lock_fd is not None:
            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
            except OSError:
                pass
            finally:
                self.lock_fd = None

    @staticmethod
    def find_autorip_process() -> tuple[int, str] | None:
        """Find running autorip daemon. Returns (pid, mode) or None."""
        try:
            result = subprocess.run(
                ["pgrep", "-a", "-f", "autorip start"],
                check=False,
                capture_output=True,
                text=True,
                timeout=2,
            )
        except (subprocess.SubprocessError, FileNotFoundError):
            return None

        if result.returncode != 0:
            return None

        own_pids = (os.getpid(), os.getppid())
        for line in result.stdout.strip().split("\n"):
            parts = line.split(maxsplit=1)
            if len(parts) < 2:
                continue
            try:
                pid = int(parts[0])
            except ValueError:
                continue
            cmdline = parts[1]

            if pid in own_pids:
                continue
            # Shells that merely ran the command are not the daemon
            if "python" not in cmdline and "/autorip" not in cmdline:
                continue

            if "--systemd" in cmdline:
                return (pid, "systemd")
            return (pid, "daemon")

        return None

    @staticmethod
    def is_process_running(pid: int) -> bool:
        """Check if a process with given PID is running."""
        try:
            os.kill(pid, 0)
            return True
        except OSError:
            return False

    @staticmethod
    def stop_process(pid: int, timeout: int = 10) -> bool:
        """Stop a process gracefully, then forcefully if needed."""
        try:
            os.kill(pid, signal.SIGTERM)

            for _ in range(timeout):
                if not ProcessLock.is_process_running(pid):
                    return True
                time.sleep(1)

            os.kill(pid, signal.SIGKILL)
            time.sleep(0.5)
            return not ProcessLock.is_process_running(pid)

        except OSError:
            return True  # Process already stopped
