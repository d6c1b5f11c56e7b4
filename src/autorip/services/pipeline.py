"""Processing pipeline: rip or back up a batch of discs."""

import asyncio
import logging
import re
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path

from autorip.config import AutoRipConfig
from autorip.disc.inventory import extract_makemkv_error
from autorip.disc.models import DiscRecord
from autorip.error_handling import (
    ExecutableNotFoundError,
    ExternalToolError,
    MediaError,
)

logger = logging.getLogger(__name__)


class ProcessingPipeline(ABC):
    """Runs a workflow over a batch of enriched disc records.

    Both entry points return on success and raise on failure.
    """

    @abstractmethod
    async def run_rip(self, batch: list[DiscRecord]) -> None:
        """Rip every title of every disc in the batch."""

    @abstractmethod
    async def run_backup(self, batch: list[DiscRecord]) -> None:
        """Make a decrypted backup of every disc in the batch."""


def safe_dirname(title: str) -> str:
    """Directory name for a disc title."""
    safe_name = re.sub(r"[^\w\s-]", "", title).strip()
    safe_name = re.sub(r"[-\s]+", "-", safe_name)
    return safe_name or "disc"


def output_dirname(disc: DiscRecord) -> str:
    """Per-drive directory name, so equal titles in two drives never share one."""
    return f"{safe_dirname(disc.title)}_drive{disc.drive_id}"


class MakeMKVPipeline(ProcessingPipeline):
    """Processing pipeline backed by ``makemkvcon mkv`` and ``makemkvcon backup``."""

    def __init__(self, config: AutoRipConfig):
        self.config = config
        self.makemkv_con = config.makemkv_con

    async def run_rip(self, batch: list[DiscRecord]) -> None:
        await self._run_batch(batch, self.rip_disc)

    async def run_backup(self, batch: list[DiscRecord]) -> None:
        await self._run_batch(batch, self.backup_disc)

    async def _run_batch(self, batch: list[DiscRecord], action) -> None:
        loop = asyncio.get_running_loop()
        for index, disc in enumerate(batch, start=1):
            logger.info("Processing %s (%d/%d)", disc, index, len(batch))
            output_dir = await loop.run_in_executor(None, action, disc)
            logger.info("Finished %s -> %s", disc, output_dir)
            if self.config.eject_after and disc.device:
                await loop.run_in_executor(None, self.eject, disc.device)

    def rip_disc(self, disc: DiscRecord) -> Path:
        """Rip all titles of one disc into its own directory."""
        output_dir = self.config.rip_dir / output_dirname(disc)
        output_dir.mkdir(parents=True, exist_ok=True)

        # MakeMKV names its output title_t00.mkv, title_t01.mkv, ...
        for existing_file in output_dir.glob("title_t*.mkv"):
            logger.debug("Removing existing MakeMKV output file: %s", existing_file)
            existing_file.unlink()

        self._run(["mkv", f"disc:{disc.drive_id}", "all", str(output_dir)])

        if not any(output_dir.glob("title_t*.mkv")):
            msg = f"MakeMKV produced no files for {disc}"
            raise MediaError(msg)
        return output_dir

    def backup_disc(self, disc: DiscRecord) -> Path:
        """Write a decrypted backup of one disc into its own directory."""
        output_dir = self.config.backup_dir / output_dirname(disc)
        output_dir.mkdir(parents=True, exist_ok=True)
        self._run(["backup", "--decrypt", f"disc:{disc.drive_id}", str(output_dir)])
        return output_dir

    def eject(self, device: str) -> bool:
        """Eject the disc from the drive."""
        try:
            result = subprocess.run(
                ["eject", device],
                check=False,
                capture_output=True,
                text=True,
                timeout=self.config.eject_timeout,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.warning("Error ejecting %s: %s", device, e)
            return False

        if result.returncode == 0:
            logger.info("Ejected disc from %s", device)
            return True
        logger.warning("Failed to eject %s: %s", device, result.stderr.strip())
        return False

    def _run(self, args: list[str]) -> None:
        cmd = [self.makemkv_con, "--robot", *args]
        logger.debug("Running %s", " ".join(cmd))
        start_time = time.time()
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.config.makemkv_rip_timeout,
            )
        except FileNotFoundError as e:
            raise ExecutableNotFoundError(self.makemkv_con, original_error=e) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(
                "MakeMKV",
                message=(
                    f"MakeMKV {args[0]} timed out after "
                    f"{self.config.makemkv_rip_timeout}s"
                ),
                original_error=e,
            ) from e

        if result.returncode != 0:
            raise ExternalToolError(
                "MakeMKV",
                exit_code=result.returncode,
                stderr=extract_makemkv_error(result.stderr or result.stdout),
            )
        logger.debug("MakeMKV %s completed in %.1fs", args[0], time.time() - start_time)
