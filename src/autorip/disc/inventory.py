"""Disc inventory: which discs are inserted, and what is on them."""

import asyncio
import logging
import re
import subprocess
import time
from abc import ABC, abstractmethod

from autorip.config import AutoRipConfig
from autorip.error_handling import ExecutableNotFoundError, ExternalToolError

from .models import DiscRecord, TitleInfo

logger = logging.getLogger(__name__)

# DRV:index,visible,enabled,flags,"drive name","disc name","device"
DRV_PATTERN = re.compile(
    r'^DRV:(\d+),(\d+),(\d+),(\d+),"([^"]*)","([^"]*)","([^"]*)"',
)
TINFO_PATTERN = re.compile(r"^TINFO:(\d+),(\d+),\d+,(.*)$")

# MakeMKV drive state reported in the "visible" column
DRIVE_STATE_INSERTED = 2

# MakeMKV title attribute ids
ATTR_NAME = 2
ATTR_CHAPTERS = 8
ATTR_DURATION = 9
ATTR_SIZE_BYTES = 11
ATTR_OUTPUT_FILENAME = 27


class DiscInventory(ABC):
    """Reports inserted discs and enriches them with title information."""

    @abstractmethod
    async def detect_available(self) -> list[DiscRecord]:
        """Cheap snapshot of inserted discs (drive id and title only)."""

    @abstractmethod
    async def enrich(self, discs: list[DiscRecord]) -> list[DiscRecord]:
        """Expensive full scan of the given discs.

        Returns the records that could be scanned, with ``file_info`` set.
        """


class MakeMKVInventory(DiscInventory):
    """Disc inventory backed by ``makemkvcon`` robot output."""

    def __init__(self, config: AutoRipConfig):
        self.config = config
        self.makemkv_con = config.makemkv_con

    async def detect_available(self) -> list[DiscRecord]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.list_discs)

    async def enrich(self, discs: list[DiscRecord]) -> list[DiscRecord]:
        loop = asyncio.get_running_loop()
        enriched = []
        for disc in discs:
            titles = await loop.run_in_executor(None, self.scan_titles, disc.drive_id)
            if not titles:
                logger.warning("No titles found on %s, skipping", disc)
                continue
            enriched.append(disc.with_file_info(titles))
        return enriched

    def list_discs(self) -> list[DiscRecord]:
        """List discs in all drives without scanning their contents."""
        output = self._run(
            ["--cache=1", "info", "disc:9999"],
            timeout=self.config.makemkv_info_timeout,
            allow_failure=True,
        )
        discs = parse_drive_list(output)
        logger.debug("MakeMKV reports %d disc(s) inserted", len(discs))
        return discs

    def scan_titles(self, drive_id: int) -> list[TitleInfo]:
        """Full scan of one drive's disc."""
        start_time = time.time()
        output = self._run(
            ["info", f"disc:{drive_id}"],
            timeout=self.config.makemkv_info_timeout,
        )
        logger.info(
            "MakeMKV scan of drive %d completed in %.1fs",
            drive_id,
            time.time() - start_time,
        )
        return parse_title_info(output)

    def _run(
        self,
        args: list[str],
        *,
        timeout: int,
        allow_failure: bool = False,
    ) -> str:
        cmd = [self.makemkv_con, "--robot", *args]
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ExecutableNotFoundError(self.makemkv_con, original_error=e) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(
                "MakeMKV",
                message=f"MakeMKV '{' '.join(args)}' timed out after {timeout}s",
                original_error=e,
            ) from e

        # Drive listing exits non-zero on some setups but still reports drives
        if result.returncode != 0 and not (allow_failure and "DRV:" in result.stdout):
            raise ExternalToolError(
                "MakeMKV",
                exit_code=result.returncode,
                stderr=extract_makemkv_error(result.stderr or result.stdout),
            )
        return result.stdout


def parse_drive_list(output: str) -> list[DiscRecord]:
    """Parse DRV lines into records for drives that hold a disc."""
    discs = []
    for line in output.splitlines():
        match = DRV_PATTERN.match(line.strip())
        if not match:
            continue

        index, visible, _enabled, _flags, drive_name, disc_name, device = (
            match.groups()
        )
        if int(visible) != DRIVE_STATE_INSERTED or not disc_name:
            continue

        discs.append(
            DiscRecord(
                drive_id=int(index),
                title=disc_name,
                device=device or None,
                drive_name=drive_name or None,
            ),
        )
    return discs


def parse_title_info(output: str) -> list[TitleInfo]:
    """Parse TINFO lines into titles, ordered by title id."""
    titles: dict[int, TitleInfo] = {}

    for line in output.splitlines():
        match = TINFO_PATTERN.match(line.strip())
        if not match:
            continue

        title_id, attr_id, raw_value = match.groups()
        title_id = int(title_id)
        attr_id = int(attr_id)
        value = raw_value.strip().strip('"')

        title = titles.setdefault(title_id, TitleInfo(title_id=title_id))

        if attr_id == ATTR_NAME:
            title.name = value
        elif attr_id == ATTR_CHAPTERS:
            title.chapters = int(value) if value.isdigit() else 0
        elif attr_id == ATTR_DURATION:
            title.duration = parse_duration(value)
        elif attr_id == ATTR_SIZE_BYTES:
            title.size = int(value) if value.isdigit() else 0
        elif attr_id == ATTR_OUTPUT_FILENAME:
            title.filename = value

    return [titles[title_id] for title_id in sorted(titles)]


def parse_duration(duration_str: str) -> int:
    """Parse H:MM:SS into seconds. Malformed values count as zero."""
    try:
        parts = [int(part) for part in duration_str.split(":")]
    except ValueError:
        return 0

    seconds = 0
    for part in parts:
        seconds = seconds * 60 + part
    return seconds


def extract_makemkv_error(output: str) -> str:
    """Extract a clean error message from MakeMKV MSG output."""
    for line in output.strip().split("\n"):
        if line.startswith("MSG:"):
            # MSG:code,flags,count,"text",...
            parts = line.split(",", 4)
            if len(parts) >= 4:
                text = parts[3].strip('"')
                lowered = text.lower()
                if (
                    "too old" in lowered
                    or "registration key" in lowered
                    or "failed" in lowered
                    or "error" in lowered
                ):
                    return text
    return output.strip()
