"""Shared test configuration and fixtures."""

import asyncio
import logging

import pytest

from autorip.cli import cleanup_logging
from autorip.config import AutoRipConfig
from autorip.disc.inventory import DiscInventory
from autorip.disc.models import DiscRecord, TitleInfo
from autorip.services.pipeline import ProcessingPipeline


class FakeInventory(DiscInventory):
    """Inventory whose inserted discs are set directly by the test."""

    def __init__(self, discs=None):
        self.discs: list[DiscRecord] = list(discs or [])
        self.detect_calls = 0
        self.enrich_calls: list[list[DiscRecord]] = []
        self.detect_error: Exception | None = None
        self.enrich_error: Exception | None = None

    async def detect_available(self) -> list[DiscRecord]:
        self.detect_calls += 1
        if self.detect_error:
            raise self.detect_error
        return [DiscRecord(d.drive_id, d.title, d.device) for d in self.discs]

    async def enrich(self, discs: list[DiscRecord]) -> list[DiscRecord]:
        self.enrich_calls.append(list(discs))
        if self.enrich_error:
            raise self.enrich_error
        return [
            disc.with_file_info([TitleInfo(title_id=0, name=disc.title, duration=5400)])
            for disc in discs
        ]


class FakePipeline(ProcessingPipeline):
    """Pipeline that records batches and can fail or block on demand."""

    def __init__(self):
        self.rip_batches: list[list[DiscRecord]] = []
        self.backup_batches: list[list[DiscRecord]] = []
        self.error: Exception | None = None
        self.release: asyncio.Event | None = None
        self.entered: asyncio.Event | None = None

    def block(self) -> None:
        """Hold every run until ``release`` is set."""
        self.release = asyncio.Event()
        self.entered = asyncio.Event()

    async def _run(self, batch):
        if self.entered:
            self.entered.set()
        if self.release:
            await self.release.wait()
        if self.error:
            raise self.error

    async def run_rip(self, batch: list[DiscRecord]) -> None:
        self.rip_batches.append(list(batch))
        await self._run(batch)

    async def run_backup(self, batch: list[DiscRecord]) -> None:
        self.backup_batches.append(list(batch))
        await self._run(batch)

    @property
    def dispatched(self) -> list[list[DiscRecord]]:
        return self.rip_batches + self.backup_batches


@pytest.fixture
def config(tmp_path):
    """Create test configuration."""
    return AutoRipConfig(
        poll_interval=0.01,
        rip_dir=tmp_path / "rips",
        backup_dir=tmp_path / "backups",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def inventory():
    return FakeInventory()


@pytest.fixture
def pipeline():
    return FakePipeline()


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging_handlers():
    """Close file handlers opened by the CLI after each test."""
    yield
    cleanup_logging()


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
