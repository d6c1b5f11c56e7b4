"""Disc records passed between the inventory, dispatcher and pipeline."""

from dataclasses import dataclass, field, replace


@dataclass
class TitleInfo:
    """One title (output file) on a disc, as reported by a full scan."""

    title_id: int
    name: str | None = None
    duration: int = 0  # seconds
    size: int = 0  # bytes
    chapters: int = 0
    filename: str | None = None

    def __str__(self) -> str:
        hours, remainder = divmod(self.duration, 3600)
        minutes, seconds = divmod(remainder, 60)
        label = self.name or f"Title {self.title_id}"
        return f"{label}: {hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass
class DiscRecord:
    """A disc sitting in a drive.

    ``drive_id`` identifies the drive slot and stays stable across polls.
    ``file_info`` is only populated once the disc has been enriched.
    """

    drive_id: int
    title: str
    device: str | None = None
    drive_name: str | None = field(default=None, compare=False)
    file_info: list[TitleInfo] | None = field(default=None, compare=False)

    @property
    def is_enriched(self) -> bool:
        return self.file_info is not None

    def with_file_info(self, titles: list[TitleInfo]) -> "DiscRecord":
        return replace(self, file_info=list(titles))

    def __str__(self) -> str:
        where = self.device or f"drive {self.drive_id}"
        return f"disc '{self.title}' on {where}"
