"""Configuration management for autorip."""

from enum import Enum
from pathlib import Path

import tomli
from pydantic import BaseModel, Field, field_validator


class AutoRipMode(str, Enum):
    """Which pipeline entry point a dispatched batch goes to."""

    RIP = "rip"
    BACKUP = "backup"


class AutoRipConfig(BaseModel):
    """Main configuration for autorip."""

    # Polling
    poll_interval: float = Field(default=5.0)  # seconds between scans
    mode: AutoRipMode = Field(default=AutoRipMode.RIP)

    # Paths
    rip_dir: Path = Field(default=Path("~/autorip/rips"), validate_default=True)
    backup_dir: Path = Field(
        default=Path("~/autorip/backups"),
        validate_default=True,
    )
    log_dir: Path = Field(
        default=Path("~/.local/share/autorip/logs"),
        validate_default=True,
    )

    # MakeMKV
    makemkv_con: str = Field(default="makemkvcon")
    makemkv_info_timeout: int = Field(default=60)  # 1 minute
    makemkv_rip_timeout: int = Field(default=7200)  # 2 hours

    # Drive handling
    eject_after: bool = Field(default=False)
    eject_timeout: int = Field(default=30)

    # Notifications
    ntfy_topic: str | None = None
    ntfy_request_timeout: int = Field(default=10)

    @field_validator("rip_dir", "backup_dir", "log_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str) -> Path:
        """Expand user home directory in paths."""
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()

    @field_validator("poll_interval")
    @classmethod
    def positive_interval(cls, v: float) -> float:
        """Reject intervals that would spin the scheduler."""
        if v <= 0:
            msg = "poll_interval must be greater than zero"
            raise ValueError(msg)
        return v

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        for dir_path in [self.rip_dir, self.backup_dir, self.log_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)


def default_config_paths() -> list[Path]:
    """Config locations checked in order when no path is given."""
    return [
        Path.home() / ".config" / "autorip" / "config.toml",
        Path.cwd() / "autorip.toml",
    ]


def load_config(config_path: Path | None = None) -> AutoRipConfig:
    """Load configuration from file or defaults."""
    if config_path is None:
        for path in default_config_paths():
            if path.exists():
                config_path = path
                break

    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomli.load(f)
        return AutoRipConfig(**config_data)
    return AutoRipConfig()


def create_sample_config(path: Path) -> None:
    """Create a sample configuration file."""
    sample_config = """# autorip Configuration
# =====================

# ============================================================================
# POLLING
# ============================================================================

poll_interval = 5                                 # Seconds between drive scans
mode = "rip"                                      # "rip" (MKV titles) or "backup" (decrypted disc backup)

# ============================================================================
# OUTPUT
# ============================================================================

rip_dir = "~/autorip/rips"                        # Auto-created: one subdirectory per disc in rip mode
backup_dir = "~/autorip/backups"                  # Auto-created: one subdirectory per disc in backup mode
log_dir = "~/.local/share/autorip/logs"           # Auto-created: log file and process lock

# ============================================================================
# MAKEMKV
# ============================================================================

makemkv_con = "makemkvcon"                        # MakeMKV command-line executable
makemkv_info_timeout = 60                         # Disc scan timeout (seconds)
makemkv_rip_timeout = 7200                        # Per-disc rip/backup timeout (seconds)

# ============================================================================
# OPTIONAL
# ============================================================================

eject_after = false                               # Eject each disc after it is processed successfully
eject_timeout = 30                                # Eject command timeout (seconds)
# ntfy_topic = "https://ntfy.sh/your_topic"       # Notification topic URL
ntfy_request_timeout = 10                         # Notification request timeout (seconds)
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(sample_config)
