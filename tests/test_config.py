"""Tests for configuration management."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from autorip.config import (
    AutoRipConfig,
    AutoRipMode,
    create_sample_config,
    load_config,
)


class TestAutoRipConfig:
    """Test AutoRipConfig model."""

    def test_defaults(self):
        config = AutoRipConfig()

        assert config.poll_interval == 5.0
        assert config.mode is AutoRipMode.RIP
        assert config.makemkv_con == "makemkvcon"
        assert config.eject_after is False
        assert config.ntfy_topic is None

    def test_default_paths_are_expanded(self):
        config = AutoRipConfig()

        assert "~" not in str(config.rip_dir)
        assert config.rip_dir.is_absolute()
        assert config.log_dir.is_absolute()

    def test_path_expansion(self):
        config = AutoRipConfig(rip_dir="~/rips")

        assert config.rip_dir == Path("~/rips").expanduser().resolve()

    @pytest.mark.parametrize("value", ["backup", " BACKUP ", "Backup"])
    def test_mode_is_normalized(self, value):
        assert AutoRipConfig(mode=value).mode is AutoRipMode.BACKUP

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            AutoRipConfig(mode="transcode")

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_interval_rejected(self, value):
        with pytest.raises(ValidationError, match="poll_interval"):
            AutoRipConfig(poll_interval=value)

    def test_ensure_directories(self, tmp_path):
        config = AutoRipConfig(
            rip_dir=tmp_path / "rips",
            backup_dir=tmp_path / "backups",
            log_dir=tmp_path / "logs",
        )

        config.ensure_directories()

        assert (tmp_path / "rips").is_dir()
        assert (tmp_path / "backups").is_dir()
        assert (tmp_path / "logs").is_dir()


class TestLoadConfig:
    """Test loading configuration from TOML."""

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            'poll_interval = 2.5\nmode = "backup"\n'
            f'rip_dir = "{tmp_path / "rips"}"\n'
            'ntfy_topic = "https://ntfy.sh/discs"\n',
        )

        config = load_config(path)

        assert config.poll_interval == 2.5
        assert config.mode is AutoRipMode.BACKUP
        assert config.rip_dir == tmp_path / "rips"
        assert config.ntfy_topic == "https://ntfy.sh/discs"

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.toml")

        assert config == AutoRipConfig()

    def test_searches_default_paths(self, tmp_path):
        path = tmp_path / "autorip.toml"
        path.write_text("poll_interval = 9\n")

        with patch("autorip.config.default_config_paths", return_value=[path]):
            config = load_config()

        assert config.poll_interval == 9

    def test_invalid_value_raises(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("poll_interval = 0\n")

        with pytest.raises(ValidationError):
            load_config(path)

    def test_sample_config_loads(self, tmp_path):
        path = tmp_path / "nested" / "config.toml"

        create_sample_config(path)
        config = load_config(path)

        assert path.exists()
        assert config.poll_interval == 5
        assert config.mode is AutoRipMode.RIP
        assert config.ntfy_topic is None
