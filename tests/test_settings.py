"""Tests for ``Settings.from_env``."""

from __future__ import annotations

from pathlib import Path

import pytest

from stagely.exceptions import SettingsError
from stagely.settings import Settings


class TestFromEnv:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.config_path == Path("stagely.config")
        assert settings.poll_interval == 15.0
        assert settings.poll_timeout == 1800.0
        assert settings.clear_store_script == Path("clear-store.sh")
        assert settings.log_level == "WARNING"

    def test_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "STAGELY_CONFIG": "/tmp/x.json",
                "STAGELY_POLL_INTERVAL": "2.5",
                "STAGELY_POLL_TIMEOUT": "60",
                "STAGELY_CLEAR_STORE_SCRIPT": "scripts/clear.sh",
                "STAGELY_LOG_LEVEL": "debug",
            }
        )
        assert settings.config_path == Path("/tmp/x.json")
        assert settings.poll_interval == 2.5
        assert settings.poll_timeout == 60.0
        assert settings.clear_store_script == Path("scripts/clear.sh")
        assert settings.log_level == "DEBUG"

    def test_blank_number_uses_default(self) -> None:
        assert Settings.from_env({"STAGELY_POLL_INTERVAL": " "}).poll_interval == 15.0

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_bad_interval_raises(self, raw: str) -> None:
        with pytest.raises(SettingsError, match="STAGELY_POLL_INTERVAL"):
            Settings.from_env({"STAGELY_POLL_INTERVAL": raw})

    def test_bad_log_level_raises(self) -> None:
        with pytest.raises(SettingsError, match="STAGELY_LOG_LEVEL"):
            Settings.from_env({"STAGELY_LOG_LEVEL": "chatty"})
