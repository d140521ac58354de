"""Runtime settings read from ``STAGELY_*`` environment variables.

Settings are resolved once per invocation by the CLI layer and passed
down explicitly; nothing below ``cli`` reads the environment itself.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from stagely.exceptions import SettingsError

DEFAULT_CONFIG_FILE = "stagely.config"
DEFAULT_POLL_INTERVAL = 15.0
DEFAULT_POLL_TIMEOUT = 30 * 60.0
DEFAULT_CLEAR_STORE_SCRIPT = "clear-store.sh"
DEFAULT_LOG_LEVEL = "WARNING"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved runtime configuration."""

    config_path: Path = Path(DEFAULT_CONFIG_FILE)
    """Location of the flat JSON key-value config file."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    """Seconds between cluster readiness checks."""

    poll_timeout: float = DEFAULT_POLL_TIMEOUT
    """Seconds before the readiness poll reports a timeout."""

    clear_store_script: Path = Path(DEFAULT_CLEAR_STORE_SCRIPT)
    """Shell script run against the state store after cluster deletion."""

    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from *environ* (defaults to ``os.environ``).

        Raises
        ------
        SettingsError
            When a numeric variable is not a positive number or the log
            level is unknown.
        """
        env = os.environ if environ is None else environ

        log_level = env.get("STAGELY_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise SettingsError(
                f"Invalid STAGELY_LOG_LEVEL: {log_level!r}",
                hint=f"Use one of: {', '.join(sorted(_LOG_LEVELS))}",
            )

        return cls(
            config_path=Path(env.get("STAGELY_CONFIG", DEFAULT_CONFIG_FILE)),
            poll_interval=_positive_float(env, "STAGELY_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            poll_timeout=_positive_float(env, "STAGELY_POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT),
            clear_store_script=Path(
                env.get("STAGELY_CLEAR_STORE_SCRIPT", DEFAULT_CLEAR_STORE_SCRIPT)
            ),
            log_level=log_level,
        )


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise SettingsError(f"{name} must be greater than zero, got {raw!r}")
    return value
