"""Infrastructure: the flat JSON key-value configuration file.

Rules
-----
* The file is either absent or a JSON object of string values.
* Writes merge into the existing record and replace the file atomically
  (temporary file + :func:`os.replace`); last write wins.
* No locking — stagely is a single-user, single-process tool.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from stagely.exceptions import ConfigCorruptError, ConfigMissingError

logger = logging.getLogger(__name__)


class ConfigStore:
    """Read/modify/write access to the stagely config file.

    Parameters
    ----------
    path:
        Location of the config file.
    initializer:
        Workflow run by ``read(create_if_missing=True)`` when the file is
        absent; expected to write at least one key.  May be assigned after
        construction.
    """

    def __init__(
        self,
        path: Path,
        initializer: Callable[[], object] | None = None,
    ) -> None:
        self.path: Path = path
        self.initializer: Callable[[], object] | None = initializer

    def exists(self) -> bool:
        return self.path.is_file()

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def write(self, key: str, value: str) -> None:
        """Set *key* to *value*, keeping every other key."""
        record = self._load() or {}
        record[key] = value
        self._dump(record)
        logger.debug("Wrote %s to %s", key, self.path)

    def read(self, create_if_missing: bool = False) -> dict[str, str] | None:
        """Return the record; run the initializer first if asked to.

        Raises
        ------
        ConfigMissingError
            When creation was requested but produced no file.
        ConfigCorruptError
            When the file is not a JSON object.
        """
        record = self._load()
        if record is not None or not create_if_missing:
            return record

        if self.initializer is None:
            raise ConfigMissingError(f"No configuration found at {self.path}.")
        logger.info("No configuration at %s; running configuration", self.path)
        self.initializer()
        record = self._load()
        if record is None:
            raise ConfigMissingError(
                f"Configuration did not create {self.path}.",
                hint="Run: stagely configure",
            )
        return record

    def require(self) -> dict[str, str]:
        record = self._load()
        if record is None:
            raise ConfigMissingError(
                f"No configuration found at {self.path}.",
                hint="Run: stagely configure",
            )
        return record

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, str] | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigCorruptError(
                f"Configuration file {self.path} is not valid JSON.",
                hint="Delete it and run: stagely configure",
            ) from exc
        if not isinstance(data, dict):
            raise ConfigCorruptError(
                f"Configuration file {self.path} does not hold a key-value object.",
                hint="Delete it and run: stagely configure",
            )
        return {str(key): str(value) for key, value in data.items()}

    def _dump(self, record: dict[str, str]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
