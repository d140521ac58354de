"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure and CLI adapters must
satisfy.  Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Protocol

from stagely.core.models import ClusterSettings, ProcessResult


class CommandRunner(Protocol):
    """Contract for executing collaborator CLIs (aws, kops, kubectl)."""

    def run(
        self,
        args: Sequence[str],
        *,
        silent: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        """Run *args* to completion and return its :class:`ProcessResult`.

        Parameters
        ----------
        args:
            Argument vector; ``args[0]`` is the executable.
        silent:
            When ``True`` output is only captured.  Otherwise it is also
            streamed to the user's terminal as it is produced.
        env:
            Variables overlaid on the inherited process environment for
            this invocation only.

        Raises
        ------
        ToolNotFoundError
            When the executable is not installed.
        """
        ...  # pragma: no cover


class ConfigRepository(Protocol):
    """Contract for the flat key-value configuration record."""

    def write(self, key: str, value: str) -> None:
        """Merge ``key -> value`` into the persisted record."""
        ...  # pragma: no cover

    def read(self, create_if_missing: bool = False) -> dict[str, str] | None:
        """Return the record, ``None`` when absent and not created."""
        ...  # pragma: no cover

    def require(self) -> dict[str, str]:
        """Return the record or raise :class:`ConfigMissingError`."""
        ...  # pragma: no cover


class Prompter(Protocol):
    """Contract for interactive input collection.

    Implementations pass answers through unvalidated; they raise
    :class:`~stagely.exceptions.PromptCancelledError` when the user
    dismisses a prompt.
    """

    def ask_profile(self, default: str = "default") -> str:
        ...  # pragma: no cover

    def ask_cluster_settings(self) -> ClusterSettings:
        ...  # pragma: no cover

    def ask_zones(self, available: Sequence[str]) -> list[str]:
        """Multi-select over *available*, first entry pre-selected."""
        ...  # pragma: no cover


class Reporter(Protocol):
    """Contract for user-facing progress output."""

    def header(self, title: str) -> None:
        ...  # pragma: no cover

    def info(self, message: str) -> None:
        ...  # pragma: no cover

    def success(self, message: str) -> None:
        ...  # pragma: no cover

    def warn(self, message: str) -> None:
        ...  # pragma: no cover

    def error(self, message: str, detail: str = "") -> None:
        ...  # pragma: no cover

    def waiting(self, message: str) -> AbstractContextManager[None]:
        """Context shown while a long readiness poll is running."""
        ...  # pragma: no cover

    def tick(self) -> None:
        """Signal one readiness check while polling."""
        ...  # pragma: no cover
