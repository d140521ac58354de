"""Spinner shown while ``kops validate cluster`` is being polled.

The core poll only calls ``on_tick`` once per failed readiness check;
:class:`PollProgress` turns those ticks into a counter next to a Rich
spinner and an elapsed-time column.  Ticks arriving while the display
is not running are dropped.
"""

from __future__ import annotations

from typing import Any

from stagely.cli.console import get_rich_console
from stagely.exceptions import EnvironmentError


def _progress_columns() -> tuple[Any, ...]:
    try:
        from rich.progress import SpinnerColumn, TextColumn, TimeElapsedColumn
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return (
        SpinnerColumn(style="cyan"),
        TextColumn("{task.description}"),
        TextColumn("[dim]({task.completed} checks)"),
        TimeElapsedColumn(),
    )


class PollProgress:
    """Readiness spinner.

    Example::

        with PollProgress("Waiting for cluster") as progress:
            poll_until_ready(check, interval=15, timeout=1800, on_tick=progress.tick)
    """

    def __init__(self, description: str) -> None:
        columns = _progress_columns()
        from rich.progress import Progress

        self._display: Any = Progress(*columns, console=get_rich_console())
        self._description = description
        self._task_id: Any = None
        self._running = False

    def __enter__(self) -> PollProgress:
        self.start()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.stop()

    def start(self) -> None:
        if self._running:
            return
        self._display.start()
        if self._task_id is None:
            self._task_id = self._display.add_task(self._description, total=None)
        self._running = True

    def stop(self) -> None:
        """Stop rendering; safe to call more than once."""
        if self._running:
            self._display.stop()
            self._running = False

    def tick(self) -> None:
        """Count one readiness check that has not succeeded yet."""
        if self._running:
            self._display.advance(self._task_id)

    @property
    def checks(self) -> int:
        if self._task_id is None:
            return 0
        return int(self._display.tasks[0].completed)
