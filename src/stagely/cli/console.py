"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from stagely.exceptions import EnvironmentError

_BANNER = "*" * 81


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------

class ConsoleReporter:
	"""Renders workflow progress; satisfies the core ``Reporter`` protocol.

	*waiting_flag*, when given, is set for as long as a :meth:`waiting`
	block is open.
	"""

	def __init__(self, waiting_flag: threading.Event | None = None) -> None:
		self._progress: Any = None
		self._waiting_flag = waiting_flag

	def header(self, title: str) -> None:
		console.print()
		console.print(_BANNER)
		console.print(f"[bold]{title}[/bold]")
		console.print(_BANNER)
		console.print()

	def info(self, message: str) -> None:
		console.print(message)

	def success(self, message: str) -> None:
		console.print(f"[bold green]DONE[/bold green] {message}")

	def warn(self, message: str) -> None:
		console.print(f"[bold yellow]WARN[/bold yellow] {message}")

	def error(self, message: str, detail: str = "") -> None:
		console.print(f"[bold red]ERROR[/bold red] {message}")
		if detail:
			console.print(detail)

	@contextmanager
	def waiting(self, message: str) -> Iterator[None]:
		from stagely.cli.progress import PollProgress

		with PollProgress(message) as progress:
			self._progress = progress
			if self._waiting_flag is not None:
				self._waiting_flag.set()
			try:
				yield
			finally:
				self._progress = None
				if self._waiting_flag is not None:
					self._waiting_flag.clear()

	def tick(self) -> None:
		if self._progress is not None:
			self._progress.tick()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(level: str) -> None:
	"""Route ``stagely.*`` loggers to stderr through Rich's log handler."""
	logger = logging.getLogger("stagely")
	logger.setLevel(level)
	if logger.handlers:
		return
	try:
		from rich.logging import RichHandler
	except ModuleNotFoundError:
		handler: logging.Handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
	else:
		handler = RichHandler(
			console=get_rich_console(),
			show_path=False,
			rich_tracebacks=False,
		)
		handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
	logger.addHandler(handler)
	logger.propagate = False
