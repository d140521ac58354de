"""``stagely doctor``: report whether this machine can run stagely.

One row per check: stagely and Python versions, each collaborator
binary (aws, kops, kubectl) and the config file in the working
directory.  Only a missing binary or an unsupported Python fails the
command; running before ``stagely configure`` is just a warning.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path
from typing import NamedTuple

from stagely.cli import exit_codes
from stagely.cli.console import console
from stagely.infra.tool_detector import ToolStatus, detect_required_tools
from stagely.version import __version__

MIN_PYTHON = (3, 10)

_OK = "[green]OK[/green]"
_WARN = "[yellow]WARN[/yellow]"
_FAIL = "[red]FAIL[/red]"


class Check(NamedTuple):
    component: str
    detail: str
    status: str


def _stagely_version_check() -> Check:
    return Check("stagely", __version__, _OK)


def _python_version_check() -> Check:
    if sys.version_info[:2] >= MIN_PYTHON:
        status = _OK
    else:
        status = f"[red]FAIL (>={MIN_PYTHON[0]}.{MIN_PYTHON[1]} required)[/red]"
    return Check("Python", platform.python_version(), status)


def _tool_check(tool: ToolStatus) -> Check:
    if not tool.found:
        return Check(tool.name, "not found", _FAIL)
    return Check(tool.name, str(tool.path) if tool.path else "found", _OK)


def _config_check(config_path: Path) -> Check:
    if not config_path.is_file():
        return Check("config", f"{config_path} missing (run: stagely configure)", _WARN)
    return Check("config", str(config_path), _OK)


def _status_plain(status: str) -> str:
    """Strip markup down to the status keyword."""
    return next((word for word in ("FAIL", "WARN", "OK") if word in status), status)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _render_plain(checks: list[Check]) -> None:
    rule = "-" * 64
    lines = ["", "stagely doctor", rule]
    lines += [f"{c.component:<12} {c.detail:<40} {_status_plain(c.status)}" for c in checks]
    lines.append(rule)
    print("\n".join(lines), file=sys.stderr)


def _render(checks: list[Check]) -> None:
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _render_plain(checks)
        return

    table = Table(title="stagely doctor", title_justify="left", header_style="bold", box=None)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Detail", overflow="fold")
    table.add_column("Status", justify="right")
    for check in checks:
        table.add_row(*check)
    console.print(table)


def _print_install_hints(tools: list[ToolStatus]) -> None:
    for tool in tools:
        if tool.found or not tool.install_commands:
            continue
        console.print(f"{tool.name} is not installed. Install using one of:")
        for command in tool.install_commands:
            console.print(f"  {command}")


def run_doctor(config_path: Path) -> int:
    """Run every check, print the report and return the exit status.

    A missing config file does not fail the command.
    """
    tools = detect_required_tools()
    checks = [
        _stagely_version_check(),
        _python_version_check(),
        *map(_tool_check, tools),
        _config_check(config_path),
    ]
    _render(checks)
    _print_install_hints(tools)

    if any(_status_plain(check.status) == "FAIL" for check in checks):
        console.print("Some checks failed.")
        return exit_codes.GENERAL_ERROR
    console.print("All checks passed.")
    return exit_codes.SUCCESS
