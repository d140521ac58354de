"""PATH lookup for the aws, kops and kubectl binaries.

Nothing here executes the tools or prints; a missing binary is reported
as a :class:`ToolStatus` (for ``doctor``) or a :class:`ToolNotFoundError`
(before a workflow starts).  Install suggestions depend on the host OS.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from stagely.exceptions import ToolNotFoundError

REQUIRED_TOOLS: tuple[str, ...] = ("aws", "kops", "kubectl")


@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Outcome of looking up one binary; *install_commands* is empty when found."""

    name: str
    found: bool
    path: Path | None
    install_commands: tuple[str, ...]


def detect_tool(name: str) -> ToolStatus:
    location = shutil.which(name)
    if location is None:
        return ToolStatus(name, False, None, _platform_install_commands(name))
    return ToolStatus(name, True, Path(location).resolve(), ())


def detect_required_tools() -> list[ToolStatus]:
    return [detect_tool(name) for name in REQUIRED_TOOLS]


def require_tool(name: str) -> Path:
    """Locate *name* or raise :class:`ToolNotFoundError`."""
    path = detect_tool(name).path
    if path is None:
        raise ToolNotFoundError(
            f"{name} is not installed or not on PATH.",
            hint=install_hint(name),
        )
    return path


def install_hint(name: str) -> str | None:
    """Multi-line install guidance for *name*, or ``None`` if unknown."""
    commands = _platform_install_commands(name)
    if not commands:
        return None
    return "\n".join([f"Install {name} using one of:", *(f"  {cmd}" for cmd in commands)])


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

_DOCS = {
    "aws": "https://docs.aws.amazon.com/cli/latest/userguide/getting-started-install.html",
    "kops": "https://kops.sigs.k8s.io/getting_started/install/",
    "kubectl": "https://kubernetes.io/docs/tasks/tools/",
}

_PACKAGES = {
    "aws": {"brew": "awscli", "choco": "awscli", "pip": "awscli"},
    "kops": {"brew": "kops", "choco": "kops"},
    "kubectl": {"brew": "kubectl", "choco": "kubernetes-cli"},
}


def _platform_install_commands(name: str) -> tuple[str, ...]:
    packages = _PACKAGES.get(name)
    if packages is None:
        return ()
    host = platform.system()
    commands: list[str] = []
    if host == "Darwin":
        commands.append(f"brew install {packages['brew']}")
    elif host == "Windows":
        commands.append(f"choco install {packages['choco']}")
    if "pip" in packages:
        commands.append(f"pip install {packages['pip']}")
    commands.append(f"See {_DOCS[name]}")
    return tuple(commands)
