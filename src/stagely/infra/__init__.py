"""Infrastructure layer — external system integration.

This layer wraps all interaction with the filesystem, the operating
system and the collaborator CLIs.  Every raw OS exception must be caught
here and re-raised as a :class:`~stagely.exceptions.StagelyError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from stagely.infra.config_store import ConfigStore
from stagely.infra.process_runner import SubprocessRunner
from stagely.infra.tool_detector import ToolStatus, detect_required_tools, detect_tool, require_tool

__all__: list[str] = [
    "ConfigStore",
    "SubprocessRunner",
    "ToolStatus",
    "detect_required_tools",
    "detect_tool",
    "require_tool",
]
