"""Process exit statuses returned by ``stagely``.

``cli.app`` is the only module that turns outcomes into these values.
"""

from __future__ import annotations

SUCCESS: int = 0
"""The command finished and every collaborator call it depends on succeeded."""

GENERAL_ERROR: int = 1
"""A StagelyError was raised, or create/delete/deploy reported a failed outcome."""

UNEXPECTED_ERROR: int = 2
"""Any other exception reached the error boundary."""

KEYBOARD_INTERRUPT: int = 130
"""Interrupted with Ctrl+C (128 + SIGINT)."""

TERMINATED: int = 143
"""Stopped by SIGTERM outside the readiness poll (128 + SIGTERM)."""
