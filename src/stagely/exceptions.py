"""Custom exception hierarchy for stagely.

All exceptions that cross layer boundaries must inherit from
:class:`StagelyError`.  Raw subprocess / filesystem exceptions must
NEVER propagate beyond the infrastructure layer — they must be caught
and re-raised as a typed subclass defined here.

Hierarchy
---------
StagelyError
├── ConfigMissingError
├── ConfigCorruptError
├── CredentialResolutionError
├── ExternalCommandError
├── ToolNotFoundError
├── PromptCancelledError
├── UsageError
├── SettingsError
└── EnvironmentError
"""

from __future__ import annotations


class StagelyError(Exception):
    """Base exception for all stagely errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Persisted configuration -----------------------------------------------

class ConfigMissingError(StagelyError):
    """Raised when a workflow needs the config file (or a key) that is absent."""


class ConfigCorruptError(StagelyError):
    """Raised when the config file exists but is not a JSON object."""


# --- Credentials -----------------------------------------------------------

class CredentialResolutionError(StagelyError):
    """Raised when an AWS CLI profile cannot be resolved and retries are spent."""

    def __init__(
        self,
        message: str,
        *,
        profile: str,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.profile: str = profile


# --- External tools --------------------------------------------------------

class ExternalCommandError(StagelyError):
    """Raised when a collaborator exits non-zero and the workflow must stop."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int,
        output: str = "",
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.returncode: int = returncode
        self.output: str = output
        """Captured stdout/stderr of the failing command, possibly empty."""


class ToolNotFoundError(StagelyError):
    """Raised when aws, kops or kubectl cannot be located on the PATH."""


# --- CLI / interaction -----------------------------------------------------

class PromptCancelledError(StagelyError):
    """Raised when the user dismisses an interactive prompt."""


class UsageError(StagelyError):
    """Raised when the command line is missing a required argument."""


# --- Environment / runtime -------------------------------------------------

class SettingsError(StagelyError):
    """Raised when a ``STAGELY_*`` environment variable holds a bad value."""


class EnvironmentError(StagelyError):
    """Raised when a required runtime dependency is not available."""
