"""Core / service layer — workflow orchestration and pure transformations.

Rules
-----
* No ``print()`` calls; user output goes through the ``Reporter`` protocol.
* No subprocess calls or prompts; those go through injected protocols.
* No imports from ``cli`` or ``infra``.
"""

from stagely.core.cluster_service import ClusterService
from stagely.core.credentials import CredentialManager
from stagely.core.models import (
    AwsCredentials,
    ClusterDescriptor,
    ClusterSettings,
    CreateResult,
    DeleteResult,
    DeployResult,
    PollOutcome,
    ProcessResult,
)
from stagely.core.protocols import CommandRunner, ConfigRepository, Prompter, Reporter

__all__: list[str] = [
    "AwsCredentials",
    "ClusterDescriptor",
    "ClusterService",
    "ClusterSettings",
    "CommandRunner",
    "ConfigRepository",
    "CreateResult",
    "CredentialManager",
    "DeleteResult",
    "DeployResult",
    "PollOutcome",
    "ProcessResult",
    "Prompter",
    "Reporter",
]
