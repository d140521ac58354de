"""Domain models for stagely.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and simple derivations.  They carry zero
I/O and zero dependencies on external packages.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field

# Keys of the persisted configuration record.
AWS_PROFILE_KEY = "awsProfile"
CLUSTER_NAME_KEY = "clusterName"
CLUSTER_STATE_STORE_KEY = "clusterStateStore"

STATE_STORE_ENV = "KOPS_STATE_STORE"


# ---------------------------------------------------------------------------
# External process result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Outcome of one collaborator invocation."""

    args: tuple[str, ...]
    """Argument vector that was executed."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """``True`` when the process exited with status zero."""
        return self.returncode == 0

    @property
    def reported_error(self) -> bool:
        """``True`` on a non-zero exit **or** any text on stderr.

        The aws CLI lookups used for credentials and zones may print an
        error while still exiting zero, so they are judged by this
        stricter test.
        """
        return not self.ok or bool(self.stderr.strip())

    @property
    def output(self) -> str:
        """Combined captured output, stdout first."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AwsCredentials:
    """Resolved credentials of an AWS CLI profile."""

    profile: str
    access_key_id: str
    secret_access_key: str = field(repr=False)

    def as_env(self) -> dict[str, str]:
        """Environment overlay consumed by aws, kops and kubectl."""
        return {
            "AWS_PROFILE": self.profile,
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
        }


# ---------------------------------------------------------------------------
# Cluster identity
# ---------------------------------------------------------------------------

def derive_cluster_name(name: str, hosted_zone: str) -> str:
    """Return the kops cluster name ``{name}.{hosted_zone}``."""
    return f"{name}.{hosted_zone}"


def derive_state_store(name: str) -> str:
    """Return the state-store bucket name ``{name}-state-store``."""
    return f"{name}-state-store"


def state_store_url(state_store: str) -> str:
    """Return the ``s3://`` location kops expects in ``KOPS_STATE_STORE``."""
    return f"s3://{state_store}"


@dataclass(frozen=True, slots=True)
class ClusterSettings:
    """Answers collected by the cluster-creation prompt."""

    name: str
    hosted_zone: str
    region: str


@dataclass(frozen=True, slots=True)
class ClusterDescriptor:
    """Everything needed to provision one staging cluster.

    Built once at creation time; later workflows read the persisted
    names back through :meth:`from_record` instead of recomputing them.
    """

    cluster_name: str
    state_store: str
    region: str = ""
    zones: tuple[str, ...] = ()

    @classmethod
    def create(cls, answers: ClusterSettings, zones: tuple[str, ...]) -> ClusterDescriptor:
        return cls(
            cluster_name=derive_cluster_name(answers.name, answers.hosted_zone),
            state_store=derive_state_store(answers.name),
            region=answers.region,
            zones=zones,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, str]) -> ClusterDescriptor | None:
        """Rebuild the descriptor from a config record, or ``None`` if incomplete."""
        cluster_name = record.get(CLUSTER_NAME_KEY)
        state_store = record.get(CLUSTER_STATE_STORE_KEY)
        if not cluster_name or not state_store:
            return None
        return cls(cluster_name=cluster_name, state_store=state_store)

    @property
    def state_store_url(self) -> str:
        return state_store_url(self.state_store)


# ---------------------------------------------------------------------------
# Workflow outcomes
# ---------------------------------------------------------------------------

class PollOutcome(enum.Enum):
    """How a readiness poll ended."""

    READY = "ready"
    TIMED_OUT = "timed-out"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class CreateResult:
    """Summary of a ``create cluster`` run."""

    descriptor: ClusterDescriptor
    outcome: PollOutcome
    failed_manifests: tuple[str, ...] = ()
    load_balancer: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is PollOutcome.READY and not self.failed_manifests


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Summary of a ``delete cluster`` run."""

    cluster_name: str
    deleted: bool
    cleanup_failures: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DeployResult:
    """Summary of a ``deploy`` run."""

    manifest: str
    cluster_name: str
    result: ProcessResult

    @property
    def ok(self) -> bool:
        return self.result.ok
