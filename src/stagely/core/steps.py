"""Ordered external-call plans with an explicit per-step failure policy.

Pipeline shape (enforced by :func:`run_steps`):

1. Steps run strictly in list order; later steps may depend on earlier ones.
2. A failing ``ABORT`` step stops the plan; nothing is rolled back.
3. A failing ``CONTINUE`` step is recorded and the plan carries on.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from stagely.core import commands
from stagely.core.models import ProcessResult
from stagely.core.protocols import CommandRunner

logger = logging.getLogger(__name__)

_INGRESS = "https://raw.githubusercontent.com/nginxinc/kubernetes-ingress/master/deployments"
_STAGELY = "https://raw.githubusercontent.com/gshaw1997/stagely/master/deployments"

DASHBOARD_MANIFEST = (
    "https://raw.githubusercontent.com/kubernetes/dashboard/v2.0.0-beta1/aio/deploy/recommended.yaml"
)
INGRESS_NAMESPACE_MANIFEST = f"{_INGRESS}/common/ns-and-sa.yaml"
INGRESS_MANIFESTS: tuple[tuple[str, str], ...] = (
    ("ingress default server secret", f"{_INGRESS}/common/default-server-secret.yaml"),
    ("ingress config map", f"{_STAGELY}/nginx-config.yaml"),
    ("ingress RBAC", f"{_INGRESS}/rbac/rbac.yaml"),
    ("ingress deployment", f"{_INGRESS}/deployment/nginx-ingress.yaml"),
    ("ingress daemon set", f"{_INGRESS}/daemon-set/nginx-ingress.yaml"),
    ("ingress load balancer service", f"{_INGRESS}/service/loadbalancer-aws-elb.yaml"),
)


class FailurePolicy(enum.Enum):
    """What a plan does when one of its steps fails."""

    ABORT = "abort"
    CONTINUE = "continue"


@dataclass(frozen=True, slots=True)
class Step:
    description: str
    args: tuple[str, ...]
    policy: FailurePolicy = FailurePolicy.CONTINUE
    silent: bool = False


@dataclass(frozen=True, slots=True)
class StepReport:
    """Results of a plan, in execution order."""

    results: tuple[tuple[Step, ProcessResult], ...]
    aborted_at: Step | None = None

    @property
    def ok(self) -> bool:
        return self.aborted_at is None and not self.failures

    @property
    def failures(self) -> tuple[Step, ...]:
        return tuple(step for step, result in self.results if not result.ok)


def run_steps(
    runner: CommandRunner,
    steps: Sequence[Step],
    *,
    env: Mapping[str, str] | None = None,
) -> StepReport:
    """Execute *steps* in order, honouring each step's :class:`FailurePolicy`."""
    results: list[tuple[Step, ProcessResult]] = []
    for step in steps:
        result = runner.run(step.args, silent=step.silent, env=env)
        results.append((step, result))
        if result.ok:
            continue
        if step.policy is FailurePolicy.ABORT:
            logger.error("Step %r failed (exit %d); aborting plan", step.description, result.returncode)
            return StepReport(results=tuple(results), aborted_at=step)
        logger.warning("Step %r failed (exit %d); continuing", step.description, result.returncode)
    return StepReport(results=tuple(results))


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

def state_store_setup_steps(bucket: str, region: str) -> list[Step]:
    """Create the kops state-store bucket, then harden it."""
    return [
        Step(
            f"create bucket {bucket}",
            tuple(commands.aws_create_bucket(bucket, region)),
            FailurePolicy.ABORT,
        ),
        Step(
            "enable bucket versioning",
            tuple(commands.aws_enable_bucket_versioning(bucket)),
        ),
        Step(
            "enable default bucket encryption",
            tuple(commands.aws_enable_bucket_encryption(bucket)),
        ),
    ]


def bootstrap_manifest_steps() -> list[Step]:
    """Dashboard first, then the ingress controller and its dependencies.

    The ingress namespace and service account must exist before any other
    ingress manifest can apply.
    """
    steps = [
        Step("dashboard", tuple(commands.kubectl_apply(DASHBOARD_MANIFEST))),
        Step(
            "ingress namespace and service account",
            tuple(commands.kubectl_apply(INGRESS_NAMESPACE_MANIFEST)),
            FailurePolicy.ABORT,
        ),
    ]
    steps.extend(
        Step(description, tuple(commands.kubectl_apply(manifest)))
        for description, manifest in INGRESS_MANIFESTS
    )
    return steps


def state_store_cleanup_steps(script: str | None, state_store: str, bucket_url: str) -> list[Step]:
    """Post-deletion cleanup; *script* is ``None`` when it is not installed."""
    steps: list[Step] = []
    if script is not None:
        steps.append(
            Step(
                "clear state store",
                tuple(commands.clear_store_script(script, state_store)),
                silent=True,
            )
        )
    steps.append(
        Step(
            f"remove bucket {bucket_url}",
            tuple(commands.aws_remove_bucket(bucket_url)),
            silent=True,
        )
    )
    return steps
