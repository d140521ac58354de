"""Staging-cluster lifecycle: create, delete and deploy.

:class:`ClusterService` sequences the collaborators; it never shells out
or prompts by itself.  Every external call goes through the injected
:class:`~stagely.core.protocols.CommandRunner` with an explicit
environment overlay built from :class:`~stagely.core.models.AwsCredentials`
and the cluster's state-store location.

Known gaps, kept on purpose:

* a failed ``kops create cluster`` leaves the state-store bucket behind;
* bucket hardening failures are reported but not rolled back;
* zone-query failure offers an empty zone list instead of aborting.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from stagely.core import commands
from stagely.core.credentials import DEFAULT_CONFIGURE_RETRIES, CredentialManager
from stagely.core.models import (
    AWS_PROFILE_KEY,
    CLUSTER_NAME_KEY,
    CLUSTER_STATE_STORE_KEY,
    STATE_STORE_ENV,
    AwsCredentials,
    ClusterDescriptor,
    CreateResult,
    DeleteResult,
    DeployResult,
    PollOutcome,
)
from stagely.core.polling import poll_until_ready
from stagely.core.protocols import CommandRunner, ConfigRepository, Prompter, Reporter
from stagely.core.steps import (
    bootstrap_manifest_steps,
    run_steps,
    state_store_cleanup_steps,
    state_store_setup_steps,
)
from stagely.core.zones import zones_from_result
from stagely.exceptions import ConfigMissingError, ExternalCommandError
from stagely.settings import Settings

logger = logging.getLogger(__name__)

INGRESS_SERVICE = "nginx-ingress"
INGRESS_NAMESPACE = "nginx-ingress"


class ClusterService:
    """Orchestrates the staging cluster and its kops state store.

    Parameters
    ----------
    runner:
        Executes aws / kops / kubectl.
    prompter:
        Collects cluster settings and zone selection.
    config:
        Persisted ``awsProfile`` / ``clusterName`` / ``clusterStateStore``.
    credentials:
        Resolves the configured AWS profile.
    reporter:
        User-facing progress output.
    settings:
        Poll interval/timeout and the cleanup script location.
    cancel:
        Token that ends the readiness poll early when set.
    """

    def __init__(
        self,
        runner: CommandRunner,
        prompter: Prompter,
        config: ConfigRepository,
        credentials: CredentialManager,
        reporter: Reporter,
        settings: Settings,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        self._runner = runner
        self._prompter = prompter
        self._config = config
        self._credentials = credentials
        self._reporter = reporter
        self._settings = settings
        self._cancel = cancel if cancel is not None else threading.Event()

    # ------------------------------------------------------------------
    # configure
    # ------------------------------------------------------------------

    def configure(self, retries: int = DEFAULT_CONFIGURE_RETRIES) -> AwsCredentials:
        self._reporter.header("Configure AWS profile")
        return self._credentials.configure(retries)

    # ------------------------------------------------------------------
    # create cluster
    # ------------------------------------------------------------------

    def create_cluster(self) -> CreateResult:
        """Provision the bucket and cluster, wait for it, then bootstrap it.

        Raises
        ------
        ExternalCommandError
            When the state-store bucket cannot be created or
            ``kops create cluster`` fails.
        CredentialResolutionError
            When the configured profile no longer resolves.
        """
        record = self._config.read(create_if_missing=True)
        if record is None:
            raise ConfigMissingError("Configuration could not be created.")
        credentials = self._credentials.expose(_profile_from(record))

        self._reporter.header("Create your Kubernetes Cluster")
        answers = self._prompter.ask_cluster_settings()

        zone_query = self._runner.run(
            commands.aws_describe_availability_zones(answers.region),
            silent=True,
            env=credentials.as_env(),
        )
        available = zones_from_result(zone_query)
        selected = self._prompter.ask_zones(available)

        descriptor = ClusterDescriptor.create(answers, tuple(selected))
        self._config.write(CLUSTER_NAME_KEY, descriptor.cluster_name)
        self._config.write(CLUSTER_STATE_STORE_KEY, descriptor.state_store)
        env = _cluster_env(credentials, descriptor)

        setup = run_steps(
            self._runner,
            state_store_setup_steps(descriptor.state_store, descriptor.region),
            env=env,
        )
        if setup.aborted_at is not None:
            _, failed = setup.results[-1]
            raise ExternalCommandError(
                f"Unable to create state store {descriptor.state_store}.",
                returncode=failed.returncode,
                output=failed.output,
            )
        for step in setup.failures:
            self._reporter.warn(f"Could not {step.description} on {descriptor.state_store}.")

        creation = self._runner.run(
            commands.kops_create_cluster(descriptor.cluster_name, descriptor.zones),
            env=env,
        )
        if not creation.ok:
            raise ExternalCommandError(
                f"Unable to create cluster {descriptor.cluster_name}.",
                returncode=creation.returncode,
                output=creation.output,
                hint=(
                    f"The state store bucket {descriptor.state_store} was left in place; "
                    "remove it with: aws s3 rb " + descriptor.state_store_url + " --force"
                ),
            )
        self._runner.run(commands.kops_update_cluster(descriptor.cluster_name), env=env)

        outcome = self._wait_until_ready(descriptor, env)
        if outcome is not PollOutcome.READY:
            return CreateResult(descriptor=descriptor, outcome=outcome)

        failed_manifests = self._bootstrap(env)
        load_balancer = self._load_balancer_hostname(env)
        return CreateResult(
            descriptor=descriptor,
            outcome=outcome,
            failed_manifests=failed_manifests,
            load_balancer=load_balancer,
        )

    def _wait_until_ready(self, descriptor: ClusterDescriptor, env: dict[str, str]) -> PollOutcome:
        def cluster_is_valid() -> bool:
            result = self._runner.run(
                commands.kops_validate_cluster(descriptor.cluster_name),
                silent=True,
                env=env,
            )
            return result.ok

        with self._reporter.waiting("Waiting for cluster to start. This may take a few minutes."):
            return poll_until_ready(
                cluster_is_valid,
                interval=self._settings.poll_interval,
                timeout=self._settings.poll_timeout,
                cancel=self._cancel,
                on_tick=self._reporter.tick,
            )

    def _bootstrap(self, env: dict[str, str]) -> tuple[str, ...]:
        self._reporter.header("Installing Kubernetes cluster dashboard and Ingress Controller")
        report = run_steps(self._runner, bootstrap_manifest_steps(), env=env)
        return tuple(step.description for step in report.failures)

    def _load_balancer_hostname(self, env: dict[str, str]) -> str | None:
        result = self._runner.run(
            commands.kubectl_load_balancer_hostname(INGRESS_SERVICE, INGRESS_NAMESPACE),
            silent=True,
            env=env,
        )
        hostname = result.stdout.strip()
        if not result.ok or not hostname:
            logger.info("Ingress load balancer hostname not available yet")
            return None
        return hostname

    # ------------------------------------------------------------------
    # delete cluster
    # ------------------------------------------------------------------

    def delete_cluster(self) -> DeleteResult:
        """Delete the cluster, then clear and remove its state store.

        Raises
        ------
        ConfigMissingError
            When there is no config file or it names no cluster.
        """
        record = self._config.require()
        credentials = self._credentials.expose(_profile_from(record))
        descriptor = _descriptor_from(record)
        env = _cluster_env(credentials, descriptor)

        self._reporter.header(f"Deleting Cluster {descriptor.cluster_name}")
        deletion = self._runner.run(commands.kops_delete_cluster(descriptor.cluster_name), env=env)
        if not deletion.ok:
            return DeleteResult(cluster_name=descriptor.cluster_name, deleted=False)

        self._reporter.info("Finalizing clean up...")
        script = self._settings.clear_store_script
        if not Path(script).is_file():
            logger.warning("Clear-store script %s not found; skipping", script)
            script_arg = None
        else:
            script_arg = str(script)
        cleanup = run_steps(
            self._runner,
            state_store_cleanup_steps(script_arg, descriptor.state_store, descriptor.state_store_url),
            env=env,
        )
        return DeleteResult(
            cluster_name=descriptor.cluster_name,
            deleted=True,
            cleanup_failures=tuple(step.description for step in cleanup.failures),
        )

    # ------------------------------------------------------------------
    # deploy
    # ------------------------------------------------------------------

    def deploy(self, manifest: str) -> DeployResult:
        """``kubectl apply`` *manifest* against the configured cluster.

        Raises
        ------
        ConfigMissingError
            When there is no config file or it names no cluster.
        """
        record = self._config.require()
        credentials = self._credentials.expose(_profile_from(record))
        descriptor = _descriptor_from(record)

        self._reporter.header(f"Deploying {manifest}")
        result = self._runner.run(
            commands.kubectl_apply(manifest),
            env=_cluster_env(credentials, descriptor),
        )
        return DeployResult(manifest=manifest, cluster_name=descriptor.cluster_name, result=result)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _profile_from(record: dict[str, str]) -> str:
    profile = record.get(AWS_PROFILE_KEY)
    if not profile:
        raise ConfigMissingError(
            "No AWS profile is configured.",
            hint="Run: stagely configure",
        )
    return profile


def _descriptor_from(record: dict[str, str]) -> ClusterDescriptor:
    descriptor = ClusterDescriptor.from_record(record)
    if descriptor is None:
        raise ConfigMissingError(
            "No staging cluster is configured.",
            hint="Run: stagely create cluster",
        )
    return descriptor


def _cluster_env(credentials: AwsCredentials, descriptor: ClusterDescriptor) -> dict[str, str]:
    env = credentials.as_env()
    env[STATE_STORE_ENV] = descriptor.state_store_url
    return env
