"""AWS credential resolution with bounded re-prompting.

A profile moves through ``PROMPTING -> VALIDATING -> {CONFIGURED, FAILED}``.
Each failed lookup spends one retry and asks the user for a profile
again; once retries are exhausted :class:`CredentialResolutionError`
is raised.  Resolved credentials are returned as an explicit
:class:`~stagely.core.models.AwsCredentials` value — the process
environment is never touched.
"""

from __future__ import annotations

import logging

from stagely.core import commands
from stagely.core.models import AWS_PROFILE_KEY, AwsCredentials
from stagely.core.protocols import CommandRunner, ConfigRepository, Prompter, Reporter
from stagely.exceptions import CredentialResolutionError

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
DEFAULT_CONFIGURE_RETRIES = 2


class CredentialManager:
    """Resolve AWS CLI profiles into :class:`AwsCredentials`.

    Parameters
    ----------
    runner:
        Executes ``aws configure get``.
    prompter:
        Asks the user for a profile name.
    config:
        Receives the ``awsProfile`` key after a successful configuration.
    reporter:
        Receives retry warnings.
    """

    def __init__(
        self,
        runner: CommandRunner,
        prompter: Prompter,
        config: ConfigRepository,
        reporter: Reporter,
    ) -> None:
        self._runner = runner
        self._prompter = prompter
        self._config = config
        self._reporter = reporter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def configure(self, retries: int = DEFAULT_CONFIGURE_RETRIES) -> AwsCredentials:
        """Prompt for a profile until it resolves or *retries* run out.

        The resolved profile name is persisted under ``awsProfile``.

        Raises
        ------
        CredentialResolutionError
            After ``retries + 1`` failed lookups.
        PromptCancelledError
            If the user dismisses the prompt.
        """
        while True:
            profile = self._prompter.ask_profile(DEFAULT_PROFILE)
            try:
                credentials = self.resolve(profile)
            except CredentialResolutionError:
                if retries <= 0:
                    raise
                retries -= 1
                self._reporter.warn(
                    f"AWS cli profile '{profile}' does not exist. "
                    f"{retries + 1} attempt(s) left."
                )
                continue
            self._config.write(AWS_PROFILE_KEY, profile)
            return credentials

    def expose(self, profile: str, retries: int = 0) -> AwsCredentials:
        """Resolve *profile*, falling back to :meth:`configure` on failure.

        With ``retries == 0`` a failed lookup is final.  Otherwise the user
        is re-prompted with ``retries - 1`` further attempts, so at most
        ``retries + 1`` lookups happen in total.
        """
        try:
            return self.resolve(profile)
        except CredentialResolutionError:
            if retries <= 0:
                raise
            self._reporter.warn(f"AWS cli profile '{profile}' does not exist.")
            return self.configure(retries - 1)

    def resolve(self, profile: str) -> AwsCredentials:
        """Look up both keys of *profile* once, without prompting."""
        logger.debug("Resolving credentials for profile %r", profile)
        access_key = self._lookup("aws_access_key_id", profile)
        secret_key = self._lookup("aws_secret_access_key", profile)
        return AwsCredentials(
            profile=profile,
            access_key_id=access_key,
            secret_access_key=secret_key,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(self, key: str, profile: str) -> str:
        result = self._runner.run(commands.aws_configure_get(key, profile), silent=True)
        if result.reported_error:
            raise CredentialResolutionError(
                f"Unable to configure credentials for AWS cli. "
                f"AWS cli profile '{profile}' does not exist.",
                profile=profile,
                hint="Create it with: aws configure --profile " + profile,
            )
        return result.stdout.strip()
