"""Interactive prompts for the CLI layer.

This module is responsible for:

* Asking for the AWS cli profile.
* Asking for cluster name, hosted zone and region.
* Letting the user pick availability zones via a questionary checkbox.

Answers are passed through unvalidated; the defaults are the only
guard.  ``None`` from questionary (Ctrl+C / Esc) becomes
:class:`~stagely.exceptions.PromptCancelledError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from stagely.cli.console import console
from stagely.core.models import ClusterSettings
from stagely.exceptions import EnvironmentError, PromptCancelledError

DEFAULT_CLUSTER_NAME = "mycluster"
DEFAULT_HOSTED_ZONE = "k8s.local"
DEFAULT_REGION = "us-east-1"


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _answer(value: Any, what: str) -> Any:
    if value is None:
        raise PromptCancelledError(f"No {what} entered.")
    return value


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def _build_zone_choices(questionary: Any, zones: Sequence[str]) -> list[Any]:
    """One checkbox entry per zone; only the first is pre-checked."""
    return [
        questionary.Choice(title=zone, value=zone, checked=index == 0)
        for index, zone in enumerate(zones)
    ]


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------

class QuestionaryPrompter:
    """Concrete ``Prompter`` backed by questionary."""

    def ask_profile(self, default: str = "default") -> str:
        questionary = _import_questionary()
        profile = questionary.text(
            "Enter the AWS cli profile you want to use.",
            default=default,
        ).ask()
        return str(_answer(profile, "AWS profile"))

    def ask_cluster_settings(self) -> ClusterSettings:
        questionary = _import_questionary()
        name = _answer(
            questionary.text(
                "Enter a name for your cluster",
                default=DEFAULT_CLUSTER_NAME,
            ).ask(),
            "cluster name",
        )
        hosted_zone = _answer(
            questionary.text(
                "Enter the hosted zone for your cluster's DNS (ie. example.com)",
                default=DEFAULT_HOSTED_ZONE,
            ).ask(),
            "hosted zone",
        )
        region = _answer(
            questionary.text(
                "Enter the default region for your cluster.",
                default=DEFAULT_REGION,
            ).ask(),
            "region",
        )
        return ClusterSettings(name=str(name), hosted_zone=str(hosted_zone), region=str(region))

    def ask_zones(self, available: Sequence[str]) -> list[str]:
        """Multi-select availability zones.

        An empty *available* list is not an error: there is nothing to
        pick, so the selection is empty too.
        """
        if not available:
            console.print(
                "[yellow]No availability zones could be listed for this region.[/yellow]"
            )
            return []

        questionary = _import_questionary()
        selected = questionary.checkbox(
            "Select the availability zones you would like your cluster to exist in.",
            choices=_build_zone_choices(questionary, available),
        ).ask()
        return [str(zone) for zone in _answer(selected, "availability zone selection")]
