"""Tests for CLI parsing, routing and the error boundary (cli/app.py).

Services are replaced with mocks at the ``_build_service`` seam and the
tool preflight is stubbed, so no collaborator is ever executed.
"""

from __future__ import annotations

import os
import signal
import time
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from stagely.cli import app as app_module
from stagely.cli import exit_codes
from stagely.cli.app import _preflight as _real_preflight
from stagely.cli.app import cli, main, parse_command_line
from stagely.core.models import (
    AwsCredentials,
    ClusterDescriptor,
    CreateResult,
    DeleteResult,
    DeployResult,
    PollOutcome,
    ProcessResult,
)
from stagely.exceptions import ConfigMissingError, ToolNotFoundError, UsageError
from stagely.version import __version__

_DESCRIPTOR = ClusterDescriptor(
    cluster_name="mycluster.k8s.local",
    state_store="mycluster-state-store",
    region="us-east-1",
    zones=("us-east-1a",),
)


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace service wiring and preflight with mocks."""
    mock_service = MagicMock()
    monkeypatch.setattr(app_module, "_build_service", lambda settings, reporter: mock_service)
    monkeypatch.setattr(app_module, "_preflight", lambda *tools: None)
    monkeypatch.setattr(app_module, "ConsoleReporter", MagicMock)
    monkeypatch.delenv("STAGELY_LOG_LEVEL", raising=False)
    return mock_service


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class TestParseCommandLine:
    def test_command_and_subcommands(self) -> None:
        options = parse_command_line(["create", "cluster", "extra"])
        assert options.command == "create"
        assert options.subcommands == ["cluster", "extra"]
        assert options.subcommand == "cluster"

    def test_no_arguments(self) -> None:
        options = parse_command_line([])
        assert options.command is None
        assert options.subcommand is None

    def test_flags(self) -> None:
        options = parse_command_line(["configure", "--cluster"])
        assert options.create_cluster is True
        assert options.print_version is False

    def test_short_version_flag(self) -> None:
        assert parse_command_line(["-v"]).print_version is True

    def test_flag_between_positionals(self) -> None:
        options = parse_command_line(["create", "--cluster", "cluster"])
        assert options.command == "create"
        assert options.subcommands == ["cluster"]
        assert options.create_cluster is True

    def test_version_between_positionals(self) -> None:
        options = parse_command_line(["create", "-v", "cluster"])
        assert options.print_version is True
        assert options.subcommand == "cluster"


# ---------------------------------------------------------------------------
# Version / help
# ---------------------------------------------------------------------------

class TestVersionAndHelp:
    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--version"]) == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert f"stagely {__version__}" in out

    def test_version_wins_over_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--help", "--version"]) == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert f"stagely {__version__}" in out
        assert "Available Commands" not in out

    def test_version_wins_over_command(self, service: MagicMock) -> None:
        assert main(["delete", "cluster", "-v"]) == exit_codes.SUCCESS
        service.delete_cluster.assert_not_called()

    def test_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--help"]) == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert "Available Commands" in out
        assert "create cluster" in out

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == exit_codes.SUCCESS
        assert "usage:" in capsys.readouterr().out

    def test_unknown_command_prints_help(
        self, service: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["bogus"]) == exit_codes.SUCCESS
        assert "Available Commands" in capsys.readouterr().out
        assert service.mock_calls == []

    def test_create_without_cluster_prints_help(
        self, service: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["create"]) == exit_codes.SUCCESS
        service.create_cluster.assert_not_called()


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

class TestConfigure:
    def test_configure_only(self, service: MagicMock) -> None:
        service.configure.return_value = AwsCredentials("default", "AKIA", "secret")
        assert main(["configure"]) == exit_codes.SUCCESS
        service.configure.assert_called_once_with()
        service.create_cluster.assert_not_called()

    def test_configure_then_create(self, service: MagicMock) -> None:
        service.configure.return_value = AwsCredentials("default", "AKIA", "secret")
        service.create_cluster.return_value = CreateResult(_DESCRIPTOR, PollOutcome.READY)
        assert main(["configure", "--cluster"]) == exit_codes.SUCCESS
        service.create_cluster.assert_called_once_with()

    def test_configure_only_checks_aws(self, service: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
        checked: list[str] = []
        monkeypatch.setattr(app_module, "_preflight", lambda *tools: checked.extend(tools))
        service.configure.return_value = AwsCredentials("default", "AKIA", "secret")
        main(["configure"])
        assert checked == ["aws"]

    def test_cluster_flag_checks_every_tool_first(
        self, service: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(app_module, "_preflight", _real_preflight)
        found = {"aws": "/usr/bin/aws"}
        with patch("stagely.infra.tool_detector.shutil.which", side_effect=found.get):
            with pytest.raises(ToolNotFoundError, match="kops"):
                main(["configure", "--cluster"])
        service.configure.assert_not_called()
        service.create_cluster.assert_not_called()


class TestCreate:
    def test_ready(self, service: MagicMock) -> None:
        service.create_cluster.return_value = CreateResult(
            _DESCRIPTOR, PollOutcome.READY, load_balancer="abc.elb.amazonaws.com",
        )
        assert main(["create", "cluster"]) == exit_codes.SUCCESS

    @pytest.mark.parametrize(
        "outcome",
        [PollOutcome.TIMED_OUT, PollOutcome.CANCELLED, PollOutcome.ERROR],
    )
    def test_not_ready_is_failure(self, service: MagicMock, outcome: PollOutcome) -> None:
        service.create_cluster.return_value = CreateResult(_DESCRIPTOR, outcome)
        assert main(["create", "cluster"]) == exit_codes.GENERAL_ERROR

    def test_failed_manifests_is_failure(self, service: MagicMock) -> None:
        service.create_cluster.return_value = CreateResult(
            _DESCRIPTOR, PollOutcome.READY, failed_manifests=("dashboard",),
        )
        assert main(["create", "cluster"]) == exit_codes.GENERAL_ERROR

    def test_preflight_checks_all_tools(self, service: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
        checked: list[str] = []
        monkeypatch.setattr(app_module, "_preflight", lambda *tools: checked.extend(tools))
        service.create_cluster.return_value = CreateResult(_DESCRIPTOR, PollOutcome.READY)
        main(["create", "cluster"])
        assert checked == ["aws", "kops", "kubectl"]


class TestDelete:
    def test_success(self, service: MagicMock) -> None:
        service.delete_cluster.return_value = DeleteResult("mycluster.k8s.local", deleted=True)
        assert main(["delete", "cluster"]) == exit_codes.SUCCESS

    def test_cleanup_failures_still_succeed(self, service: MagicMock) -> None:
        service.delete_cluster.return_value = DeleteResult(
            "mycluster.k8s.local",
            deleted=True,
            cleanup_failures=("remove bucket s3://mycluster-state-store",),
        )
        assert main(["delete", "cluster"]) == exit_codes.SUCCESS

    def test_kops_failure(self, service: MagicMock) -> None:
        service.delete_cluster.return_value = DeleteResult("mycluster.k8s.local", deleted=False)
        assert main(["delete", "cluster"]) == exit_codes.GENERAL_ERROR

    def test_missing_config_propagates(self, service: MagicMock) -> None:
        service.delete_cluster.side_effect = ConfigMissingError("No configuration found.")
        with pytest.raises(ConfigMissingError):
            main(["delete", "cluster"])


class TestDeploy:
    def test_success(self, service: MagicMock) -> None:
        service.deploy.return_value = DeployResult(
            "app.yaml", "mycluster.k8s.local", ProcessResult(("kubectl",), 0),
        )
        assert main(["deploy", "app.yaml"]) == exit_codes.SUCCESS
        service.deploy.assert_called_once_with("app.yaml")

    def test_failure(self, service: MagicMock) -> None:
        service.deploy.return_value = DeployResult(
            "app.yaml", "mycluster.k8s.local", ProcessResult(("kubectl",), 1, "error"),
        )
        assert main(["deploy", "app.yaml"]) == exit_codes.GENERAL_ERROR

    def test_missing_manifest_is_usage_error(self, service: MagicMock) -> None:
        with pytest.raises(UsageError):
            main(["deploy"])
        service.deploy.assert_not_called()


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestCliBoundary:
    @pytest.fixture(autouse=True)
    def _no_signal_install(self) -> Iterator[None]:
        with patch("stagely.cli.app.signal.signal"):
            yield

    def _exit_code(self, **main_kwargs: object) -> int | str | None:
        with patch("stagely.cli.app.main", **main_kwargs):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        return exc_info.value.code

    def test_success(self) -> None:
        assert self._exit_code(return_value=exit_codes.SUCCESS) == exit_codes.SUCCESS

    def test_domain_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        error = ToolNotFoundError("kops was not found on PATH.", hint="brew install kops")
        assert self._exit_code(side_effect=error) == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "kops was not found" in err
        assert "brew install kops" in err

    def test_keyboard_interrupt(self) -> None:
        assert self._exit_code(side_effect=KeyboardInterrupt) == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert self._exit_code(side_effect=RuntimeError("kaboom")) == exit_codes.UNEXPECTED_ERROR
        assert "RuntimeError: kaboom" in capsys.readouterr().err

    def test_terminated(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = self._exit_code(side_effect=app_module._Terminated)
        assert code == exit_codes.TERMINATED
        assert "Terminated" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# SIGTERM
# ---------------------------------------------------------------------------

@pytest.fixture
def sigterm_handler() -> Iterator[None]:
    previous = signal.signal(signal.SIGTERM, app_module._on_sigterm)
    app_module._CANCEL.clear()
    app_module._POLLING.clear()
    yield
    signal.signal(signal.SIGTERM, previous)
    app_module._CANCEL.clear()
    app_module._POLLING.clear()


class TestSigterm:
    def test_outside_poll_stops_the_command(self, sigterm_handler: None) -> None:
        with pytest.raises(app_module._Terminated):
            os.kill(os.getpid(), signal.SIGTERM)
            time.sleep(5)
        assert not app_module._CANCEL.is_set()

    def test_during_poll_cancels_it(self, sigterm_handler: None) -> None:
        app_module._POLLING.set()
        os.kill(os.getpid(), signal.SIGTERM)
        assert app_module._CANCEL.wait(5)

    def test_reporter_marks_poll_window(self) -> None:
        seen: list[bool] = []
        with patch("stagely.cli.progress.PollProgress"):
            reporter = app_module._reporter()
            with reporter.waiting("Waiting for cluster"):
                seen.append(app_module._POLLING.is_set())
        seen.append(app_module._POLLING.is_set())
        assert seen == [True, False]

    def test_deploy_is_interrupted(self, service: MagicMock, sigterm_handler: None) -> None:
        def apply(manifest: str) -> DeployResult:
            os.kill(os.getpid(), signal.SIGTERM)
            time.sleep(5)
            return DeployResult(manifest, "mycluster.k8s.local", ProcessResult(("kubectl",), 0))

        service.deploy.side_effect = apply
        with pytest.raises(app_module._Terminated):
            main(["deploy", "app.yaml"])
