"""Command-line entry point: parsing, routing and the process error boundary.

Handlers here only wire adapters into :class:`~stagely.core.cluster_service.ClusterService`
and turn its results into messages and exit statuses.  :func:`cli` is
the one place where exceptions become exit codes; everything below it
raises :class:`~stagely.exceptions.StagelyError` subclasses.

``--version`` is checked before ``--help``, and both before any command.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from dataclasses import dataclass, field

from stagely.cli import exit_codes
from stagely.cli.console import ConsoleReporter, configure_logging, console
from stagely.core.cluster_service import ClusterService
from stagely.core.models import PollOutcome
from stagely.exceptions import ExternalCommandError, StagelyError, UsageError
from stagely.settings import Settings
from stagely.version import __description__, __version__

PROG = "stagely"

USAGE = f"{PROG} [options] <command> <subcommand> [<subcommand> ...] [parameters]"

COMMANDS_HELP = """\
Available Commands:
  configure        Runs configuration for cli. Must be run once before using.
                   With --cluster, creates a staging cluster afterwards.
  create cluster   Creates new staging cluster.
  delete cluster   Deletes staging cluster and all associated resources.
  deploy <file>    Deploys a Kubernetes manifest into the staging cluster.
  doctor           Checks that aws, kops and kubectl are installed.
"""

_CREATE_TOOLS = ("aws", "kops", "kubectl")

# Set on SIGTERM while the readiness poll runs; ends the poll early.
_CANCEL = threading.Event()
# Set by the reporter while the readiness poll runs.
_POLLING = threading.Event()


class _Terminated(BaseException):
    """SIGTERM received while no readiness poll was running."""


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """``--help`` is a plain flag so that ``--version`` can win over it."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        usage=USAGE,
        description=__description__,
        epilog=COMMANDS_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Print name, version and description, then exit.",
    )
    parser.add_argument(
        "--help",
        action="store_true",
        help="Print this help, then exit.",
    )
    parser.add_argument(
        "--cluster",
        action="store_true",
        help="With 'configure', also create the staging cluster.",
    )
    parser.add_argument("command", nargs="?", default=None, help=argparse.SUPPRESS)
    parser.add_argument("subcommands", nargs="*", default=[], help=argparse.SUPPRESS)
    return parser


@dataclass(frozen=True, slots=True)
class CommandLine:
    """Normalised command line: flags, command and chained subcommands."""

    print_version: bool = False
    print_help: bool = False
    create_cluster: bool = False
    command: str | None = None
    subcommands: list[str] = field(default_factory=list)

    @property
    def subcommand(self) -> str | None:
        return self.subcommands[0] if self.subcommands else None


def parse_command_line(
    argv: list[str] | None,
    parser: argparse.ArgumentParser | None = None,
) -> CommandLine:
    """Parse *argv*; flags may appear anywhere among the positionals."""
    args = (parser or _build_parser()).parse_intermixed_args(argv)
    return CommandLine(
        print_version=args.version,
        print_help=args.help,
        create_cluster=args.cluster,
        command=args.command,
        subcommands=list(args.subcommands),
    )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def _build_service(settings: Settings, reporter: ConsoleReporter) -> ClusterService:
    """Assemble the concrete adapters behind :class:`ClusterService`."""
    from stagely.cli.prompts import QuestionaryPrompter
    from stagely.core.credentials import CredentialManager
    from stagely.infra.config_store import ConfigStore
    from stagely.infra.process_runner import SubprocessRunner

    runner = SubprocessRunner()
    prompter = QuestionaryPrompter()
    store = ConfigStore(settings.config_path)
    credentials = CredentialManager(runner, prompter, store, reporter)
    service = ClusterService(
        runner,
        prompter,
        store,
        credentials,
        reporter,
        settings,
        cancel=_CANCEL,
    )
    store.initializer = service.configure
    return service


def _reporter() -> ConsoleReporter:
    return ConsoleReporter(waiting_flag=_POLLING)


def _preflight(*tools: str) -> None:
    """Fail before any side effect if a collaborator is missing."""
    from stagely.infra.tool_detector import require_tool

    for tool in tools:
        require_tool(tool)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_configure(settings: Settings, create_cluster: bool) -> int:
    if create_cluster:
        _preflight(*_CREATE_TOOLS)
    else:
        _preflight("aws")
    reporter = _reporter()
    service = _build_service(settings, reporter)
    credentials = service.configure()
    reporter.success(f"Using AWS cli profile '{credentials.profile}'.")
    if create_cluster:
        return _create_cluster(service, reporter, settings)
    return exit_codes.SUCCESS


def _handle_create(settings: Settings) -> int:
    _preflight(*_CREATE_TOOLS)
    reporter = _reporter()
    service = _build_service(settings, reporter)
    return _create_cluster(service, reporter, settings)


def _create_cluster(service: ClusterService, reporter: ConsoleReporter, settings: Settings) -> int:
    result = service.create_cluster()
    name = result.descriptor.cluster_name

    if result.outcome is PollOutcome.TIMED_OUT:
        reporter.error(
            f"Cluster {name} did not validate within {settings.poll_timeout:.0f} seconds.",
            "It may still come up; check with: kops validate cluster --name " + name,
        )
        return exit_codes.GENERAL_ERROR
    if result.outcome is PollOutcome.CANCELLED:
        reporter.warn(f"Stopped waiting for cluster {name}.")
        return exit_codes.GENERAL_ERROR
    if result.outcome is PollOutcome.ERROR:
        reporter.error(f"Could not validate cluster {name}.")
        return exit_codes.GENERAL_ERROR

    if result.failed_manifests:
        reporter.warn("Some bootstrap manifests failed: " + ", ".join(result.failed_manifests))
    message = f"Cluster {name} ready."
    if result.load_balancer:
        message += f" Ingress load balancer: {result.load_balancer}"
    reporter.success(message)
    return exit_codes.SUCCESS if result.ok else exit_codes.GENERAL_ERROR


def _handle_delete(settings: Settings) -> int:
    _preflight("aws", "kops")
    reporter = _reporter()
    service = _build_service(settings, reporter)
    result = service.delete_cluster()
    if not result.deleted:
        reporter.error("Problem deleting some of your cluster resources.")
        return exit_codes.GENERAL_ERROR
    for failure in result.cleanup_failures:
        reporter.warn(f"Could not {failure}.")
    reporter.success("Cluster deleted successfully")
    return exit_codes.SUCCESS


def _handle_deploy(settings: Settings, manifest: str | None) -> int:
    if not manifest:
        raise UsageError(
            "deploy requires a manifest file.",
            hint=f"Usage: {PROG} deploy <file>",
        )
    _preflight("aws", "kubectl")
    reporter = _reporter()
    service = _build_service(settings, reporter)
    result = service.deploy(manifest)
    if result.ok:
        reporter.success(f"Successfully deployed {manifest} into {result.cluster_name}")
        return exit_codes.SUCCESS
    reporter.error(
        f"Unable to deploy {manifest} into {result.cluster_name}",
        result.result.stdout.strip(),
    )
    return exit_codes.GENERAL_ERROR


def _handle_doctor(settings: Settings) -> int:
    from stagely.cli.doctor import run_doctor

    return run_doctor(settings.config_path)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Parse *argv* (``sys.argv[1:]`` when ``None``) and run one command.

    Returns the exit status; domain errors propagate to :func:`cli`.
    """
    parser = _build_parser()
    options = parse_command_line(argv, parser)

    if options.print_version:
        print(f"\n{PROG} {__version__}\n\n{__description__}")
        return exit_codes.SUCCESS
    if options.print_help:
        parser.print_help()
        return exit_codes.SUCCESS

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    command = options.command
    if command == "configure":
        return _handle_configure(settings, options.create_cluster)
    if command == "create" and options.subcommand == "cluster":
        return _handle_create(settings)
    if command == "delete" and options.subcommand == "cluster":
        return _handle_delete(settings)
    if command == "deploy":
        return _handle_deploy(settings, options.subcommand)
    if command == "doctor":
        return _handle_doctor(settings)

    parser.print_help()
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Process boundary
# ---------------------------------------------------------------------------

def _on_sigterm(_signum: int, _frame: object) -> None:
    """Cancel the readiness poll if one is running, otherwise stop."""
    if _POLLING.is_set():
        _CANCEL.set()
        return
    raise _Terminated


def cli() -> None:
    """Console-script entry point.

    Installs the SIGTERM handler, runs :func:`main` and maps whatever
    escapes it to an exit status and a one-line message.
    """
    signal.signal(signal.SIGTERM, _on_sigterm)
    try:
        code = main()
        sys.exit(code)
    except StagelyError as exc:
        console.print(f"[bold red]ERROR[/bold red] {exc}")
        if isinstance(exc, ExternalCommandError) and exc.output:
            console.print(exc.output)
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except _Terminated:
        console.print("\n[yellow]Terminated.[/yellow]")
        sys.exit(exit_codes.TERMINATED)
    except Exception as exc:  # noqa: BLE001
        console.print(
            f"[bold red]Internal error:[/bold red] {type(exc).__name__}: {exc}\n"
            "This is a bug in stagely; please report it."
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
