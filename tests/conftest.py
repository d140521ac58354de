"""Shared pytest fixtures and configuration for the stagely test suite.

Guidelines
----------
* No internet access and no real aws / kops / kubectl in any test.
* Subprocess and questionary are mocked at the infra/cli boundary.
* Core services are driven with the in-memory fakes defined here.
* Tests must not depend on OS state; config files live in ``tmp_path``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from stagely.core.credentials import CredentialManager
from stagely.core.models import ClusterSettings, ProcessResult
from stagely.exceptions import ConfigMissingError
from stagely.infra.config_store import ConfigStore
from stagely.settings import Settings


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

@dataclass
class Call:
    args: tuple[str, ...]
    silent: bool
    env: dict[str, str]


class FakeRunner:
    """Scripted ``CommandRunner``.

    Responses are keyed by an argument prefix; the longest matching
    prefix wins.  Queued responses are consumed in order and the last
    one repeats.  Unscripted commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._responses: dict[tuple[str, ...], list[tuple[int, str, str]]] = {}

    def respond(self, prefix: Sequence[str], *responses: tuple[int, str, str]) -> None:
        self._responses[tuple(prefix)] = list(responses)

    def run(
        self,
        args: Sequence[str],
        *,
        silent: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        argv = tuple(args)
        self.calls.append(Call(argv, silent, dict(env or {})))
        matches = [p for p in self._responses if argv[: len(p)] == p]
        if not matches:
            return ProcessResult(args=argv, returncode=0)
        queue = self._responses[max(matches, key=len)]
        returncode, stdout, stderr = queue.pop(0) if len(queue) > 1 else queue[0]
        return ProcessResult(args=argv, returncode=returncode, stdout=stdout, stderr=stderr)

    def calls_to(self, *prefix: str) -> list[Call]:
        return [c for c in self.calls if c.args[: len(prefix)] == prefix]


@dataclass
class FakePrompter:
    profiles: list[str] = field(default_factory=lambda: ["default"])
    cluster: ClusterSettings = field(
        default_factory=lambda: ClusterSettings("mycluster", "k8s.local", "us-east-1")
    )
    zone_choice: list[str] | None = None
    offered_zones: list[list[str]] = field(default_factory=list)
    profile_prompts: int = 0

    def ask_profile(self, default: str = "default") -> str:
        self.profile_prompts += 1
        if len(self.profiles) > 1:
            return self.profiles.pop(0)
        return self.profiles[0]

    def ask_cluster_settings(self) -> ClusterSettings:
        return self.cluster

    def ask_zones(self, available: Sequence[str]) -> list[str]:
        self.offered_zones.append(list(available))
        if self.zone_choice is not None:
            return list(self.zone_choice)
        return list(available[:1])


class MemoryConfig:
    """In-memory ``ConfigRepository``."""

    def __init__(self, record: dict[str, str] | None = None) -> None:
        self.record = record
        self.initializer = None

    def write(self, key: str, value: str) -> None:
        self.record = {**(self.record or {}), key: value}

    def read(self, create_if_missing: bool = False) -> dict[str, str] | None:
        if self.record is None and create_if_missing and self.initializer is not None:
            self.initializer()
        return None if self.record is None else dict(self.record)

    def require(self) -> dict[str, str]:
        if self.record is None:
            raise ConfigMissingError("No configuration found.")
        return dict(self.record)


class RecordingReporter:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.ticks = 0

    def header(self, title: str) -> None:
        self.messages.append(("header", title))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str, detail: str = "") -> None:
        self.messages.append(("error", message))

    @contextmanager
    def waiting(self, message: str) -> Iterator[None]:
        self.messages.append(("waiting", message))
        yield

    def tick(self) -> None:
        self.ticks += 1

    def of(self, kind: str) -> list[str]:
        return [text for k, text in self.messages if k == kind]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

ACCESS_KEY = ("aws", "configure", "get", "aws_access_key_id")
SECRET_KEY = ("aws", "configure", "get", "aws_secret_access_key")


@pytest.fixture
def runner() -> FakeRunner:
    fake = FakeRunner()
    fake.respond(ACCESS_KEY, (0, "AKIAEXAMPLE\n", ""))
    fake.respond(SECRET_KEY, (0, "secret\n", ""))
    return fake


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def memory_config() -> MemoryConfig:
    return MemoryConfig()


@pytest.fixture
def config_store(tmp_path: Path) -> ConfigStore:
    return ConfigStore(tmp_path / "stagely.config")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        config_path=tmp_path / "stagely.config",
        poll_interval=0.0001,
        poll_timeout=5.0,
        clear_store_script=tmp_path / "clear-store.sh",
    )


@pytest.fixture
def credential_manager(
    runner: FakeRunner,
    prompter: FakePrompter,
    memory_config: MemoryConfig,
    reporter: RecordingReporter,
) -> CredentialManager:
    return CredentialManager(runner, prompter, memory_config, reporter)
