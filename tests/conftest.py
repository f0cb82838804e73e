"""Shared fixtures and a scripted command channel for testing."""

from __future__ import annotations

import os

import pytest

from agentvcs.core.config import AgentVcsConfig
from agentvcs.core.locks import AgentLocks
from agentvcs.exceptions import RemoteCommandError
from agentvcs.files.reader import FileReader
from agentvcs.git.binary import BinaryProbe
from agentvcs.git.runner import GitRunner
from agentvcs.git.service import GitService
from agentvcs.storage.base import AgentRecord
from agentvcs.storage.memory import MemoryAgentStore

AGENT_ID = "agent-1"
CONTAINER_ID = "c0ffee"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Prevent .env file and shell env from leaking into tests."""
    monkeypatch.setitem(AgentVcsConfig.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("AGENTVCS_"):
            monkeypatch.delenv(key, raising=False)


class FakeChannel:
    """In-memory command channel.

    Rules are matched in registration order against the full command string
    (``sh -c '...'``); the first rule whose substring appears wins. Unmatched
    commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.commands: list[str] = []
        self._rules: list[tuple[str, str, int, Exception | None]] = []

    def on(
        self,
        substring: str,
        output: str = "",
        *,
        exit_code: int = 0,
        raises: Exception | None = None,
    ) -> FakeChannel:
        self._rules.append((substring, output, exit_code, raises))
        return self

    async def execute(
        self,
        container_id: str,
        command: str,
        *,
        stdin: bytes | str | None = None,
        check_exit_code: bool = False,
    ) -> str:
        self.commands.append(command)
        for substring, output, exit_code, raises in self._rules:
            if substring not in command:
                continue
            if raises is not None:
                raise raises
            if exit_code != 0 and check_exit_code:
                raise RemoteCommandError(
                    output.strip() or f"Command exited with code {exit_code}",
                    exit_code=exit_code,
                    output=output,
                )
            return output
        return ""

    def ran(self, substring: str) -> bool:
        return any(substring in c for c in self.commands)

    def matching(self, substring: str) -> list[str]:
        return [c for c in self.commands if substring in c]


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def store():
    return MemoryAgentStore(
        [
            AgentRecord(agent_id=AGENT_ID, name="worker", container_id=CONTAINER_ID),
            AgentRecord(agent_id="idle", name="no container"),
        ]
    )


@pytest.fixture
def runner(channel):
    return GitRunner(channel, working_dir="/app")


@pytest.fixture
def probe(runner):
    return BinaryProbe(runner)


@pytest.fixture
def reader(store, runner, probe):
    return FileReader(store, runner, probe)


@pytest.fixture
def service(store, runner, probe, reader):
    return GitService(store, runner, probe, reader, locks=AgentLocks())
