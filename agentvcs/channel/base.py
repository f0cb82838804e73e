"""Remote command channel protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CommandChannel(Protocol):
    """Runs a shell command string inside a container and returns its text.

    Output is stdout and stderr combined, already demultiplexed. With
    ``check_exit_code`` a non-zero exit raises RemoteCommandError; without
    it the output is returned whatever the exit code was.
    """

    async def execute(
        self,
        container_id: str,
        command: str,
        *,
        stdin: bytes | str | None = None,
        check_exit_code: bool = False,
    ) -> str: ...
