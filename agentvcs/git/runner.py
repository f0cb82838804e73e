"""Runs structured commands over the channel and sanitizes what comes back."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from agentvcs.git.commands import GitCommand, ShellCommand, wrap_shell
from agentvcs.git.sanitizer import clean_output

if TYPE_CHECKING:
    from agentvcs.channel.base import CommandChannel

logger = structlog.get_logger()


class GitRunner:
    def __init__(self, channel: CommandChannel, working_dir: str = "/app") -> None:
        self._channel = channel
        self._working_dir = working_dir

    @property
    def working_dir(self) -> str:
        return self._working_dir

    async def run(
        self,
        container_id: str,
        command: GitCommand,
        *,
        working_dir: str | None = None,
        preserve_leading_spaces: bool = False,
        disable_prompts: bool = False,
        check_exit_code: bool = False,
    ) -> str:
        """Execute a git command in the container and return cleaned output."""
        inner = command.render(
            working_dir or self._working_dir, disable_prompts=disable_prompts
        )
        logger.debug(
            "git_exec",
            container_id=container_id,
            subcommand=command.subcommand,
            checked=check_exit_code,
        )
        output = await self._channel.execute(
            container_id, wrap_shell(inner), check_exit_code=check_exit_code
        )
        return clean_output(output, preserve_leading=preserve_leading_spaces)

    async def run_shell(
        self,
        container_id: str,
        command: ShellCommand,
        *,
        working_dir: str | None = None,
        check_exit_code: bool = False,
    ) -> str:
        """Execute a non-git helper (stat, cat, base64) in the repository."""
        inner = command.render(working_dir or self._working_dir)
        logger.debug("shell_exec", container_id=container_id, program=command.program)
        output = await self._channel.execute(
            container_id, wrap_shell(inner), check_exit_code=check_exit_code
        )
        return clean_output(output)

    async def run_raw(
        self,
        container_id: str,
        command: ShellCommand,
        *,
        check_exit_code: bool = True,
    ) -> str:
        """Execute without sanitizing, for payloads that must survive intact."""
        inner = command.render(self._working_dir)
        return await self._channel.execute(
            container_id, wrap_shell(inner), check_exit_code=check_exit_code
        )
