"""Command channel backed by `docker exec`."""

from __future__ import annotations

import asyncio
import contextlib

import structlog

from agentvcs.exceptions import ChannelError, NotFoundError, RemoteCommandError

logger = structlog.get_logger()

_DEFAULT_TIMEOUT = 30.0
_MISSING_CONTAINER_MARKERS = (
    "Error: No such container",
    "Error response from daemon: No such container",
)


class DockerExecChannel:
    """Runs shell commands in a container through the docker CLI.

    stdout and stderr are merged at the pipe, so the text keeps the order in
    which the remote process wrote it.
    """

    def __init__(
        self, *, docker_binary: str = "docker", timeout: float = _DEFAULT_TIMEOUT
    ) -> None:
        self._docker = docker_binary
        self._timeout = timeout

    async def execute(
        self,
        container_id: str,
        command: str,
        *,
        stdin: bytes | str | None = None,
        check_exit_code: bool = False,
    ) -> str:
        code, output = await self._run(container_id, command, stdin=stdin)

        if code != 0 and _is_missing_container(output):
            raise NotFoundError(f"Container with ID '{container_id}' not found")

        if code != 0 and check_exit_code:
            logger.debug(
                "channel_command_failed",
                container_id=container_id,
                exit_code=code,
            )
            raise RemoteCommandError(
                output.strip() or f"Command exited with code {code}",
                exit_code=code,
                output=output,
            )
        return output

    async def _run(
        self, container_id: str, command: str, *, stdin: bytes | str | None
    ) -> tuple[int, str]:
        cmd = (self._docker, "exec", "-i", container_id, "sh", "-c", command)
        logger.debug("channel_exec", container_id=container_id)

        payload = stdin.encode() if isinstance(stdin, str) else stdin

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise ChannelError(
                f"{self._docker} is not installed or not in PATH"
            ) from e
        except OSError as e:
            logger.error("channel_exec_error", container_id=container_id, error=str(e))
            raise ChannelError(str(e)) from e

        try:
            stdout_bytes, _ = await asyncio.wait_for(
                proc.communicate(input=payload), timeout=self._timeout
            )
        except TimeoutError as e:
            logger.warning(
                "channel_exec_timeout",
                container_id=container_id,
                timeout=self._timeout,
            )
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            raise ChannelError(f"Command timed out after {self._timeout}s") from e

        output = (stdout_bytes or b"").decode("utf-8", errors="replace")
        return proc.returncode or 0, output


def _is_missing_container(output: str) -> bool:
    return any(marker in output for marker in _MISSING_CONTAINER_MARKERS)
