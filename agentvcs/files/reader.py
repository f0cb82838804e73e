"""Read files out of an agent's repository as base64 content."""

from __future__ import annotations

import base64
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

import structlog

from agentvcs.exceptions import NotFoundError, RemoteCommandError, ValidationError
from agentvcs.git.binary import has_binary_extension, looks_binary
from agentvcs.git.commands import ShellCommand
from agentvcs.git.models import FileContent
from agentvcs.storage.base import require_container

if TYPE_CHECKING:
    from agentvcs.git.binary import BinaryProbe
    from agentvcs.git.runner import GitRunner
    from agentvcs.storage.base import AgentStore

logger = structlog.get_logger()

_NON_BASE64_RE = re.compile(r"[^A-Za-z0-9+/=]")
_MISSING_FILE_MARKERS = ("No such file", "not found")


def sanitize_path(path: str) -> str:
    """Normalize a repository-relative path, rejecting traversal."""
    if not isinstance(path, str) or not path.strip():
        raise ValidationError("Path cannot be empty")
    normalized = path.strip().lstrip("/")
    if "\0" in normalized:
        raise ValidationError("Path cannot contain null bytes")
    if ".." in PurePosixPath(normalized).parts:
        raise ValidationError("Path traversal is not allowed")
    if not normalized:
        raise ValidationError("Path cannot be empty")
    return normalized


class FileReader:
    def __init__(
        self,
        store: AgentStore,
        runner: GitRunner,
        probe: BinaryProbe,
        *,
        max_file_size: int = 10 * 1024 * 1024,
    ) -> None:
        self._store = store
        self._runner = runner
        self._probe = probe
        self._max_file_size = max_file_size

    async def read_file(self, agent_id: str, path: str) -> FileContent:
        container_id = await require_container(self._store, agent_id)
        relative = sanitize_path(path)

        if has_binary_extension(relative) or await self._probe.is_binary(
            container_id, relative
        ):
            return await self._read_base64(container_id, relative)

        try:
            text = await self._runner.run_raw(
                container_id, ShellCommand(program="cat", args=(f"./{relative}",))
            )
        except RemoteCommandError as e:
            if _is_missing(e.output or str(e)):
                raise NotFoundError(f"File not found: {relative}") from e
            logger.debug("file_text_read_failed", path=relative, error=str(e))
            return await self._read_base64(container_id, relative)

        if looks_binary(text):
            logger.debug("file_control_chars_detected", path=relative)
            return await self._read_base64(container_id, relative)

        raw = text.encode("utf-8")
        if len(raw) > self._max_file_size:
            raise ValidationError(
                f"File size exceeds maximum allowed size of {self._max_file_size} bytes"
            )
        return FileContent(content=base64.b64encode(raw).decode(), encoding="utf-8")

    async def _read_base64(self, container_id: str, relative: str) -> FileContent:
        try:
            output = await self._runner.run_raw(
                container_id, ShellCommand(program="base64", args=(f"./{relative}",))
            )
        except RemoteCommandError as e:
            if _is_missing(e.output or str(e)):
                raise NotFoundError(f"File not found: {relative}") from e
            raise

        content = _NON_BASE64_RE.sub("", output)
        if len(content) * 3 // 4 > self._max_file_size:
            raise ValidationError(
                f"File size exceeds maximum allowed size of {self._max_file_size} bytes"
            )
        return FileContent(content=content, encoding="base64")


def _is_missing(output: str) -> bool:
    return any(marker in output for marker in _MISSING_FILE_MARKERS)
