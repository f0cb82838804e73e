"""Binary-vs-text heuristics shared by status, diff and file reads."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from agentvcs.exceptions import AgentVcsError
from agentvcs.git.commands import GitCommand

if TYPE_CHECKING:
    from agentvcs.git.runner import GitRunner

logger = structlog.get_logger()

BINARY_EXTENSIONS = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".svg",
        ".ico",
        ".webp",
        ".pdf",
        ".zip",
        ".tar",
        ".gz",
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".bin",
        ".woff",
        ".woff2",
        ".ttf",
        ".eot",
        ".otf",
    }
)

_SAMPLE_SIZE = 512
_CONTROL_CHAR_THRESHOLD = 0.1
_BINARY_NUMSTAT_PREFIX = "-\t-\t"


def has_binary_extension(path: str) -> bool:
    lower = path.lower()
    return any(lower.endswith(ext) for ext in BINARY_EXTENSIONS)


def _is_control(code: int) -> bool:
    # Tab, LF and CR are ordinary text.
    return (
        0 <= code <= 8
        or code in (11, 12)
        or 14 <= code <= 31
        or 127 <= code <= 159
    )


def looks_binary(text: str) -> bool:
    """True when control characters exceed 10% of the leading sample."""
    sample = text[:_SAMPLE_SIZE]
    if not sample:
        return False
    controls = sum(1 for c in sample if _is_control(ord(c)))
    return controls / len(sample) > _CONTROL_CHAR_THRESHOLD


def parse_check_attr(output: str) -> bool:
    """Read ``check-attr -z binary`` output (``path NUL binary NUL value NUL``)."""
    if "binary: set" in output:
        return True
    fields = output.split("\0")
    for i in range(len(fields) - 2):
        if fields[i + 1] == "binary" and fields[i + 2].strip() == "set":
            return True
    return False


class BinaryProbe:
    def __init__(self, runner: GitRunner) -> None:
        self._runner = runner

    async def is_binary(self, container_id: str, path: str) -> bool:
        """Ask git whether *path* is binary.

        ``check-attr`` first; if that call fails, look for the ``-`` line
        counts git prints for binary files in ``diff --numstat``; if that
        fails too, assume text.
        """
        try:
            output = await self._runner.run_raw(
                container_id,
                GitCommand.of("check-attr", "-z", "binary", "--", path),
                check_exit_code=True,
            )
            return parse_check_attr(output)
        except AgentVcsError as e:
            logger.debug("binary_probe_check_attr_failed", path=path, error=str(e))

        try:
            output = await self._runner.run(
                container_id,
                GitCommand.of("diff", "--numstat", "--", path),
            )
            return any(
                line.startswith(_BINARY_NUMSTAT_PREFIX) for line in output.split("\n")
            )
        except AgentVcsError as e:
            logger.debug("binary_probe_diff_failed", path=path, error=str(e))
            return False
