"""Pure parsers for porcelain status and rev-list counts."""

from __future__ import annotations

import re

from agentvcs.git.models import FileStatusType

_MIN_STATUS_LINE = 4
_COUNT_RE = re.compile(r"^\d+$")


def classify_status(code: str) -> FileStatusType:
    """Map a two-character porcelain code to its file type."""
    staged = code[0] if len(code) > 0 else " "
    unstaged = code[1] if len(code) > 1 else " "
    if staged == "?" and unstaged == "?":
        return "untracked"
    if staged != " " and unstaged != " ":
        return "both"
    if staged != " ":
        return "staged"
    return "unstaged"


def parse_porcelain(output: str) -> list[tuple[str, str]]:
    """Return ``(code, path)`` pairs from ``git status --porcelain`` output.

    The output must keep its leading spaces: ``" M a.txt"`` and
    ``"M  a.txt"`` differ only in column position.
    """
    entries: list[tuple[str, str]] = []
    for line in output.split("\n"):
        if len(line) < _MIN_STATUS_LINE:
            continue

        code = line[:2]
        start = 2
        while start < len(line) and line[start] in (" ", "\t"):
            start += 1
        if start >= len(line):
            continue

        path = line[start:].strip()
        if not path:
            continue
        entries.append((code, path))
    return entries


def parse_count(output: str) -> int | None:
    value = output.strip()
    if not _COUNT_RE.match(value):
        return None
    return int(value)


def parse_left_right(output: str) -> tuple[int, int] | None:
    """Parse ``rev-list --left-right --count`` output: ``"<ahead>\\t<behind>"``."""
    parts = output.split()
    if len(parts) != 2:
        return None
    ahead, behind = parse_count(parts[0]), parse_count(parts[1])
    if ahead is None or behind is None:
        return None
    return ahead, behind


def strip_remote_head(output: str, remote: str = "origin") -> str:
    """Turn ``refs/remotes/origin/main`` into ``main``."""
    prefix = f"refs/remotes/{remote}/"
    value = output.strip()
    if value.startswith(prefix):
        return value[len(prefix) :]
    return value
