"""Branch name validation.

Names are accepted or rejected whole. A listing line carrying a backtick or
a space is dropped rather than stripped into something that might collide
with a different, real branch.
"""

from __future__ import annotations

import re

from agentvcs.git.sanitizer import clean_output

_BRANCH_NAME_RE = re.compile(r"^[a-zA-Z0-9._\-/]+$")
_NEW_BRANCH_NAME_RE = re.compile(r"^[a-zA-Z0-9/_-]+$")
_REMOTES_PREFIXED_RE = re.compile(r"^remotes/([^/]+)/(.+)$")
_REMOTE_REF_RE = re.compile(r"^([^/]+)/(.+)$")

CONVENTIONAL_TYPES = (
    "feat",
    "fix",
    "chore",
    "docs",
    "style",
    "refactor",
    "test",
    "perf",
)


def is_valid_branch_name(name: str) -> bool:
    if not name:
        return False
    if name.startswith("."):
        return False
    if name.endswith(".") or name.endswith("/"):
        return False
    if ".." in name:
        return False
    if not _BRANCH_NAME_RE.match(name):
        return False
    return name.strip() == name


def clean_branch_name(raw: str) -> str:
    """Return the branch name from a listing line, or '' if it is invalid.

    Handles the ``* `` marker git prints in front of the current branch.
    """
    if not raw:
        return ""
    cleaned = clean_output(raw).strip(" \t\n*").strip()
    if not is_valid_branch_name(cleaned):
        return ""
    return cleaned


def parse_remote_ref(ref: str) -> tuple[str, str] | None:
    """Split ``remotes/<remote>/<name>`` or ``<remote>/<name>``."""
    match = _REMOTES_PREFIXED_RE.match(ref) or _REMOTE_REF_RE.match(ref)
    if not match:
        return None
    return match.group(1), match.group(2)


def is_valid_new_branch_name(name: str) -> bool:
    return bool(_NEW_BRANCH_NAME_RE.match(name))


def apply_conventional_prefix(name: str, conventional_type: str | None) -> str:
    if not conventional_type:
        return name
    prefix = f"{conventional_type}/"
    if name.startswith(prefix):
        return name
    return f"{prefix}{name}"
