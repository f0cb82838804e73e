"""Pure functions to format git engine results as operator text."""

import base64
import binascii

from agentvcs.git.models import Branch, FileDiff, GitResult, RepositoryStatus

_SECTION_TITLES = (
    ("staged", "\U0001f7e2 Staged:"),
    ("unstaged", "\U0001f534 Unstaged:"),
    ("both", "\U0001f7e1 Staged and modified:"),
    ("untracked", "\u2753 Untracked:"),
)


def format_status(status: RepositoryStatus) -> str:
    """Format RepositoryStatus for display."""
    lines: list[str] = []

    branch_line = f"\U0001f4cb Branch: {status.current_branch or '(unknown)'}"
    if status.tracking == "unavailable":
        branch_line += " (tracking unavailable)"
    else:
        parts: list[str] = []
        if status.ahead_count:
            parts.append(f"{status.ahead_count} ahead")
        if status.behind_count:
            parts.append(f"{status.behind_count} behind")
        if status.tracking == "default_branch":
            parts.append("no upstream")
        if parts:
            branch_line += f" ({', '.join(parts)})"
    lines.append(branch_line)

    for kind, title in _SECTION_TITLES:
        files = [f for f in status.files if f.type == kind]
        if not files:
            continue
        lines.append("")
        lines.append(title)
        for f in files:
            marker = " [binary]" if f.is_binary else ""
            lines.append(f"  {f.status.strip() or '?'} {f.path}{marker}")

    if status.is_clean:
        lines.append("")
        lines.append("\u2728 Working tree clean")

    return "\n".join(lines)


def format_branches(branches: list[Branch], max_display: int = 20) -> str:
    """Format branch list for display, local branches first."""
    if not branches:
        return "\U0001f33f No branches found."

    local = [b for b in branches if not b.is_remote]
    remote = [b for b in branches if b.is_remote]
    lines: list[str] = []

    if local:
        lines.append("\U0001f33f Local branches:")
        for branch in local[:max_display]:
            marker = "* " if branch.is_current else "  "
            line = f"{marker}{branch.name}"
            if branch.ahead_count is not None:
                line += f" [+{branch.ahead_count}/-{branch.behind_count or 0}]"
            if branch.commit:
                line += f"  {branch.commit} {branch.message}"
            lines.append(line)
        if len(local) > max_display:
            lines.append(f"  ... and {len(local) - max_display} more")

    if remote:
        if lines:
            lines.append("")
        lines.append("\U0001f310 Remote branches:")
        for branch in remote[:max_display]:
            line = f"  {branch.remote}/{branch.name}"
            if branch.commit:
                line += f"  {branch.commit} {branch.message}"
            lines.append(line)
        if len(remote) > max_display:
            lines.append(f"  ... and {len(remote) - max_display} more")

    return "\n".join(lines)


def format_diff(diff: FileDiff, max_length: int = 3500) -> str:
    """Render a file diff as before/after text, truncated to *max_length*."""
    if diff.is_binary:
        return (
            f"\U0001f4e6 {diff.path} (binary)\n"
            f"  HEAD: {diff.original_size or 0} bytes\n"
            f"  Working tree: {diff.modified_size or 0} bytes"
        )

    original = _decode(diff.original_content)
    modified = _decode(diff.modified_content)
    if original == modified:
        return f"No changes to display for {diff.path}."

    text = (
        f"--- HEAD:{diff.path}\n{original}\n"
        f"+++ working tree:{diff.path}\n{modified}"
    )
    if len(text) <= max_length:
        return text

    total_lines = text.count("\n")
    truncated = text[:max_length]
    # Cut at last newline to avoid partial lines
    last_nl = truncated.rfind("\n")
    if last_nl > 0:
        truncated = truncated[:last_nl]
    return f"{truncated}\n\n... truncated ({total_lines} total lines)"


def format_result(result: GitResult, emoji: str = "") -> str:
    """Format a GitResult with success/failure indicator."""
    icon = emoji or ("\u2705" if result.success else "\u274c")
    text = f"{icon} {result.message}"
    if result.details:
        text += f"\n{result.details}"
    return text


def format_help() -> str:
    """Return help text listing all subcommands."""
    return (
        "\U0001f6e0 Git Commands:\n"
        "\n"
        "status — Show status\n"
        "branches — List local and remote branches\n"
        "diff <path> — Show HEAD vs working tree for a file\n"
        "add — Stage all changes\n"
        "add <path>... — Stage files\n"
        "reset [<path>...] — Unstage files\n"
        "commit <msg> — Commit with message\n"
        "push [--force] — Push current branch\n"
        "pull — Pull current branch\n"
        "fetch — Fetch from remote\n"
        "rebase <branch> — Rebase onto branch\n"
        "checkout <branch> — Switch branch\n"
        "branch <name> [--type <t>] [--from <base>] — Create branch\n"
        "delete <branch> — Delete branch\n"
        "resolve <path> <yours|mine|both> — Resolve a conflict\n"
        "help — This message"
    )


def _decode(content: str) -> str:
    if not content:
        return ""
    try:
        return base64.b64decode(content).decode("utf-8", errors="replace")
    except binascii.Error:
        return content
