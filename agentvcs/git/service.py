"""Remote git engine: git operations executed inside agent containers."""

from __future__ import annotations

import base64
import contextlib
from collections.abc import Iterator
from typing import TYPE_CHECKING

import structlog

from agentvcs.core.locks import AgentLocks
from agentvcs.exceptions import (
    AgentVcsError,
    AuthenticationError,
    ChannelError,
    NotFoundError,
    RemoteCommandError,
    ValidationError,
)
from agentvcs.files.reader import sanitize_path
from agentvcs.git.branches import (
    apply_conventional_prefix,
    clean_branch_name,
    is_valid_branch_name,
    is_valid_new_branch_name,
    parse_remote_ref,
)
from agentvcs.git.commands import GitCommand, ShellCommand
from agentvcs.git.models import (
    Branch,
    ConflictResolution,
    CreateBranchRequest,
    FileDiff,
    FileStatus,
    RepositoryStatus,
    TrackingCounts,
)
from agentvcs.git.status import (
    classify_status,
    parse_count,
    parse_left_right,
    parse_porcelain,
    strip_remote_head,
)
from agentvcs.storage.base import require_container

if TYPE_CHECKING:
    from agentvcs.files.reader import FileReader
    from agentvcs.git.binary import BinaryProbe
    from agentvcs.git.runner import GitRunner
    from agentvcs.storage.base import AgentStore

logger = structlog.get_logger()

_AUTH_FAILURE_MARKERS = (
    "Authentication failed",
    "could not read Username",
    "could not read Password",
    "Permission denied",
)
_CREDENTIALS_HINT = (
    "No valid credentials available. Please configure Git credentials "
    "(GIT_USERNAME and GIT_TOKEN) or SSH key (GIT_PRIVATE_KEY)."
)
_LOG_FORMAT = "--format=%h|%s"
_UNAVAILABLE = TrackingCounts()


class GitService:
    """Turns version-control intents into commands run in an agent container.

    Every call resolves the agent to its container, issues strictly
    sequential channel round trips, and returns a freshly built model.
    Mutating operations hold a per-agent lock so that two of them never
    interleave in the same working tree; reads are not serialized.
    """

    def __init__(
        self,
        store: AgentStore,
        runner: GitRunner,
        probe: BinaryProbe,
        file_reader: FileReader,
        *,
        remote: str = "origin",
        default_branch: str = "main",
        author_name: str = "Agenstra Agent",
        author_email: str = "agent@agenstra.local",
        locks: AgentLocks | None = None,
    ) -> None:
        self._store = store
        self._runner = runner
        self._probe = probe
        self._file_reader = file_reader
        self._remote = remote
        self._default_branch = default_branch
        self._author_name = author_name
        self._author_email = author_email
        self._locks = locks or AgentLocks()

    # ── Reads ────────────────────────────────────────────────────────

    async def get_status(self, agent_id: str) -> RepositoryStatus:
        container_id = await require_container(self._store, agent_id)

        with self._classified(agent_id, "status", "get git status"):
            current = await self._current_branch(container_id)
            tracking = await self.resolve_tracking(container_id, current)

            output = await self._runner.run(
                container_id,
                GitCommand.of("status", "--porcelain"),
                preserve_leading_spaces=True,
                check_exit_code=True,
            )
            files: list[FileStatus] = []
            for code, path in parse_porcelain(output):
                files.append(
                    FileStatus(
                        path=path,
                        status=code,
                        type=classify_status(code),
                        is_binary=await self._probe.is_binary(container_id, path),
                    )
                )

            return RepositoryStatus(
                current_branch=current,
                ahead_count=tracking.ahead or 0,
                behind_count=tracking.behind or 0,
                tracking=tracking.source,
                files=files,
            )

    async def get_branches(self, agent_id: str) -> list[Branch]:
        container_id = await require_container(self._store, agent_id)

        with self._classified(agent_id, "branches", "get branches"):
            current = await self._current_branch(container_id)
            local_output = await self._runner.run(
                container_id, GitCommand.of("branch"), check_exit_code=True
            )
            remote_output = await self._runner.run(
                container_id, GitCommand.of("branch", "-r"), check_exit_code=True
            )

            local_names = self._local_branch_names(agent_id, local_output)
            remote_refs = self._remote_branch_refs(
                agent_id, remote_output, set(local_names)
            )

            branches: list[Branch] = []
            for name in local_names:
                commit, message = await self._last_commit(container_id, name)
                tracking = await self.resolve_tracking(container_id, name)
                branches.append(
                    Branch(
                        name=name,
                        ref=f"refs/heads/{name}",
                        is_current=name == current,
                        commit=commit,
                        message=message,
                        ahead_count=tracking.ahead,
                        behind_count=tracking.behind,
                    )
                )

            for remote, name in remote_refs:
                commit, message = await self._last_commit(
                    container_id, f"{remote}/{name}"
                )
                branches.append(
                    Branch(
                        name=name,
                        ref=f"refs/remotes/{remote}/{name}",
                        is_remote=True,
                        remote=remote,
                        commit=commit,
                        message=message,
                    )
                )
            return branches

    async def get_file_diff(self, agent_id: str, path: str) -> FileDiff:
        container_id = await require_container(self._store, agent_id)
        relative = sanitize_path(path)

        with self._classified(agent_id, "diff", "get file diff"):
            if await self._probe.is_binary(container_id, relative):
                original_size = await self._head_size(container_id, relative)
                modified_size = await self._working_size(container_id, relative)
                return FileDiff(
                    path=relative,
                    encoding="base64",
                    is_binary=True,
                    original_size=original_size,
                    modified_size=modified_size,
                )

            try:
                original = await self._runner.run_raw(
                    container_id,
                    GitCommand.of("show", f"HEAD:{relative}", quiet=True),
                )
            except RemoteCommandError:
                # Not in HEAD: a new file.
                original = ""

            try:
                modified = await self._file_reader.read_file(agent_id, relative)
                modified_content = modified.content
            except NotFoundError:
                # Deleted from the working tree.
                modified_content = ""

            return FileDiff(
                path=relative,
                original_content=base64.b64encode(original.encode("utf-8")).decode(),
                modified_content=modified_content,
                encoding="utf-8",
                is_binary=False,
            )

    # ── Tracking ─────────────────────────────────────────────────────

    async def resolve_tracking(self, container_id: str, branch: str) -> TrackingCounts:
        """Best-effort ahead/behind counts for *branch*.

        Against ``origin/<branch>`` when it exists, otherwise the commits not
        on the remote default branch (behind is then 0). Any failure yields
        an ``unavailable`` result instead of an exception.
        """
        if not branch:
            return _UNAVAILABLE

        try:
            if await self._remote_branch_exists(container_id, branch):
                output = await self._runner.run(
                    container_id,
                    GitCommand.of(
                        "rev-list",
                        "--left-right",
                        "--count",
                        f"{branch}...{self._remote}/{branch}",
                        quiet=True,
                    ),
                    check_exit_code=True,
                )
                counts = parse_left_right(output)
                if counts is None:
                    return _UNAVAILABLE
                return TrackingCounts(
                    ahead=counts[0], behind=counts[1], source="remote"
                )

            default = await self._remote_default_branch(container_id)
            output = await self._runner.run(
                container_id,
                GitCommand.of(
                    "rev-list",
                    "--count",
                    branch,
                    "--not",
                    f"{self._remote}/{default}",
                    quiet=True,
                ),
                check_exit_code=True,
            )
            ahead = parse_count(output)
            if ahead is None:
                return _UNAVAILABLE
            return TrackingCounts(ahead=ahead, behind=0, source="default_branch")
        except (RemoteCommandError, ChannelError) as e:
            logger.debug("tracking_unavailable", branch=branch, error=str(e))
            return _UNAVAILABLE

    # ── Mutations ────────────────────────────────────────────────────

    async def stage_files(self, agent_id: str, files: list[str]) -> None:
        container_id = await require_container(self._store, agent_id)
        command = (
            GitCommand.of("add", "--", *[sanitize_path(f) for f in files])
            if files
            else GitCommand.of("add", "-A")
        )

        async with self._locks.hold(agent_id, "stage"):
            with self._classified(agent_id, "stage", "stage files"):
                await self._runner.run(container_id, command, check_exit_code=True)

    async def unstage_files(self, agent_id: str, files: list[str]) -> None:
        container_id = await require_container(self._store, agent_id)
        command = (
            GitCommand.of("reset", "HEAD", "--", *[sanitize_path(f) for f in files])
            if files
            else GitCommand.of("reset", "HEAD")
        )

        async with self._locks.hold(agent_id, "unstage"):
            with self._classified(agent_id, "unstage", "unstage files"):
                await self._runner.run(container_id, command, check_exit_code=True)

    async def commit(self, agent_id: str, message: str) -> None:
        if not message or not message.strip():
            raise ValidationError("Commit message is required")
        container_id = await require_container(self._store, agent_id)

        command = GitCommand.of(
            "commit",
            "-m",
            message,
            config={
                "user.name": self._author_name,
                "user.email": self._author_email,
            },
        )
        async with self._locks.hold(agent_id, "commit"):
            with self._classified(agent_id, "commit", "commit"):
                await self._runner.run(container_id, command, check_exit_code=True)

    async def push(self, agent_id: str, force: bool = False) -> None:
        container_id = await require_container(self._store, agent_id)
        label = "push (force)" if force else "push"

        async with self._locks.hold(agent_id, "push"):
            with self._classified(agent_id, "push", label, auth=True):
                branch = await self._require_current_branch(container_id)
                exists = await self._remote_branch_exists(container_id, branch)

                flags: list[str] = []
                if force:
                    flags.append("--force-with-lease")
                if not exists:
                    flags.append("-u")

                await self._runner.run(
                    container_id,
                    GitCommand.of("push", *flags, self._remote, branch),
                    disable_prompts=True,
                    check_exit_code=True,
                )
        logger.info("git_pushed", agent_id=agent_id, branch=branch, force=force)

    async def pull(self, agent_id: str) -> None:
        container_id = await require_container(self._store, agent_id)

        async with self._locks.hold(agent_id, "pull"):
            with self._classified(agent_id, "pull", "pull", auth=True):
                branch = await self._require_current_branch(container_id)
                await self._runner.run(
                    container_id,
                    GitCommand.of("pull", self._remote, branch),
                    disable_prompts=True,
                    check_exit_code=True,
                )

    async def fetch(self, agent_id: str) -> None:
        container_id = await require_container(self._store, agent_id)

        async with self._locks.hold(agent_id, "fetch"):
            with self._classified(agent_id, "fetch", "fetch", auth=True):
                await self._runner.run(
                    container_id,
                    GitCommand.of("fetch", self._remote),
                    disable_prompts=True,
                    check_exit_code=True,
                )

    async def rebase(self, agent_id: str, branch: str) -> None:
        name = _require_branch_name(branch)
        container_id = await require_container(self._store, agent_id)

        async with self._locks.hold(agent_id, "rebase"):
            with self._classified(agent_id, "rebase", "rebase"):
                await self._runner.run(
                    container_id, GitCommand.of("rebase", name), check_exit_code=True
                )

    async def switch_branch(self, agent_id: str, branch: str) -> None:
        name = _require_branch_name(branch)
        container_id = await require_container(self._store, agent_id)

        async with self._locks.hold(agent_id, "switch_branch"):
            with self._classified(agent_id, "switch_branch", "switch branch"):
                await self._runner.run(
                    container_id, GitCommand.of("checkout", name), check_exit_code=True
                )

    async def create_branch(self, agent_id: str, request: CreateBranchRequest) -> str:
        """Create and check out a branch; returns the final branch name."""
        name = request.name.strip()
        if request.use_conventional_prefix:
            name = apply_conventional_prefix(name, request.conventional_type)
        if not is_valid_new_branch_name(name) or name.startswith("-"):
            raise ValidationError(
                "Invalid branch name. Only alphanumeric characters, /, _, and - are allowed."
            )
        base = (
            _require_branch_name(request.base_branch)
            if request.base_branch
            else "HEAD"
        )
        container_id = await require_container(self._store, agent_id)

        async with self._locks.hold(agent_id, "create_branch"):
            with self._classified(agent_id, "create_branch", "create branch"):
                await self._runner.run(
                    container_id,
                    GitCommand.of("checkout", "-b", name, base),
                    check_exit_code=True,
                )
        return name

    async def delete_branch(self, agent_id: str, branch: str) -> None:
        name = _require_branch_name(branch)
        container_id = await require_container(self._store, agent_id)

        async with self._locks.hold(agent_id, "delete_branch"):
            with self._classified(agent_id, "delete_branch", "delete branch"):
                current = await self._current_branch(container_id)
                if current == name:
                    raise ValidationError("Cannot delete the current branch")
                await self._runner.run(
                    container_id,
                    GitCommand.of("branch", "-D", name),
                    check_exit_code=True,
                )

    async def resolve_conflict(
        self, agent_id: str, resolution: ConflictResolution
    ) -> None:
        path = sanitize_path(resolution.path)
        container_id = await require_container(self._store, agent_id)

        commands: list[GitCommand] = []
        match resolution.strategy:
            case "yours":
                commands.append(GitCommand.of("checkout", "--theirs", "--", path))
            case "mine":
                commands.append(GitCommand.of("checkout", "--ours", "--", path))
            case "both":
                pass
            case _:
                raise ValidationError(
                    f"Unknown conflict resolution strategy: {resolution.strategy}"
                )
        commands.append(GitCommand.of("add", "--", path))

        async with self._locks.hold(agent_id, "resolve_conflict"):
            with self._classified(agent_id, "resolve_conflict", "resolve conflict"):
                for command in commands:
                    await self._runner.run(
                        container_id, command, check_exit_code=True
                    )

    # ── Helpers ──────────────────────────────────────────────────────

    async def _current_branch(self, container_id: str) -> str:
        output = await self._runner.run(
            container_id,
            GitCommand.of("rev-parse", "--abbrev-ref", "HEAD"),
            check_exit_code=True,
        )
        return clean_branch_name(output)

    async def _require_current_branch(self, container_id: str) -> str:
        branch = await self._current_branch(container_id)
        if not branch or branch.startswith("-"):
            raise ValidationError("Could not determine a valid current branch")
        return branch

    async def _remote_branch_exists(self, container_id: str, branch: str) -> bool:
        output = await self._runner.run(
            container_id,
            GitCommand.of("ls-remote", "--heads", self._remote, branch, quiet=True),
            disable_prompts=True,
        )
        # ls-remote matches the pattern against the tail of each ref, so
        # feature/main shows up when asking for main.
        wanted = f"refs/heads/{branch}"
        return any(line.split()[-1:] == [wanted] for line in output.split("\n"))

    async def _remote_default_branch(self, container_id: str) -> str:
        try:
            output = await self._runner.run(
                container_id,
                GitCommand.of(
                    "symbolic-ref", f"refs/remotes/{self._remote}/HEAD", quiet=True
                ),
            )
        except (RemoteCommandError, ChannelError):
            return self._default_branch
        detected = clean_branch_name(strip_remote_head(output, self._remote))
        return detected or self._default_branch

    async def _last_commit(self, container_id: str, ref: str) -> tuple[str, str]:
        output = await self._runner.run(
            container_id, GitCommand.of("log", "-1", _LOG_FORMAT, ref, "--", quiet=True)
        )
        commit, sep, message = output.partition("|")
        if not sep:
            return "", ""
        return commit.strip(), message.strip()

    async def _head_size(self, container_id: str, path: str) -> int:
        output = await self._runner.run(
            container_id, GitCommand.of("cat-file", "-s", f"HEAD:{path}", quiet=True)
        )
        return parse_count(output) or 0

    async def _working_size(self, container_id: str, path: str) -> int:
        output = await self._runner.run_shell(
            container_id,
            ShellCommand(program="stat", args=("-c", "%s", f"./{path}"), quiet=True),
        )
        return parse_count(output) or 0

    def _local_branch_names(self, agent_id: str, output: str) -> list[str]:
        names: list[str] = []
        for line in output.split("\n"):
            # "* " marks the current branch, "+ " one checked out in a worktree.
            if line[:2] in ("* ", "+ "):
                line = line[2:]
            stripped = line.strip()
            if not stripped or stripped.startswith("("):
                # Blank line or detached HEAD marker.
                continue
            name = clean_branch_name(line)
            if not name:
                logger.warning(
                    "branch_name_rejected", agent_id=agent_id, line=repr(line)
                )
                continue
            if name not in names:
                names.append(name)
        return names

    def _remote_branch_refs(
        self, agent_id: str, output: str, local_names: set[str]
    ) -> list[tuple[str, str]]:
        refs: list[tuple[str, str]] = []
        for line in output.split("\n"):
            if not line.strip() or " -> " in line:
                continue
            ref = clean_branch_name(line)
            parsed = parse_remote_ref(ref) if ref else None
            if parsed is None or not is_valid_branch_name(parsed[1]):
                logger.warning(
                    "remote_branch_name_rejected", agent_id=agent_id, line=repr(line)
                )
                continue
            remote, name = parsed
            if name == "HEAD" or name in local_names or parsed in refs:
                continue
            refs.append(parsed)
        return refs

    @contextlib.contextmanager
    def _classified(
        self, agent_id: str, operation: str, label: str, *, auth: bool = False
    ) -> Iterator[None]:
        """Turn remote failures into caller-facing errors, logging once."""
        try:
            yield
        except (ValidationError, NotFoundError):
            raise
        except AgentVcsError as e:
            detail = str(e) or "Unknown error"
            logger.error(
                "git_operation_failed",
                agent_id=agent_id,
                operation=operation,
                error=detail,
            )
            if auth and _is_auth_failure(detail):
                message = f"Failed to {label}: {_CREDENTIALS_HINT}"
                raise AuthenticationError(message) from e
            raise ValidationError(f"Failed to {label}: {detail}") from e


def _is_auth_failure(detail: str) -> bool:
    return any(marker in detail for marker in _AUTH_FAILURE_MARKERS)


def _require_branch_name(raw: str) -> str:
    name = clean_branch_name(raw)
    if not name or name.startswith("-"):
        raise ValidationError(f"Invalid branch name: {raw!r}")
    return name
