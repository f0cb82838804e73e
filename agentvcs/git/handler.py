"""Git command handler: routes operator subcommands to the git engine."""

from __future__ import annotations

import shlex
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, get_args

import structlog

from agentvcs.exceptions import AgentVcsError
from agentvcs.git import formatter
from agentvcs.git.branches import CONVENTIONAL_TYPES, apply_conventional_prefix
from agentvcs.git.models import (
    ConflictResolution,
    ConflictStrategy,
    CreateBranchRequest,
    GitResult,
)

if TYPE_CHECKING:
    from agentvcs.core.audit import AuditLogger
    from agentvcs.git.service import GitService

logger = structlog.get_logger()

_STRATEGIES = get_args(ConflictStrategy)


class GitCommandHandler:
    def __init__(self, service: GitService, audit: AuditLogger) -> None:
        self._service = service
        self._audit = audit

    async def handle_command(self, agent_id: str, args: str) -> str:
        """Route a subcommand line for *agent_id* and return display text."""
        parts = args.strip().split(None, 1)
        subcommand = parts[0] if parts else ""
        sub_args = parts[1] if len(parts) > 1 else ""

        try:
            match subcommand:
                case "" | "status":
                    status = await self._service.get_status(agent_id)
                    return formatter.format_status(status)
                case "branches":
                    branches = await self._service.get_branches(agent_id)
                    return formatter.format_branches(branches)
                case "diff":
                    if not sub_args:
                        return "Usage: diff <path>"
                    path = _unquote(sub_args)
                    diff = await self._service.get_file_diff(agent_id, path)
                    return formatter.format_diff(diff)
                case "add":
                    return await self._add(agent_id, _split(sub_args))
                case "reset":
                    paths = _split(sub_args)
                    message = (
                        f"Unstaged {len(paths)} file(s)" if paths else "Unstaged all files"
                    )
                    return await self._mutate(
                        agent_id,
                        "unstage",
                        " ".join(paths),
                        lambda: self._service.unstage_files(agent_id, paths),
                        message,
                    )
                case "commit":
                    if not sub_args:
                        return "Usage: commit <message>"
                    message = _unquote(sub_args)
                    return await self._mutate(
                        agent_id,
                        "commit",
                        message,
                        lambda: self._service.commit(agent_id, message),
                        "Committed changes",
                    )
                case "push":
                    return await self._push(agent_id, _split(sub_args))
                case "pull":
                    return await self._mutate(
                        agent_id,
                        "pull",
                        "",
                        lambda: self._service.pull(agent_id),
                        "Pulled from remote",
                    )
                case "fetch":
                    return await self._mutate(
                        agent_id,
                        "fetch",
                        "",
                        lambda: self._service.fetch(agent_id),
                        "Fetched from remote",
                    )
                case "rebase":
                    if not sub_args:
                        return "Usage: rebase <branch>"
                    return await self._mutate(
                        agent_id,
                        "rebase",
                        sub_args,
                        lambda: self._service.rebase(agent_id, sub_args),
                        f"Rebased onto {sub_args}",
                    )
                case "checkout":
                    if not sub_args:
                        return "Usage: checkout <branch>"
                    return await self._mutate(
                        agent_id,
                        "switch_branch",
                        sub_args,
                        lambda: self._service.switch_branch(agent_id, sub_args),
                        f"Switched to {sub_args}",
                    )
                case "branch":
                    return await self._create_branch(agent_id, _split(sub_args))
                case "delete":
                    if not sub_args:
                        return "Usage: delete <branch>"
                    return await self._mutate(
                        agent_id,
                        "delete_branch",
                        sub_args,
                        lambda: self._service.delete_branch(agent_id, sub_args),
                        f"Deleted branch {sub_args}",
                    )
                case "resolve":
                    return await self._resolve(agent_id, _split(sub_args))
                case "help":
                    return formatter.format_help()
                case _:
                    return (
                        f"Unknown git subcommand: {subcommand}\n\n"
                        f"{formatter.format_help()}"
                    )
        except AgentVcsError as e:
            return f"\u274c {e}"
        except ValueError as e:
            return f"\u274c Invalid arguments: {e}"

    async def _add(self, agent_id: str, paths: list[str]) -> str:
        if paths == ["."]:
            paths = []
        return await self._mutate(
            agent_id,
            "stage",
            " ".join(paths),
            lambda: self._service.stage_files(agent_id, paths),
            "Staged all changes" if not paths else f"Staged {len(paths)} file(s)",
        )

    async def _push(self, agent_id: str, flags: list[str]) -> str:
        unknown = [f for f in flags if f != "--force"]
        if unknown:
            return "Usage: push [--force]"
        force = "--force" in flags
        result = await self._run_mutation(
            agent_id,
            "push",
            "force" if force else "",
            lambda: self._service.push(agent_id, force=force),
            "Force pushed to remote" if force else "Pushed to remote",
        )
        return formatter.format_result(
            result, emoji="\U0001f680" if result.success else ""
        )

    async def _create_branch(self, agent_id: str, tokens: list[str]) -> str:
        usage = "Usage: branch <name> [--type <type>] [--from <base>]"
        name: str | None = None
        conventional_type: str | None = None
        base: str | None = None

        it = iter(tokens)
        for token in it:
            if token == "--type":
                conventional_type = next(it, None)
                if conventional_type not in CONVENTIONAL_TYPES:
                    return f"{usage}\nTypes: {', '.join(CONVENTIONAL_TYPES)}"
            elif token == "--from":
                base = next(it, None)
                if not base:
                    return usage
            elif name is None:
                name = token
            else:
                return usage
        if not name:
            return usage

        request = CreateBranchRequest(
            name=name,
            use_conventional_prefix=conventional_type is not None,
            conventional_type=conventional_type,
            base_branch=base,
        )
        return await self._mutate(
            agent_id,
            "create_branch",
            name,
            lambda: self._service.create_branch(agent_id, request),
            f"Created branch {apply_conventional_prefix(name, conventional_type)}",
        )

    async def _resolve(self, agent_id: str, tokens: list[str]) -> str:
        usage = "Usage: resolve <path> <yours|mine|both>"
        if len(tokens) != 2 or tokens[1] not in _STRATEGIES:
            return usage
        resolution = ConflictResolution(path=tokens[0], strategy=tokens[1])
        return await self._mutate(
            agent_id,
            "resolve_conflict",
            f"{resolution.path} ({resolution.strategy})",
            lambda: self._service.resolve_conflict(agent_id, resolution),
            f"Resolved {resolution.path} using {resolution.strategy}",
        )

    async def _mutate(
        self,
        agent_id: str,
        operation: str,
        detail: str,
        action: Callable[[], Awaitable[object]],
        success_message: str,
    ) -> str:
        result = await self._run_mutation(
            agent_id, operation, detail, action, success_message
        )
        return formatter.format_result(result)

    async def _run_mutation(
        self,
        agent_id: str,
        operation: str,
        detail: str,
        action: Callable[[], Awaitable[object]],
        success_message: str,
    ) -> GitResult:
        try:
            await action()
        except AgentVcsError as e:
            self._audit.log_git_operation(
                agent_id, operation, detail, success=False, error=str(e)
            )
            logger.info("git_command_failed", agent_id=agent_id, operation=operation)
            return GitResult(success=False, message=str(e))

        self._audit.log_git_operation(agent_id, operation, detail, success=True)
        return GitResult(success=True, message=success_message)


def _split(args: str) -> list[str]:
    return shlex.split(args) if args.strip() else []


def _unquote(text: str) -> str:
    """Drop shell quoting around a single-token argument such as a commit message."""
    try:
        tokens = shlex.split(text)
    except ValueError:
        return text
    return tokens[0] if len(tokens) == 1 else text
