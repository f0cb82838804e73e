"""Tests for GitCommandHandler routing and auditing."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from agentvcs.core.audit import AuditLogger
from agentvcs.exceptions import AuthenticationError, NotFoundError, ValidationError
from agentvcs.git.handler import GitCommandHandler
from agentvcs.git.models import (
    Branch,
    ConflictResolution,
    CreateBranchRequest,
    FileDiff,
    RepositoryStatus,
)

AGENT = "agent-1"


@pytest.fixture
def service():
    svc = MagicMock()
    svc.get_status = AsyncMock(
        return_value=RepositoryStatus(current_branch="main", tracking="remote")
    )
    svc.get_branches = AsyncMock(
        return_value=[Branch(name="main", ref="refs/heads/main", is_current=True)]
    )
    svc.get_file_diff = AsyncMock(
        return_value=FileDiff(path="a.txt", encoding="utf-8")
    )
    for name in (
        "stage_files",
        "unstage_files",
        "commit",
        "push",
        "pull",
        "fetch",
        "rebase",
        "switch_branch",
        "delete_branch",
        "resolve_conflict",
    ):
        setattr(svc, name, AsyncMock(return_value=None))
    svc.create_branch = AsyncMock(return_value="feat/login")
    return svc


@pytest.fixture
def audit_path(tmp_path):
    return tmp_path / "audit.jsonl"


@pytest.fixture
def handler(service, audit_path):
    return GitCommandHandler(service, AuditLogger(audit_path))


def _audit_entries(path):
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestReads:
    async def test_default_is_status(self, handler, service):
        text = await handler.handle_command(AGENT, "")
        service.get_status.assert_awaited_once_with(AGENT)
        assert "Branch: main" in text

    async def test_branches(self, handler, service):
        text = await handler.handle_command(AGENT, "branches")
        assert "* main" in text

    async def test_diff_requires_path(self, handler, service):
        assert (await handler.handle_command(AGENT, "diff")).startswith("Usage")
        service.get_file_diff.assert_not_awaited()

    async def test_diff_quoted_path(self, handler, service):
        await handler.handle_command(AGENT, "diff 'my file.txt'")
        service.get_file_diff.assert_awaited_once_with(AGENT, "my file.txt")

    async def test_reads_not_audited(self, handler, audit_path):
        await handler.handle_command(AGENT, "status")
        assert _audit_entries(audit_path) == []

    async def test_not_found_becomes_failure_line(self, handler, service):
        service.get_status.side_effect = NotFoundError("Agent x not found")
        assert await handler.handle_command(AGENT, "status") == "❌ Agent x not found"


class TestMutations:
    async def test_add_all(self, handler, service):
        text = await handler.handle_command(AGENT, "add .")
        service.stage_files.assert_awaited_once_with(AGENT, [])
        assert "Staged all changes" in text

    async def test_add_paths(self, handler, service):
        await handler.handle_command(AGENT, 'add a.txt "b c.txt"')
        service.stage_files.assert_awaited_once_with(AGENT, ["a.txt", "b c.txt"])

    async def test_reset(self, handler, service):
        await handler.handle_command(AGENT, "reset a.txt")
        service.unstage_files.assert_awaited_once_with(AGENT, ["a.txt"])

    async def test_commit_message(self, handler, service):
        text = await handler.handle_command(AGENT, "commit fix the parser")
        service.commit.assert_awaited_once_with(AGENT, "fix the parser")
        assert text == "✅ Committed changes"

    async def test_commit_quoted_message(self, handler, service):
        await handler.handle_command(AGENT, "commit 'fix: the parser'")
        service.commit.assert_awaited_once_with(AGENT, "fix: the parser")

    async def test_commit_requires_message(self, handler, service):
        assert (await handler.handle_command(AGENT, "commit")).startswith("Usage")
        service.commit.assert_not_awaited()

    async def test_push(self, handler, service):
        text = await handler.handle_command(AGENT, "push")
        service.push.assert_awaited_once_with(AGENT, force=False)
        assert text.startswith("\U0001f680")

    async def test_push_force(self, handler, service):
        await handler.handle_command(AGENT, "push --force")
        service.push.assert_awaited_once_with(AGENT, force=True)

    async def test_push_unknown_flag(self, handler, service):
        assert (await handler.handle_command(AGENT, "push -f")).startswith("Usage")
        service.push.assert_not_awaited()

    async def test_pull_and_fetch(self, handler, service):
        await handler.handle_command(AGENT, "pull")
        await handler.handle_command(AGENT, "fetch")
        service.pull.assert_awaited_once_with(AGENT)
        service.fetch.assert_awaited_once_with(AGENT)

    async def test_checkout_rebase_delete(self, handler, service):
        await handler.handle_command(AGENT, "checkout dev")
        await handler.handle_command(AGENT, "rebase main")
        await handler.handle_command(AGENT, "delete old")
        service.switch_branch.assert_awaited_once_with(AGENT, "dev")
        service.rebase.assert_awaited_once_with(AGENT, "main")
        service.delete_branch.assert_awaited_once_with(AGENT, "old")

    async def test_create_branch_with_type_and_base(self, handler, service):
        text = await handler.handle_command(
            AGENT, "branch login --type feat --from develop"
        )
        service.create_branch.assert_awaited_once_with(
            AGENT,
            CreateBranchRequest(
                name="login",
                use_conventional_prefix=True,
                conventional_type="feat",
                base_branch="develop",
            ),
        )
        assert text == "✅ Created branch feat/login"

    async def test_create_branch_bad_type(self, handler, service):
        text = await handler.handle_command(AGENT, "branch login --type wip")
        assert text.startswith("Usage")
        assert "feat" in text
        service.create_branch.assert_not_awaited()

    async def test_resolve(self, handler, service):
        await handler.handle_command(AGENT, "resolve a.txt mine")
        service.resolve_conflict.assert_awaited_once_with(
            AGENT, ConflictResolution(path="a.txt", strategy="mine")
        )

    async def test_resolve_bad_strategy(self, handler, service):
        text = await handler.handle_command(AGENT, "resolve a.txt theirs")
        assert text.startswith("Usage")

    async def test_success_is_audited(self, handler, audit_path):
        await handler.handle_command(AGENT, "commit wip")
        [entry] = _audit_entries(audit_path)
        assert entry["event"] == "git_operation"
        assert entry["agent_id"] == AGENT
        assert entry["operation"] == "commit"
        assert entry["detail"] == "wip"
        assert entry["success"] is True
        assert "timestamp" in entry

    async def test_failure_is_audited_and_reported(self, handler, service, audit_path):
        service.push.side_effect = AuthenticationError("Failed to push: no creds")
        text = await handler.handle_command(AGENT, "push")
        assert text == "❌ Failed to push: no creds"
        [entry] = _audit_entries(audit_path)
        assert entry["success"] is False
        assert entry["error"] == "Failed to push: no creds"

    async def test_validation_error_reported(self, handler, service):
        service.delete_branch.side_effect = ValidationError(
            "Cannot delete the current branch"
        )
        text = await handler.handle_command(AGENT, "delete main")
        assert text == "❌ Cannot delete the current branch"


class TestRouting:
    async def test_help(self, handler):
        assert "Git Commands" in await handler.handle_command(AGENT, "help")

    async def test_unknown(self, handler):
        text = await handler.handle_command(AGENT, "merge dev")
        assert text.startswith("Unknown git subcommand: merge")

    async def test_unbalanced_quotes(self, handler, service):
        text = await handler.handle_command(AGENT, "add 'oops")
        assert text.startswith("❌ Invalid arguments")
        service.stage_files.assert_not_awaited()
