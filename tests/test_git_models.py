"""Tests for git engine data models."""

import pydantic
import pytest

from agentvcs.git.models import (
    Branch,
    ConflictResolution,
    CreateBranchRequest,
    FileContent,
    FileStatus,
    RepositoryStatus,
    TrackingCounts,
)


class TestRepositoryStatus:
    def test_clean_when_no_files(self):
        status = RepositoryStatus(current_branch="main")
        assert status.is_clean is True
        assert status.has_unpushed_commits is False

    def test_dirty(self):
        status = RepositoryStatus(
            current_branch="main",
            ahead_count=1,
            files=[FileStatus(path="a", status=" M", type="unstaged")],
        )
        assert status.is_clean is False
        assert status.has_unpushed_commits is True

    def test_computed_fields_serialized(self):
        dumped = RepositoryStatus(current_branch="main").model_dump()
        assert dumped["is_clean"] is True
        assert dumped["has_unpushed_commits"] is False
        assert dumped["tracking"] == "unavailable"

    def test_frozen(self):
        status = RepositoryStatus(current_branch="main")
        with pytest.raises(pydantic.ValidationError):
            status.current_branch = "dev"


class TestTrackingCounts:
    def test_default_unavailable(self):
        counts = TrackingCounts()
        assert counts.available is False
        assert counts.ahead is None

    def test_zero_is_distinct_from_unknown(self):
        counts = TrackingCounts(ahead=0, behind=0, source="remote")
        assert counts.available is True
        assert counts != TrackingCounts()


class TestRequests:
    def test_file_status_type_checked(self):
        with pytest.raises(pydantic.ValidationError):
            FileStatus(path="a", status="XX", type="weird")

    def test_conflict_strategy_checked(self):
        with pytest.raises(pydantic.ValidationError):
            ConflictResolution(path="a", strategy="theirs")

    def test_conflict_path_required(self):
        with pytest.raises(pydantic.ValidationError, match="path must not be empty"):
            ConflictResolution(path=" ", strategy="both")

    def test_conventional_type_checked(self):
        with pytest.raises(pydantic.ValidationError):
            CreateBranchRequest(name="x", conventional_type="wip")

    def test_branch_defaults(self):
        branch = Branch(name="main", ref="refs/heads/main")
        assert branch.remote is None
        assert branch.ahead_count is None

    def test_file_content_encoding(self):
        with pytest.raises(pydantic.ValidationError):
            FileContent(content="", encoding="latin-1")
