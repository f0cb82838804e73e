"""Data models for git engine results and requests."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

FileStatusType = Literal["staged", "unstaged", "untracked", "both"]
TrackingSource = Literal["remote", "default_branch", "unavailable"]
ContentEncoding = Literal["utf-8", "base64"]
ConflictStrategy = Literal["yours", "mine", "both"]
ConventionalType = Literal[
    "feat", "fix", "chore", "docs", "style", "refactor", "test", "perf"
]


class FileStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: str
    type: FileStatusType
    is_binary: bool = False
    size: int | None = None


class TrackingCounts(BaseModel):
    """Ahead/behind counts and where they came from.

    ``unavailable`` means the counts could not be determined, which is not
    the same as a genuine zero.
    """

    model_config = ConfigDict(frozen=True)

    ahead: int | None = None
    behind: int | None = None
    source: TrackingSource = "unavailable"

    @property
    def available(self) -> bool:
        return self.source != "unavailable"


class RepositoryStatus(BaseModel):
    """Snapshot of the working tree, rebuilt on every call."""

    model_config = ConfigDict(frozen=True)

    current_branch: str
    ahead_count: int = 0
    behind_count: int = 0
    tracking: TrackingSource = "unavailable"
    files: list[FileStatus] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_clean(self) -> bool:
        return not self.files

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_unpushed_commits(self) -> bool:
        return self.ahead_count > 0


class Branch(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    ref: str
    is_current: bool = False
    is_remote: bool = False
    remote: str | None = None
    commit: str = ""
    message: str = ""
    ahead_count: int | None = None
    behind_count: int | None = None


class FileDiff(BaseModel):
    """Before/after content for one path.

    Binary files carry sizes instead of content.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    original_content: str = ""
    modified_content: str = ""
    encoding: ContentEncoding
    is_binary: bool = False
    original_size: int | None = None
    modified_size: int | None = None


class FileContent(BaseModel):
    """File content, always base64; ``encoding`` names the original kind."""

    model_config = ConfigDict(frozen=True)

    content: str
    encoding: ContentEncoding


class ConflictResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    strategy: ConflictStrategy

    @field_validator("path")
    @classmethod
    def path_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("path must not be empty")
        return v


class CreateBranchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    use_conventional_prefix: bool = False
    conventional_type: ConventionalType | None = None
    base_branch: str | None = None


class GitResult(BaseModel):
    """Generic result from a git operation, for the operator surface."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    details: str = ""
