"""Unified configuration via pydantic-settings."""

from pathlib import Path, PurePosixPath

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentVcsConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AGENTVCS_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Repository inside each agent container
    repo_path: str = "/app"
    remote_name: str = "origin"
    default_branch: str = "main"

    # Commit authorship, passed inline on every commit
    commit_author_name: str = "Agenstra Agent"
    commit_author_email: str = "agent@agenstra.local"

    # Remote command channel
    docker_binary: str = "docker"
    exec_timeout_seconds: float = 30.0

    # File reads
    max_file_size: int = 10 * 1024 * 1024

    # Agent registry
    agents_file: Path = Path("agents.yaml")

    # Logging
    log_level: str = "INFO"
    audit_log_path: Path = Path("audit.jsonl")
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("repo_path")
    @classmethod
    def normalize_repo_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("repo_path must not be empty")
        path = PurePosixPath(v)
        if not path.is_absolute():
            raise ValueError(f"repo_path must be absolute: {v}")
        return str(path)

    @field_validator("exec_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("exec_timeout_seconds must be positive")
        return v

    @field_validator("max_file_size")
    @classmethod
    def positive_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_file_size must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()
