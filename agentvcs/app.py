"""Wiring: builds the git engine and command handler from configuration."""

from __future__ import annotations

import logging
import logging.handlers
from typing import TYPE_CHECKING

import structlog

from agentvcs.channel.docker import DockerExecChannel
from agentvcs.core.audit import AuditLogger
from agentvcs.core.locks import AgentLocks
from agentvcs.files.reader import FileReader
from agentvcs.git.binary import BinaryProbe
from agentvcs.git.handler import GitCommandHandler
from agentvcs.git.runner import GitRunner
from agentvcs.git.service import GitService
from agentvcs.storage.memory import MemoryAgentStore
from agentvcs.storage.yaml_loader import load_agents

if TYPE_CHECKING:
    from agentvcs.channel.base import CommandChannel
    from agentvcs.core.config import AgentVcsConfig
    from agentvcs.storage.base import AgentStore

logger = structlog.get_logger()


def configure_logging(config: AgentVcsConfig) -> None:
    """Set up structlog with console output and optional rotating JSON file handler."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(),
        )
    )
    root_logger.addHandler(console_handler)

    # JSON lines for machine parsing
    if config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_dir / "agentvcs.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
            )
        )
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_store(config: AgentVcsConfig) -> MemoryAgentStore:
    records = load_agents(config.agents_file)
    logger.info("agents_loaded", count=len(records), path=str(config.agents_file))
    return MemoryAgentStore(records)


def build_service(
    config: AgentVcsConfig,
    *,
    channel: CommandChannel | None = None,
    store: AgentStore | None = None,
) -> GitService:
    """Assemble a GitService; the channel and store are injectable for tests."""
    if channel is None:
        channel = DockerExecChannel(
            docker_binary=config.docker_binary,
            timeout=config.exec_timeout_seconds,
        )
    if store is None:
        store = build_store(config)

    runner = GitRunner(channel, working_dir=config.repo_path)
    probe = BinaryProbe(runner)
    reader = FileReader(store, runner, probe, max_file_size=config.max_file_size)
    return GitService(
        store,
        runner,
        probe,
        reader,
        remote=config.remote_name,
        default_branch=config.default_branch,
        author_name=config.commit_author_name,
        author_email=config.commit_author_email,
        locks=AgentLocks(),
    )


def build_handler(
    config: AgentVcsConfig,
    *,
    channel: CommandChannel | None = None,
    store: AgentStore | None = None,
) -> GitCommandHandler:
    service = build_service(config, channel=channel, store=store)
    return GitCommandHandler(service, AuditLogger(config.audit_log_path))
