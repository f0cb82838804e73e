"""YAML loader for the agent registry file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from agentvcs.exceptions import StorageError
from agentvcs.storage.base import AgentRecord

logger = structlog.get_logger()


def load_agents(path: Path) -> list[AgentRecord]:
    """Load agent records from an ``agents.yaml`` file.

    Layout::

        agents:
          <agent-id>:
            name: backend worker
            container_id: 3f2a...

    A missing file yields an empty registry. Entries that are not mappings
    are skipped with a warning.
    """
    if not path.is_file():
        logger.info("agents_file_missing", path=str(path))
        return []

    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise StorageError(f"Could not read agents file {path}: {exc}") from exc

    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise StorageError(f"Agents file {path} must contain a mapping")

    return _parse_agents(raw.get("agents", {}))


def _parse_agents(raw: dict[str, Any] | None) -> list[AgentRecord]:
    if not isinstance(raw, dict):
        return []

    records: list[AgentRecord] = []
    for agent_id, entry in raw.items():
        if entry is None:
            entry = {}
        if not isinstance(entry, dict):
            logger.warning("agent_invalid_entry", agent_id=str(agent_id))
            continue

        container_id = entry.get("container_id")
        records.append(
            AgentRecord(
                agent_id=str(agent_id),
                name=str(entry.get("name", "")),
                container_id=str(container_id) if container_id else None,
            )
        )
    return records
