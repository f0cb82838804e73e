"""Append-only audit logger in JSON lines format."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_MAX_DETAIL = 500


class AuditLogger:
    def __init__(self, log_path: Path | str) -> None:
        self._path = Path(log_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, entry: dict[str, Any]) -> None:
        entry["timestamp"] = datetime.now(UTC).isoformat()
        try:
            with open(self._path, "a") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.error("audit_write_failed", error=str(e))

    def log_git_operation(
        self,
        agent_id: str,
        operation: str,
        detail: str,
        *,
        success: bool,
        error: str | None = None,
    ) -> None:
        entry: dict[str, Any] = {
            "event": "git_operation",
            "agent_id": agent_id,
            "operation": operation,
            "detail": _truncate(detail),
            "success": success,
        }
        if error is not None:
            entry["error"] = _truncate(error)
        self._write(entry)


def _truncate(value: str) -> str:
    if len(value) > _MAX_DETAIL:
        return value[:_MAX_DETAIL] + "...[truncated]"
    return value
