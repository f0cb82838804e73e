"""Per-agent serialization of mutating git operations."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

import structlog

logger = structlog.get_logger()


class AgentLocks:
    """One asyncio.Lock per agent id, created lazily.

    Two mutations against the same container (say a commit and a branch
    switch) would otherwise interleave inside the shared working tree. A
    lock is dropped once its last holder or waiter leaves.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def _lock_for(self, agent_id: str) -> asyncio.Lock:
        lock = self._locks.get(agent_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[agent_id] = lock
        return lock

    def is_locked(self, agent_id: str) -> bool:
        lock = self._locks.get(agent_id)
        return lock is not None and lock.locked()

    @contextlib.asynccontextmanager
    async def hold(self, agent_id: str, operation: str) -> AsyncIterator[None]:
        lock = self._lock_for(agent_id)
        self._users[agent_id] = self._users.get(agent_id, 0) + 1
        try:
            if lock.locked():
                logger.debug(
                    "agent_lock_waiting", agent_id=agent_id, operation=operation
                )
            async with lock:
                yield
        finally:
            self._users[agent_id] -= 1
            if not self._users[agent_id]:
                del self._users[agent_id]
                del self._locks[agent_id]
