"""In-memory agent store."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentvcs.storage.base import AgentRecord


class MemoryAgentStore:
    def __init__(self, records: list[AgentRecord] | None = None) -> None:
        self._data: dict[str, AgentRecord] = {}
        for record in records or []:
            self._data[record.agent_id] = record

    async def get(self, agent_id: str) -> AgentRecord | None:
        return self._data.get(agent_id)

    async def save(self, record: AgentRecord) -> None:
        self._data[record.agent_id] = record

    async def delete(self, agent_id: str) -> None:
        self._data.pop(agent_id, None)

    async def list(self) -> list[AgentRecord]:
        return list(self._data.values())

    async def setup(self) -> None:
        pass

    async def teardown(self) -> None:
        pass
