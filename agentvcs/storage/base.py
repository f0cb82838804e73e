"""Agent registry model and store protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from agentvcs.exceptions import NotFoundError


class AgentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_id: str
    name: str = ""
    container_id: str | None = None


@runtime_checkable
class AgentStore(Protocol):
    async def get(self, agent_id: str) -> AgentRecord | None: ...

    async def save(self, record: AgentRecord) -> None: ...

    async def delete(self, agent_id: str) -> None: ...

    async def list(self) -> list[AgentRecord]: ...

    async def setup(self) -> None: ...

    async def teardown(self) -> None: ...


async def require_container(store: AgentStore, agent_id: str) -> str:
    """Resolve an agent to its container id or raise NotFoundError."""
    record = await store.get(agent_id)
    if record is None:
        raise NotFoundError(f"Agent {agent_id} not found")
    if not record.container_id:
        raise NotFoundError(f"Agent {agent_id} has no associated container")
    return record.container_id
