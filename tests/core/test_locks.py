"""Tests for per-agent operation locks."""

import asyncio

from agentvcs.core.locks import AgentLocks


class TestAgentLocks:
    async def test_not_locked_initially(self):
        assert AgentLocks().is_locked("a") is False

    async def test_locked_while_held(self):
        locks = AgentLocks()
        async with locks.hold("a", "commit"):
            assert locks.is_locked("a") is True
            assert locks.is_locked("b") is False
        assert locks.is_locked("a") is False

    async def test_same_agent_serialized(self):
        locks = AgentLocks()
        order: list[str] = []

        async def op(name: str) -> None:
            async with locks.hold("a", name):
                order.append(f"start {name}")
                await asyncio.sleep(0.01)
                order.append(f"end {name}")

        await asyncio.gather(op("one"), op("two"))
        assert order == ["start one", "end one", "start two", "end two"]

    async def test_different_agents_run_concurrently(self):
        locks = AgentLocks()
        both_inside = asyncio.Event()
        inside = 0

        async def op(agent_id: str) -> None:
            nonlocal inside
            async with locks.hold(agent_id, "push"):
                inside += 1
                if inside == 2:
                    both_inside.set()
                await asyncio.wait_for(both_inside.wait(), timeout=1)

        await asyncio.gather(op("a"), op("b"))
        assert both_inside.is_set()

    async def test_released_on_error(self):
        locks = AgentLocks()
        try:
            async with locks.hold("a", "commit"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert locks.is_locked("a") is False

    async def test_lock_dropped_after_release(self):
        locks = AgentLocks()
        async with locks.hold("a", "commit"):
            assert "a" in locks._locks
        assert locks._locks == {}

    async def test_lock_kept_while_someone_waits(self):
        locks = AgentLocks()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first() -> None:
            async with locks.hold("a", "commit"):
                entered.set()
                await release.wait()

        async def second() -> None:
            await entered.wait()
            async with locks.hold("a", "push"):
                assert locks.is_locked("a") is True

        task_one = asyncio.create_task(first())
        task_two = asyncio.create_task(second())
        await entered.wait()
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(task_one, task_two)
        assert locks._locks == {}

    async def test_many_agents_do_not_accumulate(self):
        locks = AgentLocks()
        for i in range(50):
            async with locks.hold(f"agent-{i}", "fetch"):
                pass
        assert locks._locks == {}
