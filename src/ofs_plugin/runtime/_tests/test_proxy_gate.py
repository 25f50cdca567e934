import asyncio

from ofs_plugin.runtime import ProxyGate, SessionState


def test_wait_ready_returns_immediately_when_open() -> None:
    async def runner() -> None:
        gate = ProxyGate(SessionState(tag="t"), timeout_s=0.05)
        assert gate.held is False
        assert await gate.wait_ready() is True

    asyncio.run(runner())


def test_release_wakes_waiter() -> None:
    async def runner() -> None:
        session = SessionState(tag="t")
        gate = ProxyGate(session, timeout_s=5.0)
        gate.hold()
        waiter = asyncio.create_task(gate.wait_ready())
        await asyncio.sleep(0)
        assert session.lock_state is True
        assert gate.waiting is True
        gate.release()
        assert await waiter is True
        assert session.lock_state is False
        assert gate.held is False

    asyncio.run(runner())


def test_wait_is_bounded() -> None:
    async def runner() -> None:
        session = SessionState(tag="t")
        gate = ProxyGate(session, timeout_s=0.05)
        gate.hold()
        assert await gate.wait_ready() is False
        assert gate.held is False
        assert session.lock_state is False

    asyncio.run(runner())


def test_slot_serialises_sequences() -> None:
    async def runner() -> None:
        gate = ProxyGate(SessionState(tag="t"), timeout_s=1.0)
        order: list[str] = []

        async def sequence(name: str) -> None:
            async with gate.slot():
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await gate.acquire_slot()
        assert gate.occupied
        pending = asyncio.gather(sequence("a"), sequence("b"))
        await asyncio.sleep(0.01)
        assert order == []
        gate.release_slot()
        await pending
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    asyncio.run(runner())
