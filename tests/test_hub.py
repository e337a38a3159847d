import asyncio

import pytest

from dockwatch.hub import Hub, HubClient


class FakeConnection:
    def __init__(self):
        self.closes = 0

    def close(self):
        self.closes += 1


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


async def collect(client):
    return [m async for m in client.messages()]


@pytest.mark.asyncio
async def test_broadcast_delivers_to_all_clients():
    hub = Hub()
    task = asyncio.ensure_future(hub.run())
    a, b = HubClient(), HubClient()
    await hub.register(a)
    await hub.register(b)
    await hub.broadcast(b"hello")
    await hub.broadcast("world")
    hub.shutdown()
    await asyncio.wait_for(task, 1)
    assert await collect(a) == [b"hello", b"world"]
    assert await collect(b) == [b"hello", b"world"]
    assert len(hub) == 0


@pytest.mark.asyncio
async def test_register_counts_clients():
    hub = Hub()
    task = asyncio.ensure_future(hub.run())
    client = HubClient()
    await hub.register(client)
    await settle()
    assert client in hub
    assert len(hub) == 1
    hub.shutdown()
    await asyncio.wait_for(task, 1)


@pytest.mark.asyncio
async def test_unregister_closes_client():
    hub = Hub()
    task = asyncio.ensure_future(hub.run())
    conn = FakeConnection()
    client = HubClient(conn)
    await hub.register(client)
    await hub.unregister(client)
    await settle()
    assert len(hub) == 0
    assert client.closed
    assert conn.closes == 1
    hub.shutdown()
    await asyncio.wait_for(task, 1)
    assert conn.closes == 1


@pytest.mark.asyncio
async def test_full_client_is_dropped():
    hub = Hub()
    task = asyncio.ensure_future(hub.run())
    slow_conn = FakeConnection()
    slow = HubClient(slow_conn, buffer_size=1)
    fast = HubClient(buffer_size=4)
    await hub.register(slow)
    await hub.register(fast)
    await hub.broadcast(b"1")
    await hub.broadcast(b"2")
    await settle()
    assert slow not in hub
    assert fast in hub
    assert slow_conn.closes == 1
    hub.shutdown()
    await asyncio.wait_for(task, 1)
    assert await collect(slow) == [b"1"]
    assert await collect(fast) == [b"1", b"2"]


@pytest.mark.asyncio
async def test_shutdown_closes_connections_and_rejects_register():
    hub = Hub()
    task = asyncio.ensure_future(hub.run())
    conn = FakeConnection()
    client = HubClient(conn)
    await hub.register(client)
    hub.shutdown()
    await asyncio.wait_for(task, 1)
    assert client.closed
    assert conn.closes == 1
    with pytest.raises(RuntimeError):
        await hub.register(HubClient())


@pytest.mark.asyncio
async def test_client_close_is_idempotent():
    conn = FakeConnection()
    client = HubClient(conn)
    client.close()
    client.close()
    assert conn.closes == 1
    assert await collect(client) == []


def test_client_rejects_bad_buffer():
    with pytest.raises(ValueError):
        HubClient(buffer_size=0)