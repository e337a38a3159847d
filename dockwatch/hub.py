"""A hub that fans messages out to connected websocket-style clients."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, AsyncIterator

log = logging.getLogger(__name__)

DEFAULT_SEND_BUFFER = 256


class HubClient:
    """A connected client with a bounded queue of outgoing messages.

    ``connection`` is any object with a ``close()`` method; it is closed
    when the client is.
    """

    def __init__(
        self, connection: Any = None, buffer_size: int = DEFAULT_SEND_BUFFER
    ) -> None:
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be at least 1: {buffer_size}")
        self.connection = connection
        self._capacity = buffer_size
        self._pending: deque[bytes] = deque()
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once the client has been closed."""
        return self._closed

    def __len__(self) -> int:
        return len(self._pending)

    def _offer(self, message: bytes) -> bool:
        if self._closed or len(self._pending) >= self._capacity:
            return False
        self._pending.append(message)
        self._ready.set()
        return True

    async def messages(self) -> AsyncIterator[bytes]:
        """Yield queued messages until the client is closed and drained."""
        while True:
            if self._pending:
                yield self._pending.popleft()
                continue
            if self._closed:
                return
            self._ready.clear()
            await self._ready.wait()

    def close(self) -> None:
        """Stop accepting messages and close the connection; safe to repeat."""
        if self._closed:
            return
        self._closed = True
        self._ready.set()
        if self.connection is not None:
            self.connection.close()


_SHUTDOWN = object()


class Hub:
    """Keeps the set of connected clients and broadcasts to all of them.

    ``register``, ``unregister`` and ``broadcast`` queue requests that
    ``run`` handles in order. A client whose queue is full when a broadcast
    arrives is dropped and closed.
    """

    def __init__(self) -> None:
        self._clients: set[HubClient] = set()
        self._commands: asyncio.Queue[tuple[str, Any] | object] = asyncio.Queue()
        self._closing = False

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client: object) -> bool:
        return client in self._clients

    async def register(self, client: HubClient) -> None:
        """Add a client."""
        if self._closing:
            raise RuntimeError("hub is shutting down")
        await self._commands.put(("register", client))

    async def unregister(self, client: HubClient) -> None:
        """Remove and close a client; ignored while shutting down."""
        if self._closing:
            return
        await self._commands.put(("unregister", client))

    async def broadcast(self, message: bytes | str) -> None:
        """Send a message to every registered client."""
        if isinstance(message, str):
            message = message.encode("utf-8")
        log.debug("broadcast.. %d", len(message))
        await self._commands.put(("broadcast", message))

    def shutdown(self) -> None:
        """Ask ``run`` to close every client and return."""
        if self._closing:
            return
        self._closing = True
        self._commands.put_nowait(_SHUTDOWN)

    async def run(self) -> None:
        """Handle queued requests until shut down."""
        log.info("hub run...")
        while True:
            command = await self._commands.get()
            if command is _SHUTDOWN:
                log.info("[hub] shutdown")
                for client in self._clients:
                    client.close()
                self._clients.clear()
                return
            kind, payload = command  # type: ignore[misc]
            if kind == "register":
                self._clients.add(payload)
                log.info("[hub] client connected: %d", len(self._clients))
            elif kind == "unregister":
                if self._closing:
                    continue
                if payload in self._clients:
                    self._clients.discard(payload)
                    payload.close()
                    log.info("[hub] client disconnected: %d", len(self._clients))
            elif kind == "broadcast":
                dead = [c for c in self._clients if not c._offer(payload)]
                for client in dead:
                    self._clients.discard(client)
                    client.close()