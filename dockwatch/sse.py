"""Server-sent event messages and a fixed pool of SSE session queues."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass

log = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 32


@dataclass
class SSEEvent:
    """One server-sent event."""

    event: str
    data: str = ""
    id: str = ""

    def encode(self) -> bytes:
        """Return the event in text/event-stream wire form, blank line included."""
        lines = []
        if self.id:
            lines.append(f"id: {self.id}")
        if self.event:
            lines.append(f"event: {self.event}")
        lines.extend(f"data: {line}" for line in self.data.split("\n"))
        return ("\n".join(lines) + "\n\n").encode("utf-8")


class SessionRegistry:
    """A fixed set of numbered SSE sessions, each with a bounded message queue.

    Keys run from 1 to ``max_sessions``. A queue that is full when a new
    event arrives is emptied first, so a slow reader loses its backlog
    rather than blocking the sender.
    """

    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        buffer_size: int | None = None,
    ) -> None:
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be at least 1: {max_sessions}")
        if buffer_size is None:
            buffer_size = max_sessions
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be at least 1: {buffer_size}")
        self._lock = threading.Lock()
        self._capacity = buffer_size
        self._free: deque[int] = deque(range(1, max_sessions + 1))
        self._active: list[int] = []
        self._queues: dict[int, deque[SSEEvent]] = {
            key: deque() for key in range(1, max_sessions + 1)
        }

    def acquire(self) -> int:
        """Take the next free session key and mark it active."""
        with self._lock:
            if not self._free:
                raise LookupError("no free SSE session")
            key = self._free.popleft()
            self._active.append(key)
            log.debug("acquired SSE session %d", key)
            return key

    def release(self, key: int) -> None:
        """Return an active session key to the pool and drop its pending events."""
        with self._lock:
            if key not in self._active:
                return
            self._active.remove(key)
            self._free.append(key)
            self._queues[key].clear()
            log.debug("released SSE session %d", key)

    def active_keys(self) -> list[int]:
        """Return the active session keys in the order they were acquired."""
        with self._lock:
            return list(self._active)

    def _queue(self, key: int) -> deque[SSEEvent]:
        try:
            return self._queues[key]
        except KeyError:
            raise KeyError(f"unknown SSE session: {key}") from None

    def push(self, key: int, event: SSEEvent) -> None:
        """Queue an event for one session, emptying the queue first if it is full."""
        with self._lock:
            queue = self._queue(key)
            if len(queue) >= self._capacity:
                queue.clear()
            queue.append(event)

    def pop(self, key: int) -> SSEEvent | None:
        """Take the oldest queued event of a session, or None if there is none."""
        with self._lock:
            queue = self._queue(key)
            return queue.popleft() if queue else None

    def broadcast(self, event: SSEEvent) -> None:
        """Queue an event for every active session."""
        if not event.event:
            raise ValueError("SSE event has no type")
        for key in self.active_keys():
            self.push(key, event)