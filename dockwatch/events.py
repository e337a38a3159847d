"""Fan-in of daemon events from several hosts and fan-out to subscribers."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import aclosing
from typing import Any, Callable, Mapping

from .eventtypes import filter_attrs, filter_event
from .models import ContainerEvent

log = logging.getLogger(__name__)

EventFilter = Callable[[ContainerEvent], bool]


def normalize_event(host: str, message: Mapping[str, Any]) -> ContainerEvent | None:
    """Turn a raw daemon event into a ContainerEvent, or None if it is filtered out."""
    evt_type = str(message.get("Type") or "")
    evt_action = str(message.get("Action") or "")
    if not filter_event(evt_type, evt_action):
        return None
    actor = message.get("Actor") or {}
    attributes = actor.get("Attributes") or {}
    return ContainerEvent(
        host=host,
        type=evt_type,
        action=evt_action,
        actor_id=str(actor.get("ID") or ""),
        actor_name=str(attributes.get("name", "")),
        timestamp=int(message.get("time") or 0),
        attrs=filter_attrs(attributes),
    )


class Subscriber:
    """A bounded buffer of events for one consumer, iterated with ``async for``.

    Iteration yields buffered events and ends once the subscriber is closed
    and its buffer is drained.
    """

    def __init__(
        self,
        subscriber_id: str,
        buffer_size: int,
        event_filter: EventFilter | None = None,
    ) -> None:
        if buffer_size < 0:
            raise ValueError(f"buffer size must not be negative: {buffer_size}")
        self.id = subscriber_id
        self.filter = event_filter
        self._capacity = buffer_size
        self._buffer: deque[ContainerEvent] = deque()
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once the subscriber no longer receives events."""
        return self._closed

    def __len__(self) -> int:
        return len(self._buffer)

    def _offer(self, event: ContainerEvent) -> bool:
        if self._closed or len(self._buffer) >= self._capacity:
            return False
        self._buffer.append(event)
        self._ready.set()
        return True

    def _close(self) -> None:
        self._closed = True
        self._ready.set()

    def __aiter__(self) -> "Subscriber":
        return self

    async def __anext__(self) -> ContainerEvent:
        while True:
            if self._buffer:
                return self._buffer.popleft()
            if self._closed:
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()


class EventManager:
    """Watches the event streams of named hosts and dispatches them to subscribers.

    ``manager`` is anything with a ``get(name)`` method returning a client
    whose ``events()`` yields raw daemon event messages.
    """

    def __init__(
        self,
        manager: Any,
        *,
        queue_size: int = 100,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        self._manager = manager
        self._queue: asyncio.Queue[ContainerEvent] = asyncio.Queue(maxsize=queue_size)
        self._subscribers: dict[str, Subscriber] = {}
        self._watchers: dict[str, asyncio.Task[None]] = {}
        self._dispatcher: asyncio.Task[None] | None = None
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._stopped = False

    def start(self) -> None:
        """Start dispatching events; must be called from a running event loop."""
        if self._dispatcher is None:
            self._dispatcher = asyncio.get_running_loop().create_task(self._dispatch())
        log.info("[EventManager] Started")

    async def stop(self) -> None:
        """Stop all watchers and the dispatcher and close every subscriber."""
        self._stopped = True
        tasks = list(self._watchers.values())
        self._watchers.clear()
        if self._dispatcher is not None:
            tasks.append(self._dispatcher)
            self._dispatcher = None
        for task in tasks:
            task.cancel()

        for subscriber_id, subscriber in self._subscribers.items():
            subscriber._close()
            log.info("[EventManager] Closing subscriber: %s", subscriber_id)
        self._subscribers.clear()

        await asyncio.gather(*tasks, return_exceptions=True)
        log.info("[EventManager] Stopped")

    def watch_host(self, host: str) -> None:
        """Start following the event stream of ``host``; a no-op if already watched."""
        if host in self._watchers:
            return
        client = self._manager.get(host)
        task = asyncio.get_running_loop().create_task(self._watch(host, client))
        self._watchers[host] = task
        log.info("[EventManager] Started watching host: %s", host)

    def unwatch_host(self, host: str) -> None:
        """Stop following the event stream of ``host``."""
        task = self._watchers.pop(host, None)
        if task is not None:
            task.cancel()
            log.info("[EventManager] Stopped watching host: %s", host)

    def subscribe(
        self,
        subscriber_id: str,
        buffer_size: int,
        event_filter: EventFilter | None = None,
    ) -> Subscriber:
        """Register and return a subscriber under ``subscriber_id``."""
        subscriber = Subscriber(subscriber_id, buffer_size, event_filter)
        self._subscribers[subscriber_id] = subscriber
        log.info("[EventManager] Subscriber added: %s", subscriber_id)
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        """Remove and close a subscriber; unknown ids are ignored."""
        subscriber = self._subscribers.pop(subscriber_id, None)
        if subscriber is not None:
            subscriber._close()
            log.info("[EventManager] Subscriber removed: %s", subscriber_id)

    async def publish(self, event: ContainerEvent) -> None:
        """Queue an event for dispatch, waiting while the queue is full."""
        if self._stopped:
            raise RuntimeError("event manager is stopped")
        await self._queue.put(event)

    async def _dispatch(self) -> None:
        while True:
            event = await self._queue.get()
            log.debug("dispatcher : %s", event)
            self._broadcast(event)

    def _broadcast(self, event: ContainerEvent) -> None:
        for subscriber in list(self._subscribers.values()):
            if subscriber.filter is not None and not subscriber.filter(event):
                continue
            if not subscriber._offer(event):
                log.warning(
                    "[EventManager] Subscriber %s buffer full, dropping event",
                    subscriber.id,
                )

    async def _watch(self, host: str, client: Any) -> None:
        backoff = self._initial_backoff
        while True:
            try:
                await self._stream(host, client)
                error: object = "event channel closed"
            except Exception as exc:  # any stream failure leads to a reconnect
                error = exc
            log.warning(
                "[EventManager] Host %s stream disconnected: %s, retrying in %ss",
                host,
                error,
                backoff,
            )
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self._max_backoff)

    async def _stream(self, host: str, client: Any) -> None:
        log.info("[EventManager] streamEvents started for host: %s", host)
        async with aclosing(client.events()) as messages:
            async for message in messages:
                event = normalize_event(host, message)
                if event is None:
                    continue
                log.debug(
                    "[EventManager] Received event: type=%s action=%s",
                    event.type,
                    event.action,
                )
                await self._queue.put(event)