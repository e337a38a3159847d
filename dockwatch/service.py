"""Container operations across the local daemon and named remote hosts."""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator

from .client import DockerError
from .convert import convert_inspect_result
from .models import Container, ContainerInspect, ContainerStats
from .stats import calculate_stats

log = logging.getLogger(__name__)


class DockerService:
    """Container listing, inspection, control and stats.

    A ``host`` of None uses ``local_client``; any other name is looked up in
    ``manager``.
    """

    def __init__(
        self,
        local_client: Any,
        manager: Any,
        *,
        cgroup_version: int | None = None,
        stream_interval: float = 1.0,
    ) -> None:
        self._local = local_client
        self._manager = manager
        self._cgroup_version = cgroup_version
        self._stream_interval = stream_interval

    def _client(self, host: str | None) -> Any:
        if host is None:
            return self._local
        return self._manager.get(host)

    async def container_list(self, host: str | None = None) -> list[Container]:
        """List all containers of a host."""
        return await self._client(host).list_containers()

    async def inspect_container(
        self, container_id: str, host: str | None = None
    ) -> ContainerInspect:
        """Return the detailed description of a container."""
        data = await self._client(host).inspect_container(container_id)
        return convert_inspect_result(data)

    async def start_container(self, container_id: str, host: str | None = None) -> None:
        """Start a container."""
        await self._client(host).start_container(container_id)

    async def stop_container(self, container_id: str, host: str | None = None) -> None:
        """Stop a container."""
        await self._client(host).stop_container(container_id)

    async def container_stats(
        self, container_id: str, host: str | None = None
    ) -> ContainerStats:
        """Return resource usage computed from the second stats frame.

        The first frame is discarded because its CPU baseline is not yet valid.
        """
        client = self._client(host)
        received = []
        async with aclosing(client.container_stats(container_id, True)) as frames:
            async for frame in frames:
                received.append(frame)
                if len(received) == 2:
                    break
        if len(received) < 2:
            raise DockerError(
                f"stats stream for {container_id} ended after {len(received)} frame(s)"
            )
        return calculate_stats(received[1], self._cgroup_version)

    async def container_stats_stream(
        self, container_id: str, host: str | None = None
    ) -> AsyncIterator[ContainerStats]:
        """Yield resource usage for every stats frame, pausing between frames."""
        client = self._client(host)
        async with aclosing(client.container_stats(container_id, True)) as frames:
            async for frame in frames:
                yield calculate_stats(frame, self._cgroup_version)
                await asyncio.sleep(self._stream_interval)

    async def host_stats(
        self, host: str | None = None, timeout: float = 3.0
    ) -> dict[str, ContainerStats]:
        """Collect stats of all containers on a host concurrently.

        Containers whose stats fail or do not arrive within ``timeout`` seconds
        are left out. The result is keyed by container id.
        """
        client = self._client(host)
        containers = await client.list_containers()
        if not containers:
            return {}

        tasks = {
            asyncio.ensure_future(self.container_stats(c.id, host)): c
            for c in containers
        }
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            log.info("host stats timed out after %ss", timeout)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results: dict[str, ContainerStats] = {}
        for task, container in tasks.items():
            if task not in done or task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                log.error("get container stats error [%s] [%s]", container.id, error)
                continue
            stats = task.result()
            stats.id = container.id
            stats.name = container.name
            results[container.id] = stats
        return results