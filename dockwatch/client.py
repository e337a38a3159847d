"""Asynchronous Docker Engine API clients and a registry of named hosts."""

from __future__ import annotations

import json
import os
import ssl
import threading
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Mapping

import httpx

from .models import Container, ContainerStatsRaw

DEFAULT_SOCKET = "/var/run/docker.sock"
_UNIX_BASE_URL = "http://docker"


class DockerError(Exception):
    """Raised when the daemon cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HostNotFoundError(DockerError, LookupError):
    """Raised when no client is registered under a host name."""


@dataclass(frozen=True)
class HostConfig:
    """A named daemon address such as ``tcp://10.0.0.10:2376``; empty means local."""

    name: str
    addr: str = ""


def _resolve(addr: str, secure: bool) -> tuple[str, str | None]:
    """Return the base URL and, for local sockets, the socket path."""
    if addr in ("", "unix"):
        return _UNIX_BASE_URL, DEFAULT_SOCKET
    scheme, sep, rest = addr.partition("://")
    if not sep or not rest:
        raise DockerError(f"unable to parse docker host `{addr}`")
    scheme = scheme.lower()
    if scheme == "unix":
        return _UNIX_BASE_URL, rest
    if scheme in ("tcp", "http", "https"):
        url_scheme = "https" if secure or scheme == "https" else "http"
        return f"{url_scheme}://{rest.rstrip('/')}", None
    raise DockerError(f"unsupported docker host protocol: {scheme}")


def _ssl_context(ca: str, cert: str, key: str) -> ssl.SSLContext:
    try:
        context = ssl.create_default_context(cafile=ca)
        context.load_cert_chain(certfile=cert, keyfile=key)
    except (OSError, ssl.SSLError) as exc:
        raise DockerError(f"could not load TLS configuration: {exc}") from exc
    return context


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, Mapping) and data.get("message"):
        return str(data["message"])
    text = response.text.strip()
    return text or f"request failed with status {response.status_code}"


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code >= 400:
        raise DockerError(_error_message(response), status_code=response.status_code)


class DockerClient:
    """Client for one Docker daemon.

    ``addr`` defaults to ``DOCKER_HOST`` from the environment, and an empty
    address means the local socket. ``tls`` is a ``(ca, cert, key)`` triple of
    PEM file paths used for mutual TLS.
    """

    def __init__(
        self,
        addr: str | None = None,
        name: str = "",
        *,
        tls: tuple[str, str, str] | None = None,
        api_version: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if addr is None:
            addr = os.environ.get("DOCKER_HOST", "")
        self.addr = addr
        self.name = name
        base_url, socket_path = _resolve(addr, secure=tls is not None)
        verify: ssl.SSLContext | bool = _ssl_context(*tls) if tls else True
        if transport is None and socket_path is not None:
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
        self._http = httpx.AsyncClient(
            base_url=base_url, transport=transport, verify=verify, timeout=None
        )
        self._api_version = api_version

    async def __aenter__(self) -> "DockerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _prefix(self) -> str:
        if self._api_version is None:
            try:
                response = await self._http.get("/_ping")
            except httpx.HTTPError:
                return ""
            version = response.headers.get("Api-Version")
            self._api_version = version or ""
        return f"/v{self._api_version}" if self._api_version else ""

    async def _request(
        self, method: str, path: str, params: Mapping[str, str] | None = None
    ) -> httpx.Response:
        url = await self._prefix() + path
        try:
            response = await self._http.request(method, url, params=params)
        except httpx.HTTPError as exc:
            raise DockerError(f"cannot connect to docker host {self.addr!r}: {exc}") from exc
        _raise_for_status(response)
        return response

    async def _stream_json(
        self, path: str, params: Mapping[str, str] | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        url = await self._prefix() + path
        try:
            async with self._http.stream("GET", url, params=params) as response:
                if response.status_code >= 400:
                    await response.aread()
                    _raise_for_status(response)
                async for line in response.aiter_lines():
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield json.loads(line)
                    except ValueError as exc:
                        raise DockerError(f"invalid JSON from daemon: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DockerError(f"stream from docker host {self.addr!r} failed: {exc}") from exc

    async def list_containers(self) -> list[Container]:
        """List all containers, running or not."""
        response = await self._request("GET", "/containers/json", params={"all": "1"})
        containers = []
        for item in response.json():
            names = item.get("Names") or [""]
            containers.append(
                Container(
                    id=(item.get("Id") or "")[:12],
                    name=names[0][1:],
                    image=item.get("Image") or "",
                    state=item.get("State") or "",
                    status=item.get("Status") or "",
                )
            )
        return containers

    async def inspect_container(self, container_id: str) -> dict[str, Any]:
        """Return the daemon's inspect document for a container."""
        response = await self._request("GET", f"/containers/{container_id}/json")
        return response.json()

    async def start_container(self, container_id: str) -> None:
        """Start a container."""
        await self._request("POST", f"/containers/{container_id}/start")

    async def stop_container(self, container_id: str) -> None:
        """Stop a container."""
        await self._request("POST", f"/containers/{container_id}/stop")

    async def container_stats(
        self, container_id: str, stream: bool
    ) -> AsyncIterator[ContainerStatsRaw]:
        """Yield stats frames; one frame unless ``stream`` is true."""
        params = {"stream": "1" if stream else "0"}
        async for frame in self._stream_json(f"/containers/{container_id}/stats", params):
            try:
                yield ContainerStatsRaw.from_dict(frame)
            except ValueError as exc:
                raise DockerError(f"invalid stats frame: {exc}") from exc

    async def events(self) -> AsyncIterator[dict[str, Any]]:
        """Yield daemon events as decoded JSON messages until the stream ends."""
        async for message in self._stream_json("/events"):
            yield message

    async def close(self) -> None:
        """Release the underlying connections."""
        await self._http.aclose()


class DockerClientManager:
    """Clients for several named daemons, reached over mutual TLS.

    Each client loads ``ca.pem``, ``cert.pem`` and ``key.pem`` from
    ``cert_path``. Passing ``transport`` uses it for every client instead.
    """

    def __init__(
        self,
        hosts: Iterable[HostConfig],
        cert_path: str = "",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._clients: dict[str, DockerClient] = {}
        tls = None
        if transport is None:
            tls = (
                os.path.join(cert_path, "ca.pem"),
                os.path.join(cert_path, "cert.pem"),
                os.path.join(cert_path, "key.pem"),
            )
        for host in hosts:
            local = host.addr in ("", "unix") or host.addr.startswith("unix://")
            self._clients[host.name] = DockerClient(
                host.addr,
                host.name,
                tls=None if local else tls,
                transport=transport,
            )

    def get(self, name: str) -> DockerClient:
        """Return the client registered under ``name``."""
        with self._lock:
            try:
                return self._clients[name]
            except KeyError:
                raise HostNotFoundError(f"docker host not found: {name}") from None

    async def close_all(self) -> None:
        """Close and forget every client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            with suppress(httpx.HTTPError, OSError):
                await client.close()

    def host_names(self) -> list[str]:
        """Return the names of all registered hosts."""
        with self._lock:
            return list(self._clients)