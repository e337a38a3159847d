# dockwatch

dockwatch is an asyncio library for watching and controlling containers on
one or more Docker hosts. It covers:

- listing, inspecting, starting and stopping containers (`dockwatch.client`,
  `dockwatch.service`);
- computing CPU, memory and network figures from raw stats frames
  (`dockwatch.stats`);
- following host event streams and passing them to subscribers
  (`dockwatch.events`);
- queueing messages for Server-Sent-Events sessions (`dockwatch.sse`) and
  broadcasting to WebSocket-style clients (`dockwatch.hub`);
- bcrypt password hashing (`dockwatch.password`).

## Installation

```
pip install dockwatch
```

With the test dependencies:

```
pip install "dockwatch[test]"
```

## Clients and hosts

`DockerClient` talks to one daemon over the Docker Engine HTTP API. If you
give no address, it reads `DOCKER_HOST` from the environment. An empty
address or `"unix"` means the local socket `/var/run/docker.sock`. `tcp://`
addresses go over HTTP, or HTTPS when you pass a `tls=(ca, cert, key)`
triple of PEM file paths.

```python
from dockwatch.client import DockerClient

async with DockerClient("") as local:
    for c in await local.list_containers():
        print(c.id, c.name, c.state, c.status)
```

`DockerClientManager` holds one client per named `HostConfig`. Remote hosts
use mutual TLS with `ca.pem`, `cert.pem` and `key.pem` from `cert_path`, and
those files are loaded when the manager is built. Local-socket hosts do not
use TLS.

```python
from dockwatch.client import DockerClientManager, HostConfig

manager = DockerClientManager(
    [HostConfig("local", ""), HostConfig("prod-1", "tcp://10.0.0.10:2376")],
    cert_path="certs",
)
manager.host_names()          # ["local", "prod-1"]
client = manager.get("prod-1")  # HostNotFoundError for unknown names
await manager.close_all()
```

Failed requests raise `DockerError`, with `status_code` set when the daemon
answered.

## Container operations

`DockerService(local_client, manager)` runs operations against a host. A
`host` of `None` uses `local_client`. Any other name is looked up in
`manager`.

```python
from dockwatch.service import DockerService

service = DockerService(local, manager)
containers = await service.container_list("prod-1")
details = await service.inspect_container(containers[0].id, "prod-1")
await service.stop_container(containers[0].id, "prod-1")

stats = await service.container_stats(containers[0].id, "prod-1")
print(stats.cpu_percent, stats.memory_usage_val, stats.memory_usage_unit)

async for s in service.container_stats_stream(containers[0].id):
    ...

by_id = await service.host_stats("prod-1", timeout=3.0)
```

`container_stats` reads two frames and computes the figures from the second
one. `host_stats` asks for every container's stats at the same time. It
leaves out containers that fail or that do not answer within `timeout`
seconds.

## Stats arithmetic

`dockwatch.stats` works with plain values:

```python
from dockwatch.models import ContainerStatsRaw
from dockwatch.stats import calculate_stats, format_bytes

format_bytes(1536)                        # (1.5, "KiB")
raw = ContainerStatsRaw.from_dict(frame)  # frame: one decoded stats JSON object
stats = calculate_stats(raw, cgroup_version=2)
```

Memory usage has the page cache taken out of it. With cgroup v2 this is
`memory_cache`, otherwise `memory_inactive_file`. If you do not pass a cgroup
version, `detect_cgroup_version()` chooses one by checking for
`/sys/fs/cgroup/cgroup.controllers`.

## Events

`EventManager(manager)` follows the event streams of the hosts you watch. It
keeps only the types and actions allowed by `dockwatch.eventtypes.filter_event`
and only the attributes allowed by `filter_attrs`. Each resulting
`ContainerEvent` goes to every subscriber whose filter accepts it. A
subscriber whose buffer is full drops that event. A dropped host stream is
retried with exponential backoff, from 1 second up to 30 seconds.

```python
from dockwatch.events import EventManager

events = EventManager(manager)
events.start()                  # inside a running event loop
events.watch_host("prod-1")
sub = events.subscribe("alerts", 100, lambda e: e.action == "die")

async for event in sub:         # ends after unsubscribe or stop
    print(event.to_dict())

await events.stop()
```

## SSE sessions and the hub

`SessionRegistry` hands out session keys numbered from 1 to `max_sessions`
(32 by default). `acquire()` raises `LookupError` when every key is in use.
Each key has a bounded queue. When a push arrives and the queue is full, the
queue is emptied first. `broadcast()` queues an event for every active
session. `SSEEvent.encode()` returns the `text/event-stream` wire form.

`Hub` keeps track of `HubClient`s. `register`, `unregister` and `broadcast`
are queued and handled in order by `run()`. `shutdown()` closes every client.
A client whose send queue is full when a broadcast arrives is dropped and
closed. Read a client's outgoing messages with `async for m in
client.messages()`.

## Passwords

`hash_password(password)` returns a bcrypt hash at cost 10.
`check_password(password, hashed)` raises `PasswordMismatchError` when the
password does not match, and `ValueError` when the hash is malformed.

## What is not included

dockwatch is a library only. It has no HTTP server, no routes, no
authentication layer, no user or session storage and no command-line
program. The SSE registry and the hub manage queues and clients. Attaching
them to real HTTP or WebSocket connections is up to the application that
uses them.