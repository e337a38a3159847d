"""Data models for containers, inspection results, resource stats and events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping


@dataclass
class Container:
    """Summary of a container as shown in a container listing."""

    id: str
    name: str
    image: str
    state: str
    status: str


class ContainerAction(str, Enum):
    """Lifecycle actions that can be requested for a container."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"


@dataclass
class ContainerState:
    """Runtime state of a container."""

    status: str = ""
    running: bool = False
    paused: bool = False
    restarting: bool = False
    oom_killed: bool = False
    dead: bool = False
    pid: int = 0
    exit_code: int = 0
    error: str = ""
    started_at: str = ""
    finished_at: str = ""


@dataclass
class ContainerConfig:
    """Configuration a container was created with."""

    hostname: str = ""
    user: str = ""
    env: list[str] | None = None
    cmd: list[str] | None = None
    entrypoint: list[str] | None = None
    working_dir: str = ""
    exposed_ports: set[str] | None = None
    labels: dict[str, str] | None = None


@dataclass
class PortBinding:
    """A host address and port a container port is published on."""

    host_ip: str = ""
    host_port: str = ""


@dataclass
class NetworkEndpoint:
    """A container's attachment to one network."""

    network_id: str = ""
    ip_address: str = ""
    gateway: str = ""
    mac_address: str = ""


@dataclass
class ContainerNetworkSettings:
    """Network settings of a container."""

    ip_address: str = ""
    gateway: str = ""
    mac_address: str = ""
    ports: dict[str, list[PortBinding]] | None = None
    networks: dict[str, NetworkEndpoint] | None = None


@dataclass
class MountPoint:
    """A volume, bind or tmpfs mount inside a container."""

    type: str = ""
    name: str = ""
    source: str = ""
    destination: str = ""
    mode: str = ""
    rw: bool = False


@dataclass
class ContainerInspect:
    """Detailed information about one container."""

    id: str = ""
    name: str = ""
    image: str = ""
    created: str = ""
    platform: str = ""
    restart_count: int = 0
    state: ContainerState | None = None
    config: ContainerConfig | None = None
    network_settings: ContainerNetworkSettings | None = None
    mounts: list[MountPoint] | None = None


def _uint(value: Any, name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}: expected an unsigned integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name}: expected an unsigned integer, got {value!r}")
    return value


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{key}: expected an object, got {value!r}")
    return value


@dataclass
class ContainerStatsRaw:
    """One frame of the daemon's stats stream, reduced to the fields used."""

    cpu_total_usage: int = 0
    percpu_usage: list[int] = field(default_factory=list)
    system_cpu_usage: int = 0
    precpu_total_usage: int = 0
    precpu_system_cpu_usage: int = 0
    memory_usage: int = 0
    memory_limit: int = 0
    memory_cache: int = 0
    memory_inactive_file: int = 0
    networks: dict[str, tuple[int, int]] = field(default_factory=dict)
    """Per-interface (rx_bytes, tx_bytes)."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContainerStatsRaw":
        """Build from a decoded stats JSON frame; missing fields become zero."""
        cpu = _section(data, "cpu_stats")
        cpu_usage = _section(cpu, "cpu_usage")
        precpu = _section(data, "precpu_stats")
        precpu_usage = _section(precpu, "cpu_usage")
        memory = _section(data, "memory_stats")
        memory_detail = _section(memory, "stats")

        percpu = cpu_usage.get("percpu_usage") or []
        networks = {
            name: (
                _uint(_section(net, "_").get("_") if False else (net or {}).get("rx_bytes"), "rx_bytes"),
                _uint((net or {}).get("tx_bytes"), "tx_bytes"),
            )
            for name, net in _section(data, "networks").items()
        }

        return cls(
            cpu_total_usage=_uint(cpu_usage.get("total_usage"), "total_usage"),
            percpu_usage=[_uint(v, "percpu_usage") for v in percpu],
            system_cpu_usage=_uint(cpu.get("system_cpu_usage"), "system_cpu_usage"),
            precpu_total_usage=_uint(precpu_usage.get("total_usage"), "total_usage"),
            precpu_system_cpu_usage=_uint(
                precpu.get("system_cpu_usage"), "system_cpu_usage"
            ),
            memory_usage=_uint(memory.get("usage"), "usage"),
            memory_limit=_uint(memory.get("limit"), "limit"),
            memory_cache=_uint(memory_detail.get("cache"), "cache"),
            memory_inactive_file=_uint(
                memory_detail.get("inactive_file"), "inactive_file"
            ),
            networks=networks,
        )


@dataclass
class ContainerStats:
    """Computed resource usage of a container."""

    id: str = ""
    name: str = ""
    cpu_percent: float = 0.0
    memory_usage: int = 0
    memory_limit: int = 0
    memory_usage_val: float = 0.0
    memory_usage_unit: str = ""
    memory_limit_val: float = 0.0
    memory_limit_unit: str = ""
    memory_percent: float = 0.0
    network_rx: int = 0
    network_tx: int = 0


@dataclass
class ContainerEvent:
    """A normalised daemon event tagged with the host it came from."""

    host: str = ""
    type: str = ""
    action: str = ""
    actor_id: str = ""
    actor_name: str = ""
    timestamp: int = 0
    attrs: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; ``attrs`` is left out when empty."""
        result: dict[str, Any] = {
            "host": self.host,
            "type": self.type,
            "action": self.action,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "timestamp": self.timestamp,
        }
        if self.attrs:
            result["attrs"] = dict(self.attrs)
        return result


class CommState(IntEnum):
    """Communication state of a backing server."""

    OFF = 0
    ON = 1


@dataclass
class SystemInfo:
    """Server time and the connection state of its database and cache."""

    svr_utc: int = 0
    db_svr_comm: CommState = CommState.OFF
    rd_svr_comm: CommState = CommState.OFF

    def to_dict(self) -> dict[str, int]:
        """Return the JSON form."""
        return {
            "svrutc": self.svr_utc,
            "dbstate": int(self.db_svr_comm),
            "rdstate": int(self.rd_svr_comm),
        }