"""Conversion of the daemon's container inspect JSON into inspect models."""

from __future__ import annotations

from typing import Any, Mapping

from .models import (
    ContainerConfig,
    ContainerInspect,
    ContainerNetworkSettings,
    ContainerState,
    MountPoint,
    NetworkEndpoint,
    PortBinding,
)


def _mapping(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError(f"{key}: expected an object, got {value!r}")
    return value


def _list(data: Mapping[str, Any], key: str) -> list[Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list, got {value!r}")
    return list(value)


def _convert_state(state: Mapping[str, Any]) -> ContainerState:
    return ContainerState(
        status=state.get("Status") or "",
        running=bool(state.get("Running", False)),
        paused=bool(state.get("Paused", False)),
        restarting=bool(state.get("Restarting", False)),
        oom_killed=bool(state.get("OOMKilled", False)),
        dead=bool(state.get("Dead", False)),
        pid=int(state.get("Pid") or 0),
        exit_code=int(state.get("ExitCode") or 0),
        error=state.get("Error") or "",
        started_at=state.get("StartedAt") or "",
        finished_at=state.get("FinishedAt") or "",
    )


def _convert_config(config: Mapping[str, Any]) -> ContainerConfig:
    labels = _mapping(config, "Labels")
    exposed = _mapping(config, "ExposedPorts")
    return ContainerConfig(
        hostname=config.get("Hostname") or "",
        user=config.get("User") or "",
        env=_list(config, "Env"),
        cmd=_list(config, "Cmd"),
        entrypoint=_list(config, "Entrypoint"),
        working_dir=config.get("WorkingDir") or "",
        exposed_ports=set(exposed) if exposed is not None else None,
        labels=dict(labels) if labels is not None else None,
    )


def _convert_network_settings(settings: Mapping[str, Any]) -> ContainerNetworkSettings:
    result = ContainerNetworkSettings()

    ports = _mapping(settings, "Ports")
    if ports is not None:
        result.ports = {
            port: [
                PortBinding(
                    host_ip=binding.get("HostIp") or "",
                    host_port=binding.get("HostPort") or "",
                )
                for binding in (bindings or [])
            ]
            for port, bindings in ports.items()
        }

    networks = _mapping(settings, "Networks")
    if networks is not None:
        result.networks = {}
        for name, endpoint in networks.items():
            endpoint = endpoint or {}
            converted = NetworkEndpoint(
                network_id=endpoint.get("NetworkID") or "",
                ip_address=endpoint.get("IPAddress") or "",
                gateway=endpoint.get("Gateway") or "",
                mac_address=endpoint.get("MacAddress") or "",
            )
            result.networks[name] = converted
            # The first network with an address supplies the top-level fields.
            if not result.ip_address:
                result.ip_address = converted.ip_address
                result.gateway = converted.gateway
                result.mac_address = converted.mac_address

    return result


def _convert_mount(mount: Mapping[str, Any]) -> MountPoint:
    return MountPoint(
        type=mount.get("Type") or "",
        name=mount.get("Name") or "",
        source=mount.get("Source") or "",
        destination=mount.get("Destination") or "",
        mode=mount.get("Mode") or "",
        rw=bool(mount.get("RW", False)),
    )


def convert_inspect_result(data: Mapping[str, Any]) -> ContainerInspect:
    """Build a ContainerInspect from a decoded container inspect response."""
    if not isinstance(data, Mapping):
        raise ValueError(f"expected an inspect object, got {data!r}")

    inspect = ContainerInspect(
        id=data.get("Id") or "",
        name=data.get("Name") or "",
        image=data.get("Image") or "",
        created=data.get("Created") or "",
        platform=data.get("Platform") or "",
        restart_count=int(data.get("RestartCount") or 0),
    )

    state = _mapping(data, "State")
    if state is not None:
        inspect.state = _convert_state(state)

    config = _mapping(data, "Config")
    if config is not None:
        inspect.config = _convert_config(config)

    settings = _mapping(data, "NetworkSettings")
    if settings is not None:
        inspect.network_settings = _convert_network_settings(settings)

    mounts = _list(data, "Mounts")
    if mounts is not None:
        inspect.mounts = [_convert_mount(m or {}) for m in mounts]

    return inspect