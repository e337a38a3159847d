"""Allowed daemon event types, actions and attributes, and filters over them."""

from __future__ import annotations

from typing import Mapping

EVENT_TYPES: tuple[str, ...] = ("container", "daemon", "image", "network", "volume")

CONTAINER_EVENTS: tuple[str, ...] = (
    "create",
    "start",
    "restart",
    "stop",
    "die",
    "kill",
    "pause",
    "unpause",
    "destroy",
    "rename",
    "update",
    "attach",
    "detach",
    "exec_create",
    "exec_start",
    "exec_die",
)

IMAGE_EVENTS: tuple[str, ...] = (
    "pull",
    "push",
    "tag",
    "untag",
    "delete",
    "save",
    "load",
)

NETWORK_EVENTS: tuple[str, ...] = ("create", "connect", "disconnect", "destroy")

VOLUME_EVENTS: tuple[str, ...] = ("create", "mount", "unmount", "destroy")

DAEMON_EVENTS: tuple[str, ...] = ("reload", "shutdown")

EVENT_ATTRIBUTES: tuple[str, ...] = (
    "name",
    "image",
    "exitCode",
    "execDuration",
    "signal",
    "container",
    "com.docker.compose.project",
    "com.docker.compose.service",
)

_ACTIONS: dict[str, tuple[str, ...]] = {
    "container": CONTAINER_EVENTS,
    "daemon": DAEMON_EVENTS,
    "image": IMAGE_EVENTS,
    "network": NETWORK_EVENTS,
    "volume": VOLUME_EVENTS,
}


def event_action_map() -> dict[str, list[str]]:
    """Return a fresh mapping of each allowed event type to its allowed actions."""
    return {tp: list(_ACTIONS.get(tp, ())) for tp in EVENT_TYPES}


def filter_event(evt_type: str, evt_action: str) -> bool:
    """Return True if the type and action are both on the allow list."""
    actions = _ACTIONS.get(evt_type)
    if actions is None:
        return False
    return evt_action in actions


def filter_attrs(attrs: Mapping[str, str] | None) -> dict[str, str]:
    """Keep only the allowed attributes, in the allow list's order."""
    if not attrs:
        return {}
    return {key: attrs[key] for key in EVENT_ATTRIBUTES if key in attrs}