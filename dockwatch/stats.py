"""Resource usage figures computed from raw container stats frames."""

from __future__ import annotations

import math
import os
import stat

from .models import ContainerStats, ContainerStatsRaw

KIB = 1 << 10
MIB = 1 << 20
GIB = 1 << 30

CGROUP_CONTROLLERS_PATH = "/sys/fs/cgroup/cgroup.controllers"

_UINT64_MODULUS = 1 << 64


def _unsigned_sub(a: int, b: int) -> int:
    """Subtract as unsigned 64-bit counters do, wrapping below zero."""
    return (a - b) % _UINT64_MODULUS


def format_bytes(b: int) -> tuple[float, str]:
    """Scale a byte count to the largest binary unit it reaches."""
    if b >= GIB:
        return b / GIB, "GiB"
    if b >= MIB:
        return b / MIB, "MiB"
    if b >= KIB:
        return b / KIB, "KiB"
    return float(b), "B"


def round_to(value: float, digits: int) -> float:
    """Round to ``digits`` decimals, halves away from zero."""
    scale = math.pow(10, digits)
    scaled = value * scale
    magnitude = abs(scaled)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return math.copysign(whole, scaled) / scale


def detect_cgroup_version(controllers_path: str = CGROUP_CONTROLLERS_PATH) -> int:
    """Return 2 when the cgroup v2 controllers file can be stat'ed, otherwise 1."""
    try:
        info = os.stat(controllers_path)
    except OSError:
        return 1
    # Any entry that stats successfully counts, as a plain existence check would.
    if stat.S_IFMT(info.st_mode) or info.st_mode == 0:
        return 2
    return 2


def calculate_memory_usage(
    raw: ContainerStatsRaw, cgroup_version: int | None = None
) -> int:
    """Return memory usage with the page cache share taken out."""
    if cgroup_version is None:
        cgroup_version = detect_cgroup_version()
    if cgroup_version == 2:
        return _unsigned_sub(raw.memory_usage, raw.memory_cache)
    return _unsigned_sub(raw.memory_usage, raw.memory_inactive_file)


def calculate_stats(
    raw: ContainerStatsRaw, cgroup_version: int | None = None
) -> ContainerStats:
    """Compute CPU, memory and network figures from one stats frame."""
    cpu_delta = float(_unsigned_sub(raw.cpu_total_usage, raw.precpu_total_usage))
    system_delta = float(
        _unsigned_sub(raw.system_cpu_usage, raw.precpu_system_cpu_usage)
    )

    cpu_percent = 0.0
    if system_delta > 0 and cpu_delta > 0:
        cpu_percent = (cpu_delta / system_delta) * len(raw.percpu_usage) * 100.0

    mem_usage = calculate_memory_usage(raw, cgroup_version)
    mem_limit = raw.memory_limit

    mem_percent = 0.0
    if mem_limit > 0:
        mem_percent = (mem_usage / mem_limit) * 100.0

    usage_val, usage_unit = format_bytes(mem_usage)
    limit_val, limit_unit = format_bytes(mem_limit)

    rx = sum(rx_bytes for rx_bytes, _ in raw.networks.values()) % _UINT64_MODULUS
    tx = sum(tx_bytes for _, tx_bytes in raw.networks.values()) % _UINT64_MODULUS

    return ContainerStats(
        cpu_percent=cpu_percent,
        memory_usage=mem_usage,
        memory_limit=mem_limit,
        memory_usage_val=round_to(usage_val, 2),
        memory_usage_unit=usage_unit,
        memory_limit_val=round_to(limit_val, 2),
        memory_limit_unit=limit_unit,
        memory_percent=mem_percent,
        network_rx=rx,
        network_tx=tx,
    )