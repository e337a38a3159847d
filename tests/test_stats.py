import pytest

from dockwatch.models import ContainerStatsRaw
from dockwatch.stats import (
    GIB,
    KIB,
    MIB,
    calculate_memory_usage,
    calculate_stats,
    detect_cgroup_version,
    format_bytes,
    round_to,
)


@pytest.mark.parametrize(
    "value, unit",
    [(1023, "B"), (KIB, "KiB"), (MIB - 1, "KiB"), (MIB, "MiB"), (GIB, "GiB")],
)
def test_format_bytes_units(value, unit):
    assert format_bytes(value)[1] == unit


@pytest.mark.parametrize("value", [0, 512, 3 * KIB, 5 * MIB + 17, 7 * GIB])
def test_format_bytes_round_trip(value):
    scaled, unit = format_bytes(value)
    size = {"B": 1, "KiB": KIB, "MiB": MIB, "GiB": GIB}[unit]
    assert scaled * size == pytest.approx(value)
    assert unit == "B" or scaled >= 1.0


def test_round_to_halves_away_from_zero():
    assert round_to(2.5, 0) == 3.0
    assert round_to(-2.5, 0) == -3.0


@pytest.mark.parametrize("value", [1.23456, -7.891, 0.005, 1024.0])
def test_round_to_is_idempotent(value):
    once = round_to(value, 2)
    assert round_to(once, 2) == once
    assert abs(once - value) <= 0.005 + 1e-12


def test_detect_cgroup_version(tmp_path):
    controllers = tmp_path / "cgroup.controllers"
    assert detect_cgroup_version(str(controllers)) == 1
    controllers.write_text("cpu memory\n")
    assert detect_cgroup_version(str(controllers)) == 2


def test_memory_usage_by_cgroup_version():
    raw = ContainerStatsRaw(memory_usage=5000, memory_cache=100, memory_inactive_file=300)
    assert calculate_memory_usage(raw, 2) == raw.memory_usage - raw.memory_cache
    assert calculate_memory_usage(raw, 1) == raw.memory_usage - raw.memory_inactive_file


def test_memory_usage_wraps_like_unsigned():
    raw = ContainerStatsRaw(memory_usage=100, memory_cache=200)
    assert calculate_memory_usage(raw, 2) == (1 << 64) - 100


def test_cpu_percent_from_deltas():
    raw = ContainerStatsRaw(
        cpu_total_usage=200,
        precpu_total_usage=100,
        system_cpu_usage=2000,
        precpu_system_cpu_usage=1000,
        percpu_usage=[1, 1, 1, 1],
    )
    assert calculate_stats(raw, 2).cpu_percent == pytest.approx(40.0)


def test_cpu_percent_zero_without_system_delta():
    raw = ContainerStatsRaw(
        cpu_total_usage=200,
        precpu_total_usage=100,
        system_cpu_usage=1000,
        precpu_system_cpu_usage=1000,
        percpu_usage=[1, 1],
    )
    assert calculate_stats(raw, 2).cpu_percent == 0.0


def test_memory_figures_and_units():
    raw = ContainerStatsRaw(memory_usage=2 * GIB, memory_limit=2 * GIB)
    stats = calculate_stats(raw, 2)
    assert stats.memory_usage == raw.memory_usage
    assert stats.memory_limit == raw.memory_limit
    assert stats.memory_percent == pytest.approx(100.0)
    assert stats.memory_usage_unit == "GiB"
    assert stats.memory_limit_unit == "GiB"
    assert stats.memory_usage_val == stats.memory_limit_val


def test_memory_percent_zero_without_limit():
    raw = ContainerStatsRaw(memory_usage=KIB, memory_limit=0)
    stats = calculate_stats(raw, 1)
    assert stats.memory_percent == 0.0
    assert stats.memory_limit_unit == "B"


def test_network_totals_sum_interfaces():
    raw = ContainerStatsRaw(networks={"eth0": (10, 20), "eth1": (5, 7)})
    stats = calculate_stats(raw, 1)
    assert stats.network_rx == 10 + 5
    assert stats.network_tx == 20 + 7


def test_stats_from_decoded_frame():
    frame = {
        "memory_stats": {"usage": 3 * MIB, "limit": 6 * MIB, "stats": {"cache": MIB}},
        "networks": {"eth0": {"rx_bytes": 11, "tx_bytes": 22}},
    }
    stats = calculate_stats(ContainerStatsRaw.from_dict(frame), 2)
    assert stats.memory_usage == 2 * MIB
    assert stats.memory_usage_unit == "MiB"
    assert (stats.network_rx, stats.network_tx) == (11, 22)