import pytest

from dockwatch.convert import convert_inspect_result
from dockwatch.models import MountPoint, NetworkEndpoint, PortBinding


def _sample():
    return {
        "Id": "abc123def456",
        "Name": "/web",
        "Image": "sha256:deadbeef",
        "Created": "2024-01-01T00:00:00Z",
        "Platform": "linux",
        "RestartCount": 2,
        "State": {
            "Status": "running",
            "Running": True,
            "Paused": False,
            "Restarting": False,
            "OOMKilled": False,
            "Dead": False,
            "Pid": 4242,
            "ExitCode": 0,
            "Error": "",
            "StartedAt": "2024-01-01T00:00:01Z",
            "FinishedAt": "0001-01-01T00:00:00Z",
        },
        "Config": {
            "Hostname": "web",
            "User": "app",
            "Env": ["A=1", "B=2"],
            "Cmd": ["serve"],
            "Entrypoint": None,
            "WorkingDir": "/srv",
            "ExposedPorts": {"80/tcp": {}, "443/tcp": {}},
            "Labels": {"tier": "front"},
        },
        "NetworkSettings": {
            "Ports": {
                "80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}],
                "443/tcp": None,
            },
            "Networks": {
                "bridge": {
                    "NetworkID": "net1",
                    "IPAddress": "172.17.0.2",
                    "Gateway": "172.17.0.1",
                    "MacAddress": "02:00:00:00:00:01",
                },
                "backend": {
                    "NetworkID": "net2",
                    "IPAddress": "10.0.0.5",
                    "Gateway": "10.0.0.1",
                    "MacAddress": "02:00:00:00:00:02",
                },
            },
        },
        "Mounts": [
            {
                "Type": "volume",
                "Name": "data",
                "Source": "/var/lib/data",
                "Destination": "/data",
                "Mode": "z",
                "RW": True,
            }
        ],
    }


def test_basic_fields_are_copied():
    data = _sample()
    inspect = convert_inspect_result(data)
    assert inspect.id == data["Id"]
    assert inspect.name == data["Name"]
    assert inspect.image == data["Image"]
    assert inspect.created == data["Created"]
    assert inspect.platform == data["Platform"]
    assert inspect.restart_count == data["RestartCount"]


def test_state_is_converted():
    inspect = convert_inspect_result(_sample())
    assert inspect.state.status == "running"
    assert inspect.state.running is True
    assert inspect.state.pid == 4242
    assert inspect.state.started_at == "2024-01-01T00:00:01Z"


def test_config_is_converted():
    inspect = convert_inspect_result(_sample())
    config = inspect.config
    assert config.hostname == "web"
    assert config.env == ["A=1", "B=2"]
    assert config.cmd == ["serve"]
    assert config.entrypoint is None
    assert config.exposed_ports == {"80/tcp", "443/tcp"}
    assert config.labels == {"tier": "front"}


def test_ports_with_null_bindings_become_empty():
    ports = convert_inspect_result(_sample()).network_settings.ports
    assert ports["80/tcp"] == [PortBinding(host_ip="0.0.0.0", host_port="8080")]
    assert ports["443/tcp"] == []


def test_first_network_supplies_default_address():
    settings = convert_inspect_result(_sample()).network_settings
    assert settings.ip_address == "172.17.0.2"
    assert settings.gateway == "172.17.0.1"
    assert settings.mac_address == "02:00:00:00:00:01"
    assert settings.networks["backend"] == NetworkEndpoint(
        network_id="net2",
        ip_address="10.0.0.5",
        gateway="10.0.0.1",
        mac_address="02:00:00:00:00:02",
    )


def test_network_without_address_is_skipped_for_default():
    data = _sample()
    data["NetworkSettings"]["Networks"] = {
        "none": {"NetworkID": "n0", "IPAddress": "", "Gateway": "", "MacAddress": ""},
        "bridge": {"NetworkID": "n1", "IPAddress": "172.17.0.9", "Gateway": "172.17.0.1"},
    }
    settings = convert_inspect_result(data).network_settings
    assert settings.ip_address == "172.17.0.9"
    assert set(settings.networks) == {"none", "bridge"}


def test_mounts_are_converted():
    mounts = convert_inspect_result(_sample()).mounts
    assert mounts == [
        MountPoint(
            type="volume",
            name="data",
            source="/var/lib/data",
            destination="/data",
            mode="z",
            rw=True,
        )
    ]


def test_missing_sections_stay_empty():
    inspect = convert_inspect_result({"Id": "x", "Name": "/y"})
    assert inspect.id == "x"
    assert inspect.state is None
    assert inspect.config is None
    assert inspect.network_settings is None
    assert inspect.mounts is None
    assert inspect.restart_count == 0


def test_network_settings_without_maps():
    settings = convert_inspect_result({"NetworkSettings": {}}).network_settings
    assert settings.ports is None
    assert settings.networks is None
    assert settings.ip_address == ""


def test_non_mapping_input_is_rejected():
    with pytest.raises(ValueError):
        convert_inspect_result(["not", "a", "mapping"])


def test_malformed_section_is_rejected():
    with pytest.raises(ValueError):
        convert_inspect_result({"State": "running"})