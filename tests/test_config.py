"""Peripheral YAML configuration."""

import pytest

from bleperiph.bt_ref.constants import ADVERTISEMENT_PATH
from bleperiph.bt_ref.utils import value_to_bytes
from bleperiph.core import config as cfg
from bleperiph.core.errors import ConfigurationError

PERIPHERAL_YAML = """\
name: org.example.peripheral
path: /org/example/app
local_name: Example
uuid_base: "0000"
advertisement:
  timeout: 30
services:
  - uuid: "180D"
    primary: true
    advertised: true
    characteristics:
      - uuid: "2A37"
        flags: [read, notify]
        value: "hex:00 5a"
        descriptors:
          - uuid: "2901"
            flags: [read]
            value: "Heart rate"
  - uuid: "180F"
"""


def test_load_peripheral_config(tmp_path):
    path = tmp_path / "peripheral.yaml"
    path.write_text(PERIPHERAL_YAML)

    config, services = cfg.load_peripheral_config(str(path))

    assert config.object_name == "org.example.peripheral"
    assert config.object_path == "/org/example/app"
    assert config.local_name == "Example"
    assert config.advertisement_timeout == 30
    assert config.advertisement_duration == 2
    assert config.advertisement_path == ADVERTISEMENT_PATH

    heart, battery = services
    assert heart.advertised and heart.primary
    assert not battery.advertised and battery.characteristics == []
    (char,) = heart.characteristics
    assert char.flags == ["read", "notify"]
    assert char.value == b"\x00\x5a"
    (desc,) = char.descriptors
    assert desc.value == b"Heart rate"


def test_defaults_for_empty_document():
    config, services = cfg.parse_peripheral_config({})
    assert config.object_name == cfg.DEFAULT_OBJECT_NAME
    assert config.object_path == cfg.DEFAULT_OBJECT_PATH
    assert services == []


def test_missing_uuid_is_reported_with_location():
    with pytest.raises(ConfigurationError) as info:
        cfg.parse_peripheral_config({"services": [{"uuid": "180D", "characteristics": [{"flags": ["read"]}]}]})
    assert "services[0].characteristics[0]" in str(info.value)


def test_document_must_be_a_mapping():
    with pytest.raises(ConfigurationError):
        cfg.parse_peripheral_config(["not", "a", "mapping"])


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        cfg.load_peripheral_config(str(tmp_path / "absent.yaml"))


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("services: [unclosed\n")
    with pytest.raises(ConfigurationError):
        cfg.load_peripheral_config(str(path))


def test_config_file_lookup_order(monkeypatch, tmp_path):
    monkeypatch.delenv(cfg.CONFIG_ENV_VAR, raising=False)
    assert cfg.config_file_path() == cfg.DEFAULT_CONFIG_FILE
    monkeypatch.setenv(cfg.CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
    assert cfg.config_file_path() == tmp_path / "env.yaml"
    assert str(cfg.config_file_path("/explicit.yaml")) == "/explicit.yaml"


def test_value_conversion():
    assert value_to_bytes(None) == b""
    assert value_to_bytes("hex:0a0b") == b"\x0a\x0b"
    assert value_to_bytes("hi") == b"hi"
    assert value_to_bytes(5) == b"\x05"
    assert value_to_bytes([1, 2]) == b"\x01\x02"


def test_unknown_flags_are_rejected():
    document = {"services": [{"uuid": "180D", "characteristics": [{"uuid": "2A37", "flags": ["read", "fly"]}]}]}
    with pytest.raises(ConfigurationError) as info:
        cfg.parse_peripheral_config(document)
    assert "fly" in str(info.value)

    document = {"services": [{"uuid": "180D", "characteristics": [
        {"uuid": "2A37", "descriptors": [{"uuid": "2901", "flags": ["notify"]}]},
    ]}]}
    with pytest.raises(ConfigurationError):
        cfg.parse_peripheral_config(document)


def test_short_aliases_are_widened():
    _, (service,) = cfg.parse_peripheral_config({
        "services": [{
            "uuid": "180D",
            "characteristics": [{"uuid": "2A37", "descriptors": [{"uuid": "2901"}]}],
        }],
    })
    assert service.uuid == "0000180D"
    (char,) = service.characteristics
    assert char.uuid == "00002A37"
    assert char.descriptors[0].uuid == "00002901"
