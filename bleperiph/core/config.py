"""
Core configuration settings for bleperiph.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from bleperiph.bt_ref import constants
from bleperiph.bt_ref.utils import expand_alias, value_to_bytes

# Base paths
DATA_DIR = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local/share")) / "bleperiph"
CONFIG_DIR = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / "bleperiph"

# Logging configuration
LOG_DIR = Path(os.getenv("BLEPERIPH_LOG_DIR", DATA_DIR / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Log types
LOG__GENERAL = "GENERAL"
LOG__DEBUG = "DEBUG"
LOG__DISPATCH = "DISPATCH"
LOG__ADVERTISING = "ADVERTISING"

# Default adapter
DEFAULT_ADAPTER = constants.ADAPTER_NAME

# Application defaults
DEFAULT_OBJECT_NAME = "org.bleperiph.app"
DEFAULT_OBJECT_PATH = "/org/bleperiph/app"
DEFAULT_LOCAL_NAME = "bleperiph"

# Config file lookup: $BLEPERIPH_CONFIG, then ~/.config/bleperiph/peripheral.yaml
DEFAULT_CONFIG_FILE = CONFIG_DIR / "peripheral.yaml"
CONFIG_ENV_VAR = "BLEPERIPH_CONFIG"

ReadCallback = Callable[..., bytes]
WriteCallback = Callable[..., None]


@dataclass
class ApplicationConfig:
    """Everything an Application needs to build and publish its tree."""

    object_name: str = DEFAULT_OBJECT_NAME
    object_path: str = DEFAULT_OBJECT_PATH
    local_name: str = DEFAULT_LOCAL_NAME
    uuid_base: str = constants.UUID_BASE__BLUETOOTH
    uuid_suffix: str = constants.UUID_SUFFIX

    read_func: Optional[ReadCallback] = None
    write_func: Optional[WriteCallback] = None
    desc_read_func: Optional[ReadCallback] = None
    desc_write_func: Optional[WriteCallback] = None

    advertisement_path: str = constants.ADVERTISEMENT_PATH
    advertisement_duration: int = constants.ADVERTISEMENT_DURATION
    advertisement_timeout: int = constants.ADVERTISEMENT_TIMEOUT

    # dbus.Bus / connection; the system bus is opened when left empty
    bus: Any = field(default=None, repr=False)


@dataclass
class DescriptorDefinition:
    uuid: str
    flags: List[str] = field(default_factory=lambda: ["read"])
    value: bytes = b""


@dataclass
class CharacteristicDefinition:
    uuid: str
    flags: List[str] = field(default_factory=lambda: ["read"])
    value: bytes = b""
    descriptors: List[DescriptorDefinition] = field(default_factory=list)


@dataclass
class ServiceDefinition:
    uuid: str
    primary: bool = True
    advertised: bool = False
    characteristics: List[CharacteristicDefinition] = field(default_factory=list)


def config_file_path(path: Optional[str] = None) -> Path:
    """Resolve which YAML file to read (argument, env var, default)."""
    if path:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def _require(entry: Dict[str, Any], key: str, where: str) -> Any:
    from bleperiph.core.errors import ConfigurationError

    if key not in entry or entry[key] in (None, ""):
        raise ConfigurationError(f"{where}: '{key}' is required")
    return entry[key]


def _flags(entry: Dict[str, Any], allowed: List[str], where: str) -> List[str]:
    from bleperiph.core.errors import ConfigurationError

    flags = [str(f) for f in entry.get("flags", ["read"])]
    unknown = [f for f in flags if f not in allowed]
    if unknown:
        raise ConfigurationError(f"{where}: unknown flags {unknown}")
    return flags


def _parse_descriptor(entry: Dict[str, Any], where: str) -> DescriptorDefinition:
    return DescriptorDefinition(
        uuid=expand_alias(str(_require(entry, "uuid", where))),
        flags=_flags(entry, constants.GATT__DESCRIPTOR__FLAGS, where),
        value=value_to_bytes(entry.get("value")),
    )


def _parse_characteristic(entry: Dict[str, Any], where: str) -> CharacteristicDefinition:
    descriptors = [
        _parse_descriptor(d, f"{where}.descriptors[{i}]")
        for i, d in enumerate(entry.get("descriptors") or [])
    ]
    return CharacteristicDefinition(
        uuid=expand_alias(str(_require(entry, "uuid", where))),
        flags=_flags(entry, constants.GATT__CHARACTERISTIC__FLAGS, where),
        value=value_to_bytes(entry.get("value")),
        descriptors=descriptors,
    )


def _parse_service(entry: Dict[str, Any], where: str) -> ServiceDefinition:
    characteristics = [
        _parse_characteristic(c, f"{where}.characteristics[{i}]")
        for i, c in enumerate(entry.get("characteristics") or [])
    ]
    return ServiceDefinition(
        uuid=expand_alias(str(_require(entry, "uuid", where))),
        primary=bool(entry.get("primary", True)),
        advertised=bool(entry.get("advertised", False)),
        characteristics=characteristics,
    )


def parse_peripheral_config(document: Dict[str, Any]) -> Tuple[ApplicationConfig, List[ServiceDefinition]]:
    """Turn a parsed YAML mapping into an ApplicationConfig and service list."""
    from bleperiph.core.errors import ConfigurationError

    if not isinstance(document, dict):
        raise ConfigurationError("peripheral config must be a mapping")

    config = ApplicationConfig(
        object_name=str(document.get("name", DEFAULT_OBJECT_NAME)),
        object_path=str(document.get("path", DEFAULT_OBJECT_PATH)),
        local_name=str(document.get("local_name", DEFAULT_LOCAL_NAME)),
        uuid_base=str(document.get("uuid_base", constants.UUID_BASE__BLUETOOTH)),
        uuid_suffix=str(document.get("uuid_suffix", constants.UUID_SUFFIX)),
    )
    advertisement = document.get("advertisement") or {}
    config.advertisement_path = str(advertisement.get("path", config.advertisement_path))
    config.advertisement_duration = int(advertisement.get("duration", config.advertisement_duration))
    config.advertisement_timeout = int(advertisement.get("timeout", config.advertisement_timeout))

    services = [
        _parse_service(s, f"services[{i}]")
        for i, s in enumerate(document.get("services") or [])
    ]
    return config, services


def load_peripheral_config(path: Optional[str] = None) -> Tuple[ApplicationConfig, List[ServiceDefinition]]:
    """Read the peripheral YAML file and return its config and services."""
    from bleperiph.core.errors import ConfigurationError

    config_path = config_file_path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"config file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {config_path}: {e}")
    return parse_peripheral_config(document)


def init_mainloop() -> None:
    """Install the GLib main loop as dbus-python's default."""
    import dbus.mainloop.glib

    dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
    # Make sure threading helpers are ready (no-op if compiled without thread support)
    if hasattr(dbus.mainloop.glib, "threads_init"):
        dbus.mainloop.glib.threads_init()
