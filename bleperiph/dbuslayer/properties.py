"""Typed property structs and the exported ``org.freedesktop.DBus.Properties`` base.

Every exported object in the tree keeps one dataclass per interface it
implements.  Each dataclass field carries the D-Bus signature of the property
(and whether BlueZ may ``Set`` it), so the wire dictionaries produced by
``to_dbus`` always have the same shape the daemon expects.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import dbus
import dbus.service

from bleperiph.bt_ref.constants import (
    ADVERTISEMENT_INTERFACE,
    DBUS_PROPERTIES,
    GATT_CHARACTERISTIC_INTERFACE,
    GATT_DESCRIPTOR_INTERFACE,
    GATT_SERVICE_INTERFACE,
    INTROSPECT_INTERFACE,
)
from bleperiph.bt_ref.exceptions import InvalidArgsException, NotPermittedException
from bleperiph.bt_ref.utils import dbus_to_python
from bleperiph.core.errors import ExportError
from bleperiph.core.log import print_and_log, LOG__DEBUG
from bleperiph.dbuslayer.introspection import declare_properties

__all__ = [
    "PropertyStruct",
    "GattService1Properties",
    "GattCharacteristic1Properties",
    "GattDescriptor1Properties",
    "LEAdvertisement1Properties",
    "PropertyTable",
    "to_dbus_value",
]


def prop(signature: str, default: Any = None, *, writable: bool = False, factory=None):
    """Declare a property field with its D-Bus signature."""
    metadata = {"signature": signature, "writable": writable}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def to_dbus_value(value: Any, signature: str) -> Any:
    """Wrap a plain Python value in the dbus-python type for *signature*."""
    if signature == "s":
        return dbus.String(value)
    if signature == "o":
        return dbus.ObjectPath(value)
    if signature == "b":
        return dbus.Boolean(value)
    if signature == "q":
        return dbus.UInt16(value)
    if signature == "y":
        return dbus.Byte(value)
    if signature == "ay":
        return dbus.Array([dbus.Byte(b) for b in bytes(value)], signature="y")
    if signature in ("as", "ao"):
        return dbus.Array(list(value), signature=signature[1])
    if signature == "a{qv}":
        return dbus.Dictionary(
            {dbus.UInt16(k): to_dbus_value(v, "ay") for k, v in value.items()},
            signature="qv",
        )
    if signature == "a{sv}":
        return dbus.Dictionary(
            {dbus.String(k): to_dbus_value(v, "ay") for k, v in value.items()},
            signature="sv",
        )
    raise ValueError(f"unsupported property signature {signature}")


def _from_dbus_value(value: Any, signature: str) -> Any:
    if signature == "ay":
        return bytes(value)
    if signature in ("as", "ao"):
        return [str(v) for v in value]
    if signature == "b":
        return bool(value)
    if signature in ("q", "y"):
        return int(value)
    if signature in ("s", "o"):
        return str(value)
    return value


class PropertyStruct:
    """Mixin for the per-interface property dataclasses."""

    INTERFACE: str = ""

    @classmethod
    def _fields(cls) -> Dict[str, dataclasses.Field]:
        return {f.name: f for f in dataclasses.fields(cls)}

    @classmethod
    def has_field(cls, name: str) -> bool:
        return name in cls._fields()

    @classmethod
    def signature_of(cls, name: str) -> str:
        return cls._fields()[name].metadata["signature"]

    @classmethod
    def is_writable(cls, name: str) -> bool:
        return cls._fields()[name].metadata["writable"]

    @classmethod
    def declarations(cls) -> List[Tuple[str, str, str]]:
        """(name, signature, access) for every declared property."""
        return [
            (f.name, f.metadata["signature"], "readwrite" if f.metadata["writable"] else "read")
            for f in dataclasses.fields(cls)
        ]

    def get(self, name: str) -> Any:
        if not self.has_field(name):
            raise KeyError(name)
        return getattr(self, name)

    def set(self, name: str, value: Any) -> None:
        if not self.has_field(name):
            raise KeyError(name)
        setattr(self, name, _from_dbus_value(value, self.signature_of(name)))

    def to_dbus(self) -> dbus.Dictionary:
        """Wire form: ``a{sv}``; fields left as None are not sent."""
        result = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = to_dbus_value(value, f.metadata["signature"])
        return dbus.Dictionary(result, signature="sv")


@dataclass
class GattService1Properties(PropertyStruct):
    INTERFACE = GATT_SERVICE_INTERFACE

    UUID: str = prop("s", "")
    Primary: bool = prop("b", True)
    Characteristics: List[str] = prop("ao", factory=list)
    Includes: List[str] = prop("ao", factory=list)


@dataclass
class GattCharacteristic1Properties(PropertyStruct):
    INTERFACE = GATT_CHARACTERISTIC_INTERFACE

    UUID: str = prop("s", "")
    Service: str = prop("o", "/")
    Value: bytes = prop("ay", b"", writable=True)
    Notifying: bool = prop("b", False)
    Flags: List[str] = prop("as", factory=list)
    Descriptors: List[str] = prop("ao", factory=list)


@dataclass
class GattDescriptor1Properties(PropertyStruct):
    INTERFACE = GATT_DESCRIPTOR_INTERFACE

    UUID: str = prop("s", "")
    Characteristic: str = prop("o", "/")
    Value: bytes = prop("ay", b"", writable=True)
    Flags: List[str] = prop("as", factory=list)


@dataclass
class LEAdvertisement1Properties(PropertyStruct):
    INTERFACE = ADVERTISEMENT_INTERFACE

    Type: str = prop("s", "peripheral")
    ServiceUUIDs: List[str] = prop("as", factory=list)
    ManufacturerData: Optional[Dict[int, bytes]] = prop("a{qv}")
    SolicitUUIDs: Optional[List[str]] = prop("as")
    ServiceData: Optional[Dict[str, bytes]] = prop("a{sv}")
    Includes: Optional[List[str]] = prop("as")
    LocalName: Optional[str] = prop("s")
    Appearance: Optional[int] = prop("q")
    Duration: Optional[int] = prop("q")
    Timeout: Optional[int] = prop("q")


class PropertyTable(dbus.service.Object):
    """Base for every object the application exports.

    Subclasses return their ``{interface: struct}`` map from
    :py:meth:`properties`.  The object is created unexported; :py:meth:`expose`
    registers it on a connection at its path.
    """

    def __init__(self, path: str):
        super().__init__()
        self._path = dbus.ObjectPath(path)
        self._exposed = False

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def path(self) -> dbus.ObjectPath:
        return self._path

    def properties(self) -> Dict[str, PropertyStruct]:
        raise NotImplementedError

    @property
    def exposed(self) -> bool:
        return self._exposed

    # ------------------------------------------------------------------
    # Export on the bus
    # ------------------------------------------------------------------
    def expose(self, connection) -> None:
        """Register this object on *connection* at :py:meth:`path`."""
        if self._exposed:
            return
        try:
            self.add_to_connection(connection, self._path)
        except (KeyError, ValueError, RuntimeError, dbus.exceptions.DBusException) as e:
            raise ExportError(str(self._path), str(e))
        self._exposed = True
        print_and_log(f"[+] Exported {self._path}", LOG__DEBUG)

    def unexpose(self) -> None:
        if not self._exposed:
            return
        self._exposed = False
        self.remove_from_connection()
        print_and_log(f"[*] Unexported {self._path}", LOG__DEBUG)

    # ------------------------------------------------------------------
    # Property access
    # ------------------------------------------------------------------
    def _struct(self, interface: str) -> PropertyStruct:
        props = self.properties()
        if interface not in props:
            raise InvalidArgsException(f"No such interface {interface} on {self._path}")
        return props[interface]

    def get_property(self, interface: str, name: str) -> Any:
        struct = self._struct(interface)
        if not struct.has_field(name):
            raise InvalidArgsException(f"No such property {interface}.{name}")
        return struct.get(name)

    def set_property(self, interface: str, name: str, value: Any, notify: bool = True) -> None:
        """Update a property locally and announce it when exported."""
        struct = self._struct(interface)
        if not struct.has_field(name):
            raise InvalidArgsException(f"No such property {interface}.{name}")
        struct.set(name, value)
        if notify and self._exposed:
            signature = struct.signature_of(name)
            self.PropertiesChanged(
                interface,
                dbus.Dictionary({name: to_dbus_value(struct.get(name), signature)}, signature="sv"),
                dbus.Array([], signature="s"),
            )

    @dbus.service.method(DBUS_PROPERTIES, in_signature="ss", out_signature="v")
    def Get(self, interface, prop):
        struct = self._struct(interface)
        if not struct.has_field(prop):
            raise InvalidArgsException(f"No such property {interface}.{prop}")
        wire = struct.to_dbus()
        if prop not in wire:
            raise InvalidArgsException(f"Property {interface}.{prop} is not set")
        return wire[prop]

    @dbus.service.method(DBUS_PROPERTIES, in_signature="s", out_signature="a{sv}")
    def GetAll(self, interface):
        return self._struct(interface).to_dbus()

    @dbus.service.method(DBUS_PROPERTIES, in_signature="ssv", out_signature="")
    def Set(self, interface, prop, value):
        struct = self._struct(interface)
        if not struct.has_field(prop):
            raise InvalidArgsException(f"No such property {interface}.{prop}")
        if not struct.is_writable(prop):
            raise NotPermittedException(f"Property {interface}.{prop} is read-only")
        print_and_log(f"[*] Set {interface}.{prop} = {dbus_to_python(value)} on {self._path}", LOG__DEBUG)
        self.set_property(interface, prop, value)

    @dbus.service.signal(DBUS_PROPERTIES, signature="sa{sv}as")
    def PropertiesChanged(self, interface, changed, invalidated):
        pass

    @dbus.service.method(INTROSPECT_INTERFACE, in_signature="", out_signature="s",
                         path_keyword="object_path", connection_keyword="connection")
    def Introspect(self, object_path, connection):
        # dbus-python only reflects methods and signals; add the properties
        xml = dbus.service.Object.Introspect(self, object_path, connection)
        return declare_properties(xml, self.properties())
