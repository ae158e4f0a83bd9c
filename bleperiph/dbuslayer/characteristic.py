"""GATT characteristic object (``org.bluez.GattCharacteristic1``).

Reads and writes are handed to the application's callbacks.  When no callback
is registered the characteristic behaves as plain storage: reads return the
``Value`` property and writes replace it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

import dbus
import dbus.service

from bleperiph.bt_ref.constants import (
    CALLBACK_NOT_REGISTERED,
    GATT_CHARACTERISTIC_INTERFACE,
    INTROSPECT_DESCRIPTOR_STRING,
)
from bleperiph.bt_ref.utils import byteArrayToHexString
from bleperiph.core.errors import CallbackError
from bleperiph.core.log import print_and_log, LOG__DISPATCH
from bleperiph.dbuslayer.descriptor import GattDescriptor1
from bleperiph.dbuslayer.node import GattNode
from bleperiph.dbuslayer.properties import (
    GattCharacteristic1Properties,
    GattDescriptor1Properties,
)

if TYPE_CHECKING:  # pragma: no cover
    from bleperiph.dbuslayer.service import GattService1

__all__ = ["GattCharacteristic1"]


class GattCharacteristic1(GattNode):
    def __init__(self, service: "GattService1", path: str, index: int,
                 properties: GattCharacteristic1Properties):
        super().__init__(service.application(), service, path, index, properties,
                         Service=str(service.path()), Descriptors=[])

    def service(self) -> "GattService1":
        return self._parent

    # Descriptors ---------------------------------------------------------
    def create_descriptor(self, properties: GattDescriptor1Properties) -> GattDescriptor1:
        """Build an unexposed descriptor at ``<char>/desc<N>``."""
        path, index = self._allocate_child_path(INTROSPECT_DESCRIPTOR_STRING)
        return GattDescriptor1(self, path, index, properties)

    def add_descriptor(self, descriptor: GattDescriptor1) -> None:
        self._add_child(descriptor)

    def remove_descriptor(self, descriptor: GattDescriptor1) -> None:
        self._remove_child(descriptor)

    def descriptors(self) -> Dict[str, GattDescriptor1]:
        return dict(self._children)

    def _children_changed(self) -> None:
        self.set_property(GATT_CHARACTERISTIC_INTERFACE, "Descriptors", list(self._children.keys()))

    # Value & notifications -------------------------------------------------
    def value(self) -> bytes:
        return self._props.Value

    def notifying(self) -> bool:
        return self._props.Notifying

    def update_value(self, value: bytes) -> None:
        """Store *value*; subscribers get a PropertiesChanged when notifying."""
        self.set_property(GATT_CHARACTERISTIC_INTERFACE, "Value", bytes(value),
                          notify=self._props.Notifying)

    @dbus.service.method(GATT_CHARACTERISTIC_INTERFACE, in_signature="a{sv}", out_signature="ay")
    def ReadValue(self, options):
        print_and_log(f"[*] ReadValue {self._path}", LOG__DISPATCH)
        try:
            value = self._app.handle_read(self.service().uuid(), self.uuid())
        except CallbackError as e:
            if e.code != CALLBACK_NOT_REGISTERED:
                raise e.to_dbus_error() from e
            value = self._props.Value
        return self._read_reply(value, options)

    @dbus.service.method(GATT_CHARACTERISTIC_INTERFACE, in_signature="aya{sv}", out_signature="")
    def WriteValue(self, value, options):
        data = bytes(value)
        print_and_log(f"[*] WriteValue {self._path}: {byteArrayToHexString(data)}", LOG__DISPATCH)
        try:
            self._app.handle_write(self.service().uuid(), self.uuid(), data)
        except CallbackError as e:
            if e.code != CALLBACK_NOT_REGISTERED:
                raise e.to_dbus_error() from e
            self.update_value(data)

    @dbus.service.method(GATT_CHARACTERISTIC_INTERFACE, in_signature="", out_signature="")
    def StartNotify(self):
        if self._props.Notifying:
            return
        self.set_property(GATT_CHARACTERISTIC_INTERFACE, "Notifying", True)
        print_and_log(f"[+] Notifications enabled on {self._path}", LOG__DISPATCH)

    @dbus.service.method(GATT_CHARACTERISTIC_INTERFACE, in_signature="", out_signature="")
    def StopNotify(self):
        if not self._props.Notifying:
            return
        self.set_property(GATT_CHARACTERISTIC_INTERFACE, "Notifying", False)
        print_and_log(f"[*] Notifications disabled on {self._path}", LOG__DISPATCH)
