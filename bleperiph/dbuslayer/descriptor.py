"""GATT descriptor object (``org.bluez.GattDescriptor1``)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import dbus
import dbus.service

from bleperiph.bt_ref.constants import CALLBACK_NOT_REGISTERED, GATT_DESCRIPTOR_INTERFACE
from bleperiph.bt_ref.utils import byteArrayToHexString
from bleperiph.core.errors import CallbackError
from bleperiph.core.log import print_and_log, LOG__DISPATCH
from bleperiph.dbuslayer.node import GattNode
from bleperiph.dbuslayer.properties import GattDescriptor1Properties

if TYPE_CHECKING:  # pragma: no cover
    from bleperiph.dbuslayer.characteristic import GattCharacteristic1

__all__ = ["GattDescriptor1"]


class GattDescriptor1(GattNode):
    def __init__(self, characteristic: "GattCharacteristic1", path: str, index: int,
                 properties: GattDescriptor1Properties):
        super().__init__(characteristic.application(), characteristic, path, index, properties,
                         Characteristic=path.rsplit("/", 1)[0])

    def characteristic(self) -> "GattCharacteristic1":
        return self._parent

    def value(self) -> bytes:
        return self._props.Value

    def update_value(self, value: bytes) -> None:
        self.set_property(GATT_DESCRIPTOR_INTERFACE, "Value", bytes(value))

    def _children_changed(self) -> None:
        pass

    def _uuids(self):
        char = self.characteristic()
        return char.service().uuid(), char.uuid(), self.uuid()

    @dbus.service.method(GATT_DESCRIPTOR_INTERFACE, in_signature="a{sv}", out_signature="ay")
    def ReadValue(self, options):
        service_uuid, char_uuid, desc_uuid = self._uuids()
        print_and_log(f"[*] ReadValue {self._path}", LOG__DISPATCH)
        try:
            value = self._app.handle_descriptor_read(service_uuid, char_uuid, desc_uuid)
        except CallbackError as e:
            if e.code != CALLBACK_NOT_REGISTERED:
                raise e.to_dbus_error() from e
            value = self._props.Value
        return self._read_reply(value, options)

    @dbus.service.method(GATT_DESCRIPTOR_INTERFACE, in_signature="aya{sv}", out_signature="")
    def WriteValue(self, value, options):
        service_uuid, char_uuid, desc_uuid = self._uuids()
        data = bytes(value)
        print_and_log(f"[*] WriteValue {self._path}: {byteArrayToHexString(data)}", LOG__DISPATCH)
        try:
            self._app.handle_descriptor_write(service_uuid, char_uuid, desc_uuid, data)
        except CallbackError as e:
            if e.code != CALLBACK_NOT_REGISTERED:
                raise e.to_dbus_error() from e
            self.update_value(data)
