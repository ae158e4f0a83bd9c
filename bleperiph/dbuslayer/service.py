"""GATT service object (``org.bluez.GattService1``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from bleperiph.bt_ref.constants import GATT_SERVICE_INTERFACE, INTROSPECT_CHARACTERISTIC_STRING
from bleperiph.dbuslayer.characteristic import GattCharacteristic1
from bleperiph.dbuslayer.node import GattNode
from bleperiph.dbuslayer.properties import GattCharacteristic1Properties, GattService1Properties

if TYPE_CHECKING:  # pragma: no cover
    from bleperiph.dbuslayer.application import Application

__all__ = ["GattService1"]


class GattService1(GattNode):
    """A service node; created by :py:meth:`Application.create_service`."""

    def __init__(self, app: "Application", path: str, index: int,
                 properties: GattService1Properties, advertised: bool = False):
        super().__init__(app, None, path, index, properties, Characteristics=[])
        self._advertised = advertised

    def advertised(self) -> bool:
        return self._advertised

    def create_characteristic(self, properties: GattCharacteristic1Properties) -> GattCharacteristic1:
        """Build an unexposed characteristic at ``<service>/char<N>``."""
        path, index = self._allocate_child_path(INTROSPECT_CHARACTERISTIC_STRING)
        return GattCharacteristic1(self, path, index, properties)

    def add_characteristic(self, characteristic: GattCharacteristic1) -> None:
        self._add_child(characteristic)

    def remove_characteristic(self, characteristic: GattCharacteristic1) -> None:
        self._remove_child(characteristic)

    def characteristics(self) -> Dict[str, GattCharacteristic1]:
        return dict(self._children)

    def _children_changed(self) -> None:
        self.set_property(GATT_SERVICE_INTERFACE, "Characteristics", list(self._children.keys()))
