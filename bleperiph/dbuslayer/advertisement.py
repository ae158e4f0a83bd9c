"""LE advertisement object handed to ``LEAdvertisingManager1``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

import dbus
import dbus.service

from bleperiph.bt_ref.constants import ADVERTISEMENT_INTERFACE
from bleperiph.core.log import print_and_log, LOG__ADVERTISING
from bleperiph.dbuslayer.properties import LEAdvertisement1Properties, PropertyStruct, PropertyTable

if TYPE_CHECKING:  # pragma: no cover
    from bleperiph.dbuslayer.application import Application

__all__ = ["LEAdvertisement1"]


class LEAdvertisement1(PropertyTable):
    def __init__(self, app: "Application", path: str, device_path: str,
                 properties: LEAdvertisement1Properties):
        super().__init__(path)
        self._app = app
        self._device_path = dbus.ObjectPath(device_path)
        self._props = properties

    def application(self) -> "Application":
        return self._app

    def device_path(self) -> dbus.ObjectPath:
        """Adapter object the advertisement was registered with."""
        return self._device_path

    def interface(self) -> str:
        return ADVERTISEMENT_INTERFACE

    def properties(self) -> Dict[str, PropertyStruct]:
        return {ADVERTISEMENT_INTERFACE: self._props}

    @dbus.service.method(ADVERTISEMENT_INTERFACE, in_signature="", out_signature="")
    def Release(self):
        print_and_log(f"[*] Advertisement {self._path} released", LOG__ADVERTISING)
