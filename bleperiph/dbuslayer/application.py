"""GATT peripheral application.

The :class:`Application` owns the service tree published under one root path
and keeps three views of it consistent: the objects exported on the bus, the
ObjectManager directory BlueZ reads through ``GetManagedObjects``, and the
introspection XML served from the root.  It also forwards value reads/writes
coming from BlueZ to the user callbacks and manages the LE advertisement.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

import dbus
import dbus.exceptions
from dbus.bus import (
    NAME_FLAG_DO_NOT_QUEUE,
    NAME_FLAG_REPLACE_EXISTING,
    REQUEST_NAME_REPLY_ALREADY_OWNER,
    REQUEST_NAME_REPLY_PRIMARY_OWNER,
)

from bleperiph.bt_ref.constants import (
    ADVERTISEMENT_TYPE,
    ADVERTISING_MANAGER_INTERFACE,
    BLUEZ_NAMESPACE,
    BLUEZ_SERVICE_NAME,
    CALLBACK_FUNCTION_ERROR,
    CALLBACK_NOT_REGISTERED,
    GATT_MANAGER_INTERFACE,
    INTROSPECT_SERVICE_STRING,
)
from bleperiph.bt_ref.utils import generate_uuid
from bleperiph.core.config import ApplicationConfig
from bleperiph.core.errors import (
    AdvertisingError,
    CallbackError,
    ConfigurationError,
    ExportError,
    NameTakenError,
    RegistrationError,
    map_dbus_error,
)
from bleperiph.core.log import print_and_log, LOG__ADVERTISING, LOG__DEBUG, LOG__GENERAL
from bleperiph.dbuslayer.advertisement import LEAdvertisement1
from bleperiph.dbuslayer.introspection import TreeExporter
from bleperiph.dbuslayer.node import GattNode
from bleperiph.dbuslayer.object_manager import ObjectManager
from bleperiph.dbuslayer.properties import GattService1Properties, LEAdvertisement1Properties
from bleperiph.dbuslayer.service import GattService1

__all__ = ["Application"]

_NO_CALLBACK = "No callback registered."


class Application:
    """Lifecycle manager for one GATT application."""

    def __init__(self, config: ApplicationConfig):
        if not config.object_name:
            raise ConfigurationError("object_name is required")
        if not config.object_path:
            raise ConfigurationError("object_path is required")

        self.config = config
        self._bus = config.bus if config.bus is not None else dbus.SystemBus()
        self._path = dbus.ObjectPath(config.object_path)

        # Guards the service map, child indices and the advertisement slot
        self.lock = threading.RLock()

        self._services: Dict[str, GattService1] = {}
        self._service_index = 0
        self._advertisement: Optional[LEAdvertisement1] = None

        self._object_manager = ObjectManager(config.object_path)
        self._tree = TreeExporter(config.object_path)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def path(self) -> dbus.ObjectPath:
        return self._path

    def name(self) -> str:
        return self.config.object_name

    def bus(self):
        return self._bus

    def object_manager(self) -> ObjectManager:
        return self._object_manager

    def services(self) -> Dict[str, GattService1]:
        with self.lock:
            return dict(self._services)

    def advertisement(self) -> Optional[LEAdvertisement1]:
        return self._advertisement

    def generate_uuid(self, value: str) -> str:
        return generate_uuid(value, self.config.uuid_base, self.config.uuid_suffix)

    # ------------------------------------------------------------------
    # Tree management
    # ------------------------------------------------------------------
    def create_service(self, properties: GattService1Properties, advertised: bool = False) -> GattService1:
        """Allocate ``<root>/service<N>`` and build an unexposed service there."""
        with self.lock:
            self._service_index += 1
            index = self._service_index
        prefix = "" if self._path == "/" else str(self._path)
        path = f"{prefix}/{INTROSPECT_SERVICE_STRING}{index}"
        return GattService1(self, path, index, properties, advertised=advertised)

    def add_service(self, service: GattService1) -> None:
        """Export *service* with its subtree and announce it to BlueZ."""
        if service.application() is not self:
            raise ValueError(f"{service.path()} belongs to another application")
        with self.lock:
            if str(service.path()) in self._services:
                return
            self._export_subtree(service)
            self._services[str(service.path())] = service
            self.export_tree()
            self._register_subtree(service)
        print_and_log(f"[+] Service {service.uuid()} added at {service.path()}", LOG__DEBUG)

    def remove_service(self, service: GattService1) -> None:
        """Withdraw *service* and everything below it; unknown services are ignored."""
        with self.lock:
            if self._services.pop(str(service.path()), None) is None:
                return
            self._withdraw_subtree(service)
            self.export_tree()
        print_and_log(f"[*] Service {service.uuid()} removed from {service.path()}", LOG__DEBUG)

    def export_tree(self) -> str:
        """Rebuild the root introspection from the registered paths and publish it."""
        with self.lock:
            paths = [
                str(node.path())
                for service in self._services.values()
                for node in service.walk()
            ]
            xml = self._tree.render(paths)
            self._object_manager.set_introspection(xml)
        return xml

    def _export_subtree(self, root: GattNode) -> None:
        exported: List[GattNode] = []
        try:
            for node in root.walk():
                node.expose(self._bus)
                exported.append(node)
        except ExportError:
            for node in reversed(exported):
                node.unexpose()
            raise

    def _register_subtree(self, root: GattNode) -> None:
        for node in root.walk():
            self._object_manager.add_object(str(node.path()), node.properties())

    def _withdraw_subtree(self, root: GattNode) -> None:
        for node in reversed(list(root.walk())):
            if self._object_manager.get_object(str(node.path())) is not None:
                self._object_manager.remove_object(str(node.path()))
            node.unexpose()

    # ------------------------------------------------------------------
    # Dispatch of BlueZ value requests to the user callbacks
    # ------------------------------------------------------------------
    def _invoke(self, callback, *args):
        if callback is None:
            raise CallbackError(CALLBACK_NOT_REGISTERED, _NO_CALLBACK)
        try:
            return callback(self, *args)
        except Exception as e:
            raise CallbackError(CALLBACK_FUNCTION_ERROR, str(e)) from e

    def handle_read(self, service_uuid: str, char_uuid: str) -> bytes:
        return self._invoke(self.config.read_func, service_uuid, char_uuid)

    def handle_write(self, service_uuid: str, char_uuid: str, value: bytes) -> None:
        self._invoke(self.config.write_func, service_uuid, char_uuid, value)

    def handle_descriptor_read(self, service_uuid: str, char_uuid: str, desc_uuid: str) -> bytes:
        return self._invoke(self.config.desc_read_func, service_uuid, char_uuid, desc_uuid)

    def handle_descriptor_write(self, service_uuid: str, char_uuid: str, desc_uuid: str,
                                value: bytes) -> None:
        self._invoke(self.config.desc_write_func, service_uuid, char_uuid, desc_uuid, value)

    # ------------------------------------------------------------------
    # Calls into BlueZ
    # ------------------------------------------------------------------
    def _bluez_interface(self, object_path: str, interface: str) -> dbus.Interface:
        return dbus.Interface(self._bus.get_object(BLUEZ_SERVICE_NAME, object_path), interface)

    def _call_bluez(self, object_path: str, interface: str, member: str, *args):
        """Call *member* on a BlueZ object and return the error reply, if any.

        The call goes out with reply/error handlers and the default GLib
        context is iterated until one of them fires.  BlueZ calls back into
        this connection (``GetManagedObjects``, advertisement properties)
        before it answers Register*, and those calls have to be dispatched
        while we wait.  Must not be called with ``self.lock`` held.
        """
        outcome = {}

        def _reply(*_result):
            outcome["error"] = None

        def _error(error):
            outcome["error"] = error

        try:
            method = getattr(self._bluez_interface(object_path, interface), member)
            method(*args, reply_handler=_reply, error_handler=_error)
        except dbus.exceptions.DBusException as e:
            return e

        if "error" not in outcome:
            from gi.repository import GLib

            context = GLib.MainContext.default()
            while "error" not in outcome:
                context.iteration(True)
        return outcome["error"]

    # ------------------------------------------------------------------
    # Advertising
    # ------------------------------------------------------------------
    def start_advertising(self, device_name: str) -> None:
        """Publish an LE advertisement listing the advertised services' UUIDs."""
        with self.lock:
            if self._advertisement is not None:
                return

            device_path = BLUEZ_NAMESPACE + device_name
            service_uuids = [s.uuid() for s in self._services.values() if s.advertised()]
            props = LEAdvertisement1Properties(
                Type=ADVERTISEMENT_TYPE,
                LocalName=self.config.local_name,
                ServiceUUIDs=service_uuids,
                Duration=self.config.advertisement_duration,
                Timeout=self.config.advertisement_timeout,
            )
            advertisement = LEAdvertisement1(self, self.config.advertisement_path, device_path, props)
            advertisement.expose(self._bus)
            self._advertisement = advertisement

        failure = self._call_bluez(
            device_path, ADVERTISING_MANAGER_INTERFACE, "RegisterAdvertisement",
            advertisement.path(), dbus.Dictionary({}, signature="sv"),
        )
        if failure is not None:
            print_and_log(f"[-] RegisterAdvertisement failed: {failure}", LOG__ADVERTISING)
            raise AdvertisingError("RegisterAdvertisement", str(failure), map_dbus_error(failure))
        print_and_log(
            f"[+] Advertising {service_uuids} on {device_name} as {self.config.local_name}",
            LOG__ADVERTISING,
        )

    def stop_advertising(self) -> None:
        """Unregister the advertisement; local state is cleared even if BlueZ refuses."""
        with self.lock:
            advertisement = self._advertisement
            if advertisement is None:
                return
            self._advertisement = None
        failure = self._call_bluez(
            advertisement.device_path(), ADVERTISING_MANAGER_INTERFACE, "UnregisterAdvertisement",
            advertisement.path(),
        )
        advertisement.unexpose()
        if failure is not None:
            print_and_log(f"[-] UnregisterAdvertisement failed: {failure}", LOG__ADVERTISING)
            raise AdvertisingError("UnregisterAdvertisement", str(failure), map_dbus_error(failure))
        print_and_log("[+] Advertising stopped", LOG__ADVERTISING)

    # ------------------------------------------------------------------
    # Bus presence
    # ------------------------------------------------------------------
    def expose(self) -> None:
        """Own the bus name, export the ObjectManager at the root and publish the tree."""
        reply = self._bus.request_name(
            self.config.object_name, NAME_FLAG_REPLACE_EXISTING | NAME_FLAG_DO_NOT_QUEUE
        )
        if reply not in (REQUEST_NAME_REPLY_PRIMARY_OWNER, REQUEST_NAME_REPLY_ALREADY_OWNER):
            raise NameTakenError(self.config.object_name, reply)
        self._object_manager.expose(self._bus)
        self.export_tree()
        print_and_log(f"[+] Application {self.config.object_name} exposed at {self._path}", LOG__GENERAL)

    def run(self) -> None:
        self.expose()

    def register_application(self, adapter: str) -> None:
        """Hand the tree to ``GattManager1`` on *adapter*."""
        failure = self._call_bluez(
            BLUEZ_NAMESPACE + adapter, GATT_MANAGER_INTERFACE, "RegisterApplication",
            self._path, dbus.Dictionary({}, signature="sv"),
        )
        if failure is not None:
            raise RegistrationError("RegisterApplication", str(failure), map_dbus_error(failure))
        print_and_log(f"[+] Application registered with {adapter}", LOG__GENERAL)

    def unregister_application(self, adapter: str) -> None:
        failure = self._call_bluez(
            BLUEZ_NAMESPACE + adapter, GATT_MANAGER_INTERFACE, "UnregisterApplication", self._path,
        )
        if failure is not None:
            raise RegistrationError("UnregisterApplication", str(failure), map_dbus_error(failure))
        print_and_log(f"[+] Application unregistered from {adapter}", LOG__GENERAL)


    def shutdown(self) -> None:
        """Stop advertising, remove every service and drop the root object."""
        failure = None
        try:
            self.stop_advertising()
        except AdvertisingError as e:
            failure = e
        for service in list(self.services().values()):
            self.remove_service(service)
        self._object_manager.unexpose()
        print_and_log("[*] Application shut down", LOG__GENERAL)
        if failure is not None:
            raise failure
