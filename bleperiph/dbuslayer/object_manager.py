"""ObjectManager exported at the application root.

BlueZ calls ``GetManagedObjects`` once the application is registered and again
after every ``InterfacesAdded``/``InterfacesRemoved`` signal, so the entry map
here must always match the set of exported objects.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional

import dbus
import dbus.service

from bleperiph.bt_ref.constants import DBUS_OM_IFACE, INTROSPECT_INTERFACE
from bleperiph.core.errors import ExportError, NotFoundError
from bleperiph.core.log import print_and_log, LOG__DEBUG
from bleperiph.dbuslayer.introspection import TreeExporter

__all__ = ["ObjectManager"]


class ObjectManager(dbus.service.Object):
    """Directory of ``path -> {interface -> properties}`` for the whole tree."""

    def __init__(self, path: str):
        super().__init__()
        self._path = dbus.ObjectPath(path)
        self._objects: Dict[str, Dict[str, object]] = {}
        self._lock = threading.Lock()
        self._exposed = False
        self._introspection = TreeExporter(str(path)).render([])

    def path(self) -> dbus.ObjectPath:
        return self._path

    @property
    def exposed(self) -> bool:
        return self._exposed

    def expose(self, connection) -> None:
        if self._exposed:
            return
        try:
            self.add_to_connection(connection, self._path)
        except (KeyError, ValueError, RuntimeError, dbus.exceptions.DBusException) as e:
            raise ExportError(str(self._path), str(e))
        self._exposed = True
        print_and_log(f"[+] ObjectManager exported at {self._path}", LOG__DEBUG)

    def unexpose(self) -> None:
        if not self._exposed:
            return
        self._exposed = False
        self.remove_from_connection()

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------
    def add_object(self, path: str, interfaces: Dict[str, object]) -> None:
        """Record *path* and announce it with InterfacesAdded."""
        path = str(path)
        with self._lock:
            self._objects[path] = dict(interfaces)
        self.InterfacesAdded(dbus.ObjectPath(path), self._serialize(interfaces))

    def remove_object(self, path: str) -> None:
        """Drop *path* and announce it with InterfacesRemoved."""
        path = str(path)
        with self._lock:
            if path not in self._objects:
                raise NotFoundError(path)
            interfaces = self._objects.pop(path)
        self.InterfacesRemoved(
            dbus.ObjectPath(path), dbus.Array(list(interfaces.keys()), signature="s")
        )

    def get_object(self, path: str) -> Optional[Dict[str, object]]:
        with self._lock:
            entry = self._objects.get(str(path))
            return dict(entry) if entry is not None else None

    def managed_objects(self) -> Dict[str, Dict[str, object]]:
        """Snapshot of every entry (interface maps hold the live structs)."""
        with self._lock:
            return {path: dict(ifaces) for path, ifaces in self._objects.items()}

    @staticmethod
    def _serialize(interfaces: Dict[str, object]) -> dbus.Dictionary:
        return dbus.Dictionary(
            {iface: props.to_dbus() for iface, props in interfaces.items()},
            signature="sa{sv}",
        )

    # ------------------------------------------------------------------
    # Introspection published by the application
    # ------------------------------------------------------------------
    def set_introspection(self, xml: str) -> None:
        self._introspection = xml

    def introspection(self) -> str:
        return self._introspection

    # ------------------------------------------------------------------
    # D-Bus surface
    # ------------------------------------------------------------------
    @dbus.service.method(DBUS_OM_IFACE, in_signature="", out_signature="a{oa{sa{sv}}}")
    def GetManagedObjects(self):
        snapshot = self.managed_objects()
        print_and_log(f"[*] GetManagedObjects: {len(snapshot)} objects", LOG__DEBUG)
        return dbus.Dictionary(
            {dbus.ObjectPath(path): self._serialize(ifaces) for path, ifaces in snapshot.items()},
            signature="oa{sa{sv}}",
        )

    @dbus.service.signal(DBUS_OM_IFACE, signature="oa{sa{sv}}")
    def InterfacesAdded(self, object_path, interfaces):
        pass

    @dbus.service.signal(DBUS_OM_IFACE, signature="oas")
    def InterfacesRemoved(self, object_path, interfaces):
        pass

    @dbus.service.method(INTROSPECT_INTERFACE, in_signature="", out_signature="s",
                         path_keyword="object_path", connection_keyword="connection")
    def Introspect(self, object_path, connection):
        return self._introspection
