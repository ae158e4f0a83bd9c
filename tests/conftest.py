"""Shared fixtures: an in-process stand-in for a dbus-python bus connection.

``dbus.service.Object`` only talks to its connection through a handful of
hooks (object-path registration, ``send_message`` for signals and
``list_exported_child_objects`` for introspection).  ``FakeConnection``
implements those plus ``request_name`` and ``get_object`` so outbound BlueZ
calls are recorded instead of sent.
"""

import os
import tempfile

# Keep log files out of the user's data directory
os.environ.setdefault("BLEPERIPH_LOG_DIR", tempfile.mkdtemp(prefix="bleperiph-logs-"))

import pytest  # noqa: E402
from dbus.bus import REQUEST_NAME_REPLY_PRIMARY_OWNER  # noqa: E402

from bleperiph.core.config import ApplicationConfig  # noqa: E402
from bleperiph.dbuslayer.application import Application  # noqa: E402

APP_NAME = "org.example.app"
APP_PATH = "/org/example/app"


class FakeMethod:
    def __init__(self, proxy, member, interface):
        self.proxy = proxy
        self.member = member
        self.interface = interface

    def __call__(self, *args, reply_handler=None, error_handler=None, **kwargs):
        conn = self.proxy.connection
        conn.calls.append((self.proxy.object_path, self.interface, self.member, args))
        failure = conn.failures.get(self.member)
        reply = conn.replies.get(self.member)
        if reply_handler is None:
            conn.blocking_calls.append(self.member)
            if failure is not None:
                raise failure
            return reply

        def complete():
            hook = conn.before_reply.get(self.member)
            if hook is not None:
                hook()
            if failure is not None:
                error_handler(failure)
            else:
                reply_handler()
            return False

        if conn.deferred:
            # answer only once the caller iterates the GLib main context
            from gi.repository import GLib

            GLib.idle_add(complete)
        else:
            complete()


class FakeProxy:
    def __init__(self, connection, bus_name, object_path):
        self.connection = connection
        self.bus_name = bus_name
        self.object_path = str(object_path)

    def get_dbus_method(self, member, dbus_interface=None):
        return FakeMethod(self, member, dbus_interface)


class FakeConnection:
    def __init__(self):
        self.exported = {}
        self.signals = []
        self.calls = []
        self.failures = {}
        self.replies = {}
        self.blocking_calls = []
        self.deferred = False
        self.before_reply = {}
        self.fail_export = set()
        self.name_reply = REQUEST_NAME_REPLY_PRIMARY_OWNER
        self.requested_names = []

    # hooks used by dbus.service.Object
    def _register_object_path(self, path, on_message, on_unregister=None, fallback=False):
        path = str(path)
        if path in self.fail_export:
            raise KeyError(f"Can't register the object-path handler for '{path}'")
        if path in self.exported:
            raise KeyError(f"Can't register the object-path handler for '{path}': there is already a handler")
        self.exported[path] = on_message

    def _unregister_object_path(self, path):
        self.exported.pop(str(path), None)

    def send_message(self, message):
        self.signals.append(message)
        return len(self.signals)

    def list_exported_child_objects(self, path):
        prefix = str(path).rstrip("/") + "/"
        return sorted({p[len(prefix):].split("/")[0] for p in self.exported if p.startswith(prefix)})

    # bus-level calls
    def request_name(self, name, flags=0):
        self.requested_names.append((name, flags))
        return self.name_reply

    def get_object(self, bus_name, object_path, introspect=True):
        return FakeProxy(self, bus_name, object_path)

    # helpers for assertions
    def signals_named(self, member):
        return [m for m in self.signals if m.get_member() == member]

    def calls_named(self, member):
        return [c for c in self.calls if c[2] == member]


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def config(conn):
    return ApplicationConfig(object_name=APP_NAME, object_path=APP_PATH, local_name="Example", bus=conn)


@pytest.fixture
def app(config):
    return Application(config)


@pytest.fixture
def running_app(app):
    app.run()
    return app
