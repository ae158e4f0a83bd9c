"""
D-Bus fault types raised back to BlueZ from exported objects.

dbus-python turns any raised ``dbus.DBusException`` into an error reply named
after ``_dbus_error_name``.
"""

import dbus
import dbus.exceptions

__all__ = [
    "FailedException",
    "NotSupportedException",
    "NotPermittedException",
    "InvalidArgsException",
    "InvalidOffsetException",
]


class InvalidArgsException(dbus.exceptions.DBusException):
    _dbus_error_name = "org.freedesktop.DBus.Error.InvalidArgs"


class NotSupportedException(dbus.exceptions.DBusException):
    _dbus_error_name = "org.bluez.Error.NotSupported"


class NotPermittedException(dbus.exceptions.DBusException):
    _dbus_error_name = "org.bluez.Error.NotPermitted"


class FailedException(dbus.exceptions.DBusException):
    _dbus_error_name = "org.bluez.Error.Failed"


class InvalidOffsetException(dbus.exceptions.DBusException):
    _dbus_error_name = "org.bluez.Error.InvalidOffset"
