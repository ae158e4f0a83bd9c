"""Core error classes for bleperiph."""

from __future__ import annotations

from typing import Dict, Optional

import dbus.exceptions

from bleperiph.bt_ref.constants import (
    CALLBACK_FUNCTION_ERROR,
    CALLBACK_NOT_REGISTERED,
    RESULT_ERR,
    RESULT_ERR_ACCESS_DENIED,
    RESULT_ERR_ACTION_IN_PROGRESS,
    RESULT_ERR_BAD_ARGS,
    RESULT_ERR_CONFIG,
    RESULT_ERR_EXPORT,
    RESULT_ERR_METHOD_CALL_FAIL,
    RESULT_ERR_NAME_TAKEN,
    RESULT_ERR_NO_REPLY,
    RESULT_ERR_NOT_FOUND,
    RESULT_ERR_NOT_SUPPORTED,
    RESULT_ERR_UNKNOWN_OBJECT,
    RESULT_ERR_UNKNOWN_SERVCE,
    RESULT_ERR_WRONG_STATE,
)
from bleperiph.bt_ref import exceptions as _faults
from bleperiph.core import log as _core_log

# Map D-Bus error names to result codes
DBUS_ERROR_MAP: Dict[str, int] = {
    "org.freedesktop.DBus.Error.AccessDenied": RESULT_ERR_ACCESS_DENIED,
    "org.freedesktop.DBus.Error.InvalidArgs": RESULT_ERR_BAD_ARGS,
    "org.freedesktop.DBus.Error.NoReply": RESULT_ERR_NO_REPLY,
    "org.freedesktop.DBus.Error.ServiceUnknown": RESULT_ERR_UNKNOWN_SERVCE,
    "org.freedesktop.DBus.Error.UnknownObject": RESULT_ERR_UNKNOWN_OBJECT,
    "org.freedesktop.DBus.Error.UnknownMethod": RESULT_ERR_METHOD_CALL_FAIL,
    "org.freedesktop.DBus.Error.Failed": RESULT_ERR,
    "org.bluez.Error.NotSupported": RESULT_ERR_NOT_SUPPORTED,
    "org.bluez.Error.NotPermitted": RESULT_ERR_ACCESS_DENIED,
    "org.bluez.Error.InvalidArguments": RESULT_ERR_BAD_ARGS,
    "org.bluez.Error.InvalidLength": RESULT_ERR_BAD_ARGS,
    "org.bluez.Error.InvalidOffset": RESULT_ERR_BAD_ARGS,
    "org.bluez.Error.AlreadyExists": RESULT_ERR_WRONG_STATE,
    "org.bluez.Error.DoesNotExist": RESULT_ERR_NOT_FOUND,
    "org.bluez.Error.InProgress": RESULT_ERR_ACTION_IN_PROGRESS,
    "org.bluez.Error.Failed": RESULT_ERR,
}


class PeripheralError(Exception):
    """Base exception for every failure this package reports.

    The ``.code`` attribute carries one of the RESULT_* values so callers can
    branch on the category without string matching.
    """

    def __init__(self, message: str, code: int = RESULT_ERR):
        super().__init__(message)
        self.code = code
        self.message = message


class ConfigurationError(PeripheralError):
    """Raised when required configuration is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, RESULT_ERR_CONFIG)


class ExportError(PeripheralError):
    """Raised when an object cannot be exported on the bus."""

    def __init__(self, path: str, reason: Optional[str] = None):
        msg = f"Failed to export object {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, RESULT_ERR_EXPORT)
        self.path = path
        self.reason = reason


class NotFoundError(PeripheralError):
    """Raised when a path is not present in the object directory."""

    def __init__(self, path: str):
        super().__init__(f"Object {path} not found", RESULT_ERR_NOT_FOUND)
        self.path = path


class NameTakenError(PeripheralError):
    """Raised when the configured bus name cannot be owned."""

    def __init__(self, name: str, reply: Optional[int] = None):
        msg = f"Bus name {name} is owned by another connection"
        if reply is not None:
            msg += f" (reply {reply})"
        super().__init__(msg, RESULT_ERR_NAME_TAKEN)
        self.name = name
        self.reply = reply


class AdvertisingError(PeripheralError):
    """Raised when BlueZ rejects an advertisement (un)registration."""

    def __init__(self, operation: str, reason: str, code: int = RESULT_ERR):
        super().__init__(f"{operation} failed: {reason}", code)
        self.operation = operation
        self.reason = reason


class RegistrationError(PeripheralError):
    """Raised when BlueZ rejects the GATT application (un)registration."""

    def __init__(self, operation: str, reason: str, code: int = RESULT_ERR):
        super().__init__(f"{operation} failed: {reason}", code)
        self.operation = operation
        self.reason = reason


class CallbackError(PeripheralError):
    """Error returned by the dispatch layer when a user callback is missing or fails.

    Codes are limited to CALLBACK_NOT_REGISTERED and CALLBACK_FUNCTION_ERROR.
    """

    def __init__(self, code: int, message: str):
        super().__init__(message, code)

    def to_dbus_error(self) -> dbus.exceptions.DBusException:
        """Translate into the fault sent back to BlueZ."""
        if self.code == CALLBACK_NOT_REGISTERED:
            return _faults.NotSupportedException(self.message)
        return _faults.FailedException(self.message)


def map_dbus_error(exc: dbus.exceptions.DBusException) -> int:
    """Return the RESULT_* code matching a D-Bus error reply."""
    name = exc.get_dbus_name() or ""
    code = DBUS_ERROR_MAP.get(name, RESULT_ERR)
    _core_log.logging__debug_log(f"[PeripheralError] code={code} name={name} msg={exc.get_dbus_message()}")
    return code


__all__ = [
    "PeripheralError",
    "ConfigurationError",
    "ExportError",
    "NotFoundError",
    "NameTakenError",
    "AdvertisingError",
    "RegistrationError",
    "CallbackError",
    "CALLBACK_NOT_REGISTERED",
    "CALLBACK_FUNCTION_ERROR",
    "DBUS_ERROR_MAP",
    "map_dbus_error",
]
