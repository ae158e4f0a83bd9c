"""
Bluetooth utility functions.
"""

import binascii

import dbus

from . import constants

__all__ = [
    "byteArrayToHexString",
    "dbus_to_python",
    "generate_uuid",
    "expand_alias",
    "value_to_bytes",
    "relative_path",
]


def byteArrayToHexString(bytes):
    hex_string = ""
    for byte in bytes:
        hex_byte = "%02X" % byte
        hex_string = hex_string + hex_byte
    return hex_string


def dbus_to_python(data):
    if isinstance(data, dbus.String):
        data = str(data)
    if isinstance(data, dbus.ObjectPath):
        data = str(data)
    elif isinstance(data, dbus.Boolean):
        data = bool(data)
    elif isinstance(data, dbus.Int64):
        data = int(data)
    elif isinstance(data, dbus.Int32):
        data = int(data)
    elif isinstance(data, dbus.Int16):
        data = int(data)
    elif isinstance(data, dbus.UInt16):
        data = int(data)
    elif isinstance(data, dbus.Byte):
        data = int(data)
    elif isinstance(data, dbus.Double):
        data = float(data)
    elif isinstance(data, dbus.Array):
        data = [dbus_to_python(value) for value in data]
    elif isinstance(data, dbus.Dictionary):
        new_data = dict()
        for key in data.keys():
            new_data[dbus_to_python(key)] = dbus_to_python(data[key])
        data = new_data
    return data


def generate_uuid(value: str, base: str = constants.UUID_BASE__BLUETOOTH,
                  suffix: str = constants.UUID_SUFFIX) -> str:
    """Build a 128-bit UUID string from a short value.

    Short forms (4 or 8 characters) already carry their own prefix, so the
    base is dropped for them; anything else is wrapped as
    ``base + value + suffix``.
    """
    if len(value) in (4, 8):
        base = ""
    return base + value + suffix


def expand_alias(value: str) -> str:
    """Widen a 16-bit alias (``"180D"``) to its 32-bit form (``"0000180D"``).

    ``generate_uuid`` keeps 4 and 8 character values without a base, so only
    the 8 character form expands to a well formed 128-bit UUID.
    """
    if len(value) == 4:
        return "0000" + value
    return value


def value_to_bytes(value) -> bytes:
    """Convert a configuration value into raw characteristic bytes.

    ``"hex:0a0b"`` decodes hex, other strings are UTF-8 encoded, lists of ints
    and bytes pass through.
    """
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        if value.startswith("hex:"):
            return binascii.unhexlify(value[4:].replace(" ", ""))
        return value.encode("utf-8")
    if isinstance(value, int):
        return bytes([value])
    return bytes(value)


def relative_path(path: str, root: str) -> str:
    # e.g. /org/example/app/service1/char2 under /org/example/app -> service1/char2
    prefix = "" if root == "/" else root
    if prefix and path.startswith(prefix + "/"):
        return path[len(prefix) + 1:]
    return path.lstrip("/")
