"""
Core constants for bleperiph.

D-Bus/BlueZ interface names, well-known paths and result codes, organised by
category.
"""

# D-Bus Core Constants
DBUS_PROPERTIES = "org.freedesktop.DBus.Properties"
DBUS_OM_IFACE = "org.freedesktop.DBus.ObjectManager"
INTROSPECT_INTERFACE = "org.freedesktop.DBus.Introspectable"

# BlueZ Core Constants
ADAPTER_NAME = "hci0"
BLUEZ_SERVICE_NAME = "org.bluez"
BLUEZ_NAMESPACE = "/org/bluez/"

# GATT Interface Constants
GATT_MANAGER_INTERFACE = BLUEZ_SERVICE_NAME + ".GattManager1"
GATT_SERVICE_INTERFACE = BLUEZ_SERVICE_NAME + ".GattService1"
GATT_CHARACTERISTIC_INTERFACE = BLUEZ_SERVICE_NAME + ".GattCharacteristic1"
GATT_DESCRIPTOR_INTERFACE = BLUEZ_SERVICE_NAME + ".GattDescriptor1"

# Advertisement Interface Constants
ADVERTISEMENT_INTERFACE = BLUEZ_SERVICE_NAME + ".LEAdvertisement1"
ADVERTISING_MANAGER_INTERFACE = BLUEZ_SERVICE_NAME + ".LEAdvertisingManager1"

# Fixed advertisement object path; only one advertisement is ever live
ADVERTISEMENT_PATH = "/org/bluez/advertisement/0"
ADVERTISEMENT_TYPE = "peripheral"
ADVERTISEMENT_DURATION = 2
ADVERTISEMENT_TIMEOUT = 60

# Result/Error Codes
RESULT_OK = 0
RESULT_ERR = 1
RESULT_ERR_NOT_SUPPORTED = 3
RESULT_ERR_WRONG_STATE = 5
RESULT_ERR_ACCESS_DENIED = 6
RESULT_EXCEPTION = 7
RESULT_ERR_BAD_ARGS = 8
RESULT_ERR_NOT_FOUND = 9
RESULT_ERR_NO_REPLY = 14
RESULT_ERR_ACTION_IN_PROGRESS = 16
RESULT_ERR_UNKNOWN_SERVCE = 17
RESULT_ERR_UNKNOWN_OBJECT = 18
RESULT_ERR_METHOD_CALL_FAIL = 21
RESULT_ERR_NAME_TAKEN = 27
RESULT_ERR_EXPORT = 28
RESULT_ERR_CONFIG = 29

# Callback dispatch codes (returned to the transport, never remapped)
CALLBACK_NOT_REGISTERED = -1
CALLBACK_FUNCTION_ERROR = -2

# Base UUID Constants
# fixed 128bit UUID [0000]+[xxxx]+[-0000-1000-8000-00805F9B34FB]
UUID_SUFFIX = "-0000-1000-8000-00805F9B34FB"
UUID_BASE__BLUETOOTH = "0000"

# Introspection Constants
INTROSPECT_SERVICE_STRING = "service"
INTROSPECT_CHARACTERISTIC_STRING = "char"
INTROSPECT_DESCRIPTOR_STRING = "desc"

INTROSPECT_DOCTYPE = (
    '<!DOCTYPE node PUBLIC "-//freedesktop//DTD D-BUS Object Introspection 1.0//EN"\n'
    '"http://www.freedesktop.org/standards/dbus/1.0/introspect.dtd">\n'
)

# GATT flag values accepted by BlueZ
GATT__CHARACTERISTIC__FLAGS = [
    "broadcast",
    "read",
    "write-without-response",
    "write",
    "notify",
    "indicate",
    "authenticated-signed-writes",
    "extended-properties",
    "reliable-write",
    "writable-auxiliaries",
    "encrypt-read",
    "encrypt-write",
    "encrypt-authenticated-read",
    "encrypt-authenticated-write",
    "secure-read",
    "secure-write",
    "authorize",
]
GATT__DESCRIPTOR__FLAGS = [
    "read",
    "write",
    "encrypt-read",
    "encrypt-write",
    "encrypt-authenticated-read",
    "encrypt-authenticated-write",
    "secure-read",
    "secure-write",
    "authorize",
]
