"""
D-Bus layer for bleperiph.
Exported objects that make up a BlueZ GATT peripheral application.
"""

from .application import Application
from .advertisement import LEAdvertisement1
from .characteristic import GattCharacteristic1
from .descriptor import GattDescriptor1
from .object_manager import ObjectManager
from .properties import (
    GattCharacteristic1Properties,
    GattDescriptor1Properties,
    GattService1Properties,
    LEAdvertisement1Properties,
    PropertyTable,
)
from .service import GattService1

__all__ = [
    "Application",
    "LEAdvertisement1",
    "GattService1",
    "GattCharacteristic1",
    "GattDescriptor1",
    "ObjectManager",
    "PropertyTable",
    "GattService1Properties",
    "GattCharacteristic1Properties",
    "GattDescriptor1Properties",
    "LEAdvertisement1Properties",
]
