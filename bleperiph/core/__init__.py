"""
Core package initialisation for bleperiph.

Kept lightweight: only the error classes are re-exported here.
"""

from bleperiph.core.errors import (
    PeripheralError,
    ConfigurationError,
    ExportError,
    NotFoundError,
    NameTakenError,
    AdvertisingError,
    RegistrationError,
    CallbackError,
)

__all__ = [
    "PeripheralError",
    "ConfigurationError",
    "ExportError",
    "NotFoundError",
    "NameTakenError",
    "AdvertisingError",
    "RegistrationError",
    "CallbackError",
]
