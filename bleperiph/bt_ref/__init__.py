"""
Bluetooth reference data and constants.
"""

from . import constants
from . import exceptions
from . import utils

__all__ = ["constants", "exceptions", "utils"]
