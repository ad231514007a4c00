"""
link_dispenser package initializer.
"""

from . import manager
from . import storage
from .errors import InvalidInput, NotFound, StorageFailure

__all__ = ["manager", "storage", "InvalidInput", "NotFound", "StorageFailure"]
