"""
radfish: vendor-neutral BMC management

One canonical interface (power, inventory, storage, virtual media, boot,
jobs, BIOS and BMC settings) on top of vendor-specific BMC clients:
- Power commands can wait for the observed state to converge
- Vendor records come back normalized to snake_case pydantic records
- Vendor failures are translated to a small canonical error taxonomy
"""

__version__ = "0.1.0"

import logging

from .base import BaseAdapter
from .config import Settings, settings
from .errors import (
    BmcConnectionError,
    BusyError,
    ErrorKind,
    GenericOperationError,
    MissingIdentifierError,
    NotFoundError,
    RadfishError,
    TaskTimeoutError,
)
from .power import PowerConvergence, PowerTarget
from .records import ComponentRecord, SystemInfo
from .registry import UnknownVendorError, create_adapter, get_adapter, register_adapter, registered_vendors
from .idrac import IdracAdapter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BaseAdapter",
    "Settings",
    "settings",
    "ErrorKind",
    "RadfishError",
    "BmcConnectionError",
    "BusyError",
    "NotFoundError",
    "TaskTimeoutError",
    "GenericOperationError",
    "MissingIdentifierError",
    "PowerConvergence",
    "PowerTarget",
    "ComponentRecord",
    "SystemInfo",
    "UnknownVendorError",
    "register_adapter",
    "get_adapter",
    "create_adapter",
    "registered_vendors",
    "IdracAdapter",
]
