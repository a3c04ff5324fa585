"""
Dell iDRAC support for radfish

IdracClient talks Redfish to the iDRAC; IdracAdapter exposes it through the
canonical radfish interface. Importing this package registers the adapter as
"dell" and "idrac".
"""

from .adapter import IdracAdapter
from .client import IdracClient
from .errors import IdracError

__all__ = [
    "IdracAdapter",
    "IdracClient",
    "IdracError",
]
