"""
Vendor adapter registry.

Maps short vendor keys ("dell", "idrac", ...) to adapter classes so callers
can pick an implementation from a vendor string at runtime. Adapters
register themselves when their module is imported.
"""

import logging
from typing import Dict, List, Type

logger = logging.getLogger(__name__)

ADAPTERS: Dict[str, Type] = {}


class UnknownVendorError(KeyError):
    """No adapter registered under the requested vendor key"""

    def __init__(self, vendor: str):
        self.vendor = vendor
        super().__init__(f"No adapter registered for vendor '{vendor}'. Known vendors: {registered_vendors()}")


def register_adapter(vendor: str, adapter_cls: Type):
    """Register (or replace) the adapter class for a vendor key."""
    key = vendor.lower()
    if key in ADAPTERS and ADAPTERS[key] is not adapter_cls:
        logger.debug(f"Replacing adapter for vendor '{key}': {ADAPTERS[key].__name__} -> {adapter_cls.__name__}")
    ADAPTERS[key] = adapter_cls


def get_adapter(vendor: str) -> Type:
    """Look up the adapter class registered for a vendor key (case-insensitive)."""
    try:
        return ADAPTERS[vendor.lower()]
    except KeyError:
        raise UnknownVendorError(vendor) from None


def create_adapter(vendor: str, **kwargs):
    """Instantiate the adapter registered for ``vendor`` with ``kwargs``."""
    return get_adapter(vendor)(**kwargs)


def registered_vendors() -> List[str]:
    return sorted(ADAPTERS)
