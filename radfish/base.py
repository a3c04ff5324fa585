"""
Base class for vendor adapters.

Holds the per-instance state every adapter needs: connection parameters,
option lookup against Settings, a logger whose level follows the instance's
verbosity, and the compute-once cache for identity fields.
"""

import logging
import threading
from typing import Any, Callable, Dict, Tuple, Type

from .config import settings


class BaseAdapter:
    """
    Common plumbing for vendor adapters.

    Subclasses set ``vendor_name`` and ``vendor_errors`` (the exception types
    their vendor client raises, consumed by the error translator).
    """

    vendor_name = "generic"
    vendor_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self, host: str, username: str, password: str, **options):
        self.host = host
        self.username = username
        self.password = password
        self.options = options
        self.logger = logging.getLogger(f"radfish.{self.vendor_name}.{host}")
        self._verbosity = 0
        self._identity: Dict[str, Any] = {}
        self._identity_lock = threading.Lock()
        self.verbosity = options.get("verbosity", 0)

    @property
    def vendor(self) -> str:
        return self.vendor_name

    @property
    def verbosity(self) -> int:
        return self._verbosity

    @verbosity.setter
    def verbosity(self, value: int):
        self._verbosity = int(value or 0)
        if self._verbosity >= 2:
            self.logger.setLevel(logging.DEBUG)
        elif self._verbosity == 1:
            self.logger.setLevel(logging.INFO)
        else:
            self.logger.setLevel(settings.log_level.upper())

    def debug(self, message: str, level: int = 1):
        """Log ``message`` when the instance verbosity is at least ``level``."""
        if self._verbosity >= level:
            self.logger.log(logging.INFO if level <= 1 else logging.DEBUG, message)

    def option(self, name: str) -> Any:
        """Per-instance option, falling back to the Settings default."""
        value = self.options.get(name)
        return getattr(settings, name) if value is None else value

    def memoized(self, name: str, compute: Callable[[], Any]) -> Any:
        """Return the cached value for ``name``, computing it on first use only."""
        with self._identity_lock:
            if name not in self._identity:
                self._identity[name] = compute()
            return self._identity[name]
