"""
Canonical Error Taxonomy

Maps vendor-specific failure text to semantic error kinds so callers can act
on what went wrong (BMC unreachable, device busy, resource missing, timeout)
without knowing which vendor client raised it.
"""

import functools
from contextlib import contextmanager
from enum import Enum
from typing import Optional, Tuple, Type


class ErrorKind(str, Enum):
    """Semantic error kinds exposed to callers"""

    CONNECTION = "connection"
    BUSY = "busy"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    GENERIC = "generic"


class RadfishError(Exception):
    """Base exception for translated vendor failures"""

    kind = ErrorKind.GENERIC

    def __init__(self, message: str, vendor_message: Optional[str] = None):
        self.message = message
        self.vendor_message = vendor_message
        super().__init__(self.message)


class BmcConnectionError(RadfishError):
    """BMC (or a resource it must reach, e.g. an ISO server) is unreachable"""

    kind = ErrorKind.CONNECTION


class BusyError(RadfishError):
    """Resource is already attached or in use"""

    kind = ErrorKind.BUSY


class NotFoundError(RadfishError):
    """Target resource does not exist on the BMC"""

    kind = ErrorKind.NOT_FOUND


class TaskTimeoutError(RadfishError):
    """Operation did not complete within its timeout"""

    kind = ErrorKind.TIMEOUT


class GenericOperationError(RadfishError):
    """Uncategorized operation failure"""

    kind = ErrorKind.GENERIC


class MissingIdentifierError(ValueError):
    """
    Raised when a controller/volume argument is missing or carries no usable
    identifier. This is a usage error, not a vendor failure, so it is a
    ValueError and never a RadfishError.
    """

    kind = ErrorKind.NOT_FOUND


ERROR_CLASSES = {
    ErrorKind.CONNECTION: BmcConnectionError,
    ErrorKind.BUSY: BusyError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.TIMEOUT: TaskTimeoutError,
    ErrorKind.GENERIC: GenericOperationError,
}

# Evaluated top to bottom, first match wins. Matching is case-sensitive.
CLASSIFICATION_TABLE: Tuple[Tuple[str, ErrorKind], ...] = (
    ("connection refused", ErrorKind.CONNECTION),
    ("unreachable", ErrorKind.CONNECTION),
    ("already attached", ErrorKind.BUSY),
    ("in use", ErrorKind.BUSY),
    ("not found", ErrorKind.NOT_FOUND),
    ("does not exist", ErrorKind.NOT_FOUND),
    ("timeout", ErrorKind.TIMEOUT),
)


def classify_message(message: str) -> ErrorKind:
    """
    Classify vendor failure text into an ErrorKind.

    Args:
        message: Raw message of the vendor-raised failure

    Returns:
        ErrorKind of the first table entry whose substring occurs in the
        message, ErrorKind.GENERIC when nothing matches
    """
    for substring, kind in CLASSIFICATION_TABLE:
        if substring in message:
            return kind
    return ErrorKind.GENERIC


def translate_vendor_error(error: Exception, action: str) -> RadfishError:
    """Build the canonical error for a vendor-raised failure."""
    vendor_message = getattr(error, "message", None) or str(error)
    kind = classify_message(vendor_message)
    return ERROR_CLASSES[kind](f"{action}: {vendor_message}", vendor_message=vendor_message)


@contextmanager
def translate_errors(action: str, vendor_errors: Tuple[Type[BaseException], ...]):
    """
    Translate any failure raised inside the block into a canonical error.

    Canonical errors and MissingIdentifierError pass through untouched.
    Vendor failures are classified by message text; anything else becomes a
    GenericOperationError prefixed with the action name.

    Args:
        action: Human-readable operation name used as message prefix
        vendor_errors: Exception types raised by the vendor client
    """
    try:
        yield
    except (RadfishError, MissingIdentifierError):
        raise
    except vendor_errors as e:
        raise translate_vendor_error(e, action) from e
    except Exception as e:
        raise GenericOperationError(f"{action} failed: {e}", vendor_message=str(e)) from e


def translated(action: str):
    """
    Method decorator running the call under translate_errors().

    The owning instance provides the vendor exception types through its
    ``vendor_errors`` attribute.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            with translate_errors(action, self.vendor_errors):
                return func(self, *args, **kwargs)
        return wrapper
    return decorator
