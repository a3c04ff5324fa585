"""
iDRAC client errors.

IdracError is what the iDRAC vendor client raises. Its message is built so
that the canonical translator (radfish.errors) can classify it by text.
"""

from typing import Any, Optional


class IdracError(Exception):
    """Base exception for iDRAC Redfish operations"""

    def __init__(self, message: str, error_code: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(self.message)


def extract_error_message(error_response: Any) -> Optional[str]:
    """
    Pull the human-readable message out of a Redfish error body.

    Args:
        error_response: Parsed error body from iDRAC

    Returns:
        str: message text (MessageId appended when present), None if the body
             carries no message
    """
    if not isinstance(error_response, dict):
        return None

    error_obj = error_response.get("error")
    if not isinstance(error_obj, dict):
        return None

    # Format 1: @Message.ExtendedInfo array
    extended_info = error_obj.get("@Message.ExtendedInfo", [])
    if extended_info and isinstance(extended_info, list) and isinstance(extended_info[0], dict):
        first_error = extended_info[0]
        message = first_error.get("Message", "")
        message_id = first_error.get("MessageId", "").split(".")[-1]  # e.g. "Base.1.0.GeneralError" -> "GeneralError"
        if message:
            return f"{message} ({message_id})" if message_id else message

    # Format 2: Direct error object
    return error_obj.get("message") or None
