"""
Redfish Firmware Error Taxonomy

Maps Redfish error payloads to firmware-update error codes and provides
the exception hierarchy raised by the firmware orchestration.
"""

from typing import Optional


class RedfishFirmwareError(Exception):
    """Base exception for Redfish firmware operations"""

    def __init__(self, message: str, error_code: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(self.message)


class FetchError(RedfishFirmwareError):
    """Raised when the firmware inventory collection (or the update service) cannot be fetched"""

    def __init__(self, message: str, uri: str, error_code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, error_code=error_code or "FETCH_FAILED", status_code=status_code)
        self.uri = uri


class ResolutionGap(RedfishFirmwareError):
    """
    Raised for a single inventory member that could not be resolved.

    Never escapes InventoryResolver: the member is dropped and recorded as a gap.
    """

    def __init__(self, member_uri: str, reason: str, status_code: Optional[int] = None):
        message = f"Could not resolve firmware member {member_uri}: {reason}"
        super().__init__(message, error_code="RESOLUTION_GAP", status_code=status_code)
        self.member_uri = member_uri


class LocalIOError(RedfishFirmwareError):
    """Raised when a local firmware image or signature file cannot be opened"""

    def __init__(self, path: str, reason: str, role: str = "firmware image"):
        message = f"Error opening {role} {path}: {reason}"
        super().__init__(message, error_code="LOCAL_IO_ERROR")
        self.path = path
        self.role = role


class AuthError(RedfishFirmwareError):
    """Raised when no usable session token is available"""

    def __init__(self, message: str = "No usable session token", status_code: Optional[int] = None):
        super().__init__(message, error_code="AUTH001", status_code=status_code)


class UploadError(RedfishFirmwareError):
    """Raised on transport failure or non-success response while posting firmware"""

    def __init__(
        self,
        message: str,
        uri: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None
    ):
        super().__init__(message, error_code=error_code or "UPLOAD_FAILED", status_code=status_code)
        self.uri = uri
        self.response_body = response_body


class RedfishErrorCodes:
    """
    Common Redfish error codes seen during firmware updates and their meanings.
    Retry guidance is informational; nothing in this package retries on its own.
    """

    # Firmware update errors
    UPDATE_IN_PROGRESS = {
        "code": "UpdateInProgress",
        "message": "Firmware update already in progress. Only one update can run at a time.",
        "retry": True,
        "wait_seconds": 300,
    }

    INVALID_IMAGE = {
        "code": "InvalidImage",
        "message": "Firmware image is invalid, corrupted, or not signed for this device.",
        "retry": False,
    }

    PAYLOAD_TOO_LARGE = {
        "code": "PayloadTooLarge",
        "message": "Firmware image exceeds the maximum upload size accepted by the device.",
        "retry": False,
    }

    # Authentication errors
    AUTH001 = {
        "code": "AUTH001",
        "message": "Authentication failed. Check the session token or credentials.",
        "retry": False,
    }

    AUTH002 = {
        "code": "AUTH002",
        "message": "Session expired. Re-authenticate and retry.",
        "retry": True,
        "wait_seconds": 5,
    }

    # Resource errors
    RES001 = {
        "code": "RES001",
        "message": "Requested resource not found. Check device firmware and endpoint support.",
        "retry": False,
    }

    # Service state errors
    SERVICE_BUSY = {
        "code": "ServiceTemporarilyUnavailable",
        "message": "Update service is busy or temporarily unavailable.",
        "retry": True,
        "wait_seconds": 60,
    }

    # Timeout errors
    TIMEOUT = {
        "code": "TIMEOUT",
        "message": "Operation timed out. Device may be busy or unresponsive.",
        "retry": True,
        "wait_seconds": 30,
    }


def map_redfish_error(error_response: dict) -> dict:
    """
    Map a Redfish error response to error info with retry guidance.

    Args:
        error_response: Error body from the device (typically carrying @Message.ExtendedInfo)

    Returns:
        dict with keys: code, message, retry, wait_seconds
    """
    error_code = None
    error_message = ""

    # Format 1: @Message.ExtendedInfo array
    if isinstance(error_response, dict):
        error_obj = error_response.get("error")
        extended_info = error_obj.get("@Message.ExtendedInfo", []) if isinstance(error_obj, dict) else []
        if extended_info and isinstance(extended_info, list):
            first_error = extended_info[0]
            error_code = first_error.get("MessageId", "").split(".")[-1]  # e.g., "Update.1.0.UpdateInProgress" -> "UpdateInProgress"
            error_message = first_error.get("Message", "")

        # Format 2: Direct error object
        if not error_code and isinstance(error_obj, dict):
            error_code = error_obj.get("code", "")
            error_message = error_obj.get("message", "")
        elif not error_code and isinstance(error_obj, str):
            error_message = error_obj

    known = find_error_info(error_code)
    if known:
        return known

    # Check message content for known patterns
    error_message_lower = error_message.lower()

    if ("firmware" in error_message_lower or "update" in error_message_lower) and "in progress" in error_message_lower:
        return RedfishErrorCodes.UPDATE_IN_PROGRESS

    if "signature" in error_message_lower or "invalid image" in error_message_lower or "corrupt" in error_message_lower:
        return RedfishErrorCodes.INVALID_IMAGE

    if "too large" in error_message_lower:
        return RedfishErrorCodes.PAYLOAD_TOO_LARGE

    if "session" in error_message_lower and "expired" in error_message_lower:
        return RedfishErrorCodes.AUTH002

    if "authentication" in error_message_lower or "unauthorized" in error_message_lower:
        return RedfishErrorCodes.AUTH001

    if "not found" in error_message_lower or "404" in error_message_lower:
        return RedfishErrorCodes.RES001

    if "timeout" in error_message_lower or "timed out" in error_message_lower:
        return RedfishErrorCodes.TIMEOUT

    # Unknown error - return as-is with conservative retry
    return {
        "code": error_code or "UNKNOWN",
        "message": error_message or "Unknown error occurred",
        "retry": False,
        "wait_seconds": 0,
    }


def find_error_info(error_code: Optional[str]) -> Optional[dict]:
    """Return the RedfishErrorCodes entry for `error_code`, or None when it is not a known code."""
    if not error_code:
        return None
    for attr_name in dir(RedfishErrorCodes):
        if not attr_name.startswith("_"):
            error_info = getattr(RedfishErrorCodes, attr_name)
            if isinstance(error_info, dict) and error_info.get("code") == error_code:
                return error_info
    return None


def get_user_friendly_message(error_code: str) -> str:
    """
    Get user-friendly error message for an error code.

    Args:
        error_code: Error code (e.g., "UpdateInProgress")

    Returns:
        User-friendly error message
    """
    error_info = find_error_info(error_code)
    if error_info:
        return error_info.get("message", "Unknown error")

    return f"Redfish error: {error_code}"


def get_retry_guidance(error_code: Optional[str]) -> Optional[str]:
    """
    Describe whether an operation that failed with `error_code` is worth retrying.

    Returns:
        "<friendly message> Retry in N seconds." for retryable codes,
        "<friendly message> Retrying will not help." for permanent ones,
        None for codes not in RedfishErrorCodes
    """
    error_info = find_error_info(error_code)
    if not error_info:
        return None
    if error_info.get("retry"):
        wait_seconds = error_info.get("wait_seconds", 0)
        when = f"Retry in {wait_seconds} seconds." if wait_seconds else "Retry now."
        return f"{error_info['message']} {when}"
    return f"{error_info['message']} Retrying will not help."
