"""
Redfish Firmware Update Module

Firmware-update orchestration against Redfish management controllers:
inventory resolution, version gating and authenticated multipart push.

All device calls go through RedfishAdapter for:
- Per-host session handling and request serialization
- Command logging
- Consistent error handling
"""

__version__ = "1.0.0"

from .adapter import RedfishAdapter
from .operations import FirmwareOperations
from .resource import FirmwareResource
from .inventory import InventoryResolver
from .gate import VersionGate
from .upload import UploadSession
from .outcome import OutcomeRecorder
from .models import (
    FirmwareRecord,
    FirmwareInventory,
    UpdateRequest,
    UpdateOutcome,
)
from .errors import (
    RedfishFirmwareError,
    FetchError,
    ResolutionGap,
    LocalIOError,
    AuthError,
    UploadError,
    RedfishErrorCodes,
    map_redfish_error,
    get_retry_guidance,
)

__all__ = [
    "RedfishAdapter",
    "FirmwareOperations",
    "FirmwareResource",
    "InventoryResolver",
    "VersionGate",
    "UploadSession",
    "OutcomeRecorder",
    "FirmwareRecord",
    "FirmwareInventory",
    "UpdateRequest",
    "UpdateOutcome",
    "RedfishFirmwareError",
    "FetchError",
    "ResolutionGap",
    "LocalIOError",
    "AuthError",
    "UploadError",
    "RedfishErrorCodes",
    "map_redfish_error",
    "get_retry_guidance",
]
