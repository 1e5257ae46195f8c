"""Canonical Redfish endpoints and protocol constants used by the firmware executor.

Device-supplied URIs (inventory members, the HTTP push URI, task monitors)
are followed as returned by the device; only the fixed entry points below
are hard-coded.
"""

SERVICE_ROOT = "/redfish/v1/"
UPDATE_SERVICE = "/redfish/v1/UpdateService"
SESSIONS = "/redfish/v1/SessionService/Sessions"

# Multipart push form fields
PART_SESSION_KEY = "sessionKey"
PART_PARAMETERS = "parameters"
PART_FILE = "file"
PART_SIGNATURE = "compsig"

# Control fields sent with every push; fixed by the device protocol
PUSH_PARAMETERS = {
    "UpdateRepository": True,
    "UpdateTarget": True,
    "ETag": "atag",
    "Section": 0,
}
