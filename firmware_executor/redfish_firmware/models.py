"""
Pydantic models for firmware inventory, update requests and outcomes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FirmwareRecord(BaseModel):
    """Device-reported firmware entry. Never mutated locally."""
    model_config = ConfigDict(frozen=True)

    identifier: str
    name: str
    version: str = ""
    description: str = ""

    @classmethod
    def from_redfish(cls, body: Dict[str, Any], member_uri: str) -> "FirmwareRecord":
        """Build a record from a SoftwareInventory body, falling back to the member URI as identity."""
        return cls(
            identifier=body.get("@odata.id") or member_uri,
            name=body.get("Name") or "",
            version=body.get("Version") or "",
            description=body.get("Description") or "",
        )


class FirmwareInventory(BaseModel):
    """Firmware inventory collection: identifier plus ordered member references."""
    model_config = ConfigDict(frozen=True)

    identifier: str
    members: List[str] = []

    @classmethod
    def from_redfish(cls, body: Dict[str, Any], uri: str) -> "FirmwareInventory":
        members = []
        for member in body.get("Members") or []:
            # Members are normally {"@odata.id": uri}; tolerate bare strings
            if isinstance(member, dict):
                member_uri = member.get("@odata.id", "")
            else:
                member_uri = str(member)
            if member_uri:
                members.append(member_uri)
        return cls(identifier=body.get("@odata.id") or uri, members=members)


class InventorySnapshot(BaseModel):
    """One resolution pass over the inventory, including members that failed to resolve."""
    inventory: FirmwareInventory
    records: List[FirmwareRecord] = []
    gaps: List[str] = []


class UpdateRequest(BaseModel):
    """Caller-supplied firmware update request."""
    model_config = ConfigDict(frozen=True)

    target_name: str = Field(min_length=1)
    target_version: str = Field(min_length=1)
    local_image_path: str = Field(min_length=1)
    local_signature_path: str = ""  # empty = no signature
    apply_to_recovery_set: bool = False

    @property
    def has_signature(self) -> bool:
        return self.local_signature_path != ""


class VersionDecision(BaseModel):
    """Result of comparing a requested (name, version) against resolved inventory."""
    model_config = ConfigDict(frozen=True)

    match: Optional[FirmwareRecord] = None
    needs_update: bool


class UploadResult(BaseModel):
    """Response captured from a successful multipart push."""
    status_code: int
    raw_response: Any = None
    task_reference: str = ""


class UpdateOutcome(BaseModel):
    """Durable record of one firmware orchestration run."""
    model_config = ConfigDict(frozen=True)

    resolved_identifier: str = ""
    task_reference: str = ""
    skipped: bool = False
    unresolved_members: int = 0


class UpdateServiceInfo(BaseModel):
    """Links discovered on the device's UpdateService resource."""
    uri: str
    firmware_inventory_uri: str
    http_push_uri: Optional[str] = None


class SessionInfo(BaseModel):
    """Redfish session issued by SessionService."""
    token: str
    location: Optional[str] = None
    session_id: Optional[str] = None
    username: Optional[str] = None


class FirmwareResourceConfig(BaseModel):
    """
    Caller-facing configuration surface for a managed firmware slot.

    `task_uri` and `id` are outputs written back after apply/read.
    """
    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    local_file: str = Field(min_length=1)
    signature_file: Optional[str] = ""
    update_recovery_set: bool = False
    task_uri: str = ""
    id: str = ""

    def to_request(self) -> UpdateRequest:
        return UpdateRequest(
            target_name=self.name,
            target_version=self.version,
            local_image_path=self.local_file,
            local_signature_path=self.signature_file or "",
            apply_to_recovery_set=self.update_recovery_set,
        )
