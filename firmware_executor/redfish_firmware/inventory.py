"""
Firmware inventory resolution.

GET /redfish/v1/UpdateService/FirmwareInventory once, then GET every member
reference for its detail record.
"""

from typing import List

from pydantic import ValidationError

from .adapter import RedfishAdapter
from .errors import AuthError, FetchError, RedfishFirmwareError, ResolutionGap
from .models import FirmwareInventory, FirmwareRecord, InventorySnapshot


class InventoryResolver:
    """Fetches the firmware inventory collection and resolves each member to a FirmwareRecord."""

    def __init__(self, adapter: RedfishAdapter, host: str, auth_token: str):
        """
        Args:
            adapter: RedfishAdapter used for every device call
            host: Device host or IP address
            auth_token: Session token attached to every request
        """
        self.adapter = adapter
        self.host = host
        self.auth_token = auth_token

    def fetch_inventory(self, inventory_uri: str) -> FirmwareInventory:
        """
        Fetch the member-reference list.

        Raises:
            AuthError: If the device rejects the session token
            FetchError: If the collection cannot be fetched
        """
        try:
            body = self.adapter.make_request(
                method='GET',
                host=self.host,
                endpoint=inventory_uri,
                auth_token=self.auth_token,
                operation_name='Get Firmware Inventory'
            )
        except AuthError:
            raise
        except RedfishFirmwareError as e:
            raise FetchError(
                message=f"Error fetching firmware inventory {inventory_uri}: {e.message}",
                uri=inventory_uri,
                error_code=e.error_code,
                status_code=e.status_code
            ) from e

        if not isinstance(body, dict) or '_parse_error' in body:
            raise FetchError(
                message=f"Firmware inventory {inventory_uri} did not return a JSON collection",
                uri=inventory_uri
            )

        if not isinstance(body.get("Members"), list):
            raise FetchError(
                message=f"Firmware inventory {inventory_uri} has no Members list",
                uri=inventory_uri
            )

        try:
            return FirmwareInventory.from_redfish(body, inventory_uri)
        except ValidationError as e:
            raise FetchError(
                message=f"Firmware inventory {inventory_uri} has malformed members: {e.error_count()} field error(s)",
                uri=inventory_uri
            ) from e

    def fetch_member(self, member_uri: str) -> FirmwareRecord:
        """
        Resolve one member reference.

        Raises:
            ResolutionGap: If the member cannot be fetched or parsed
        """
        try:
            body = self.adapter.make_request(
                method='GET',
                host=self.host,
                endpoint=member_uri,
                auth_token=self.auth_token,
                operation_name='Get Firmware Component'
            )
        except RedfishFirmwareError as e:
            raise ResolutionGap(member_uri, e.message, status_code=e.status_code) from e

        if not isinstance(body, dict) or '_parse_error' in body:
            raise ResolutionGap(member_uri, "response is not a JSON object")

        try:
            return FirmwareRecord.from_redfish(body, member_uri)
        except ValidationError as e:
            raise ResolutionGap(member_uri, f"invalid firmware record: {e.error_count()} field error(s)") from e

    def resolve_inventory(self, inventory_uri: str) -> InventorySnapshot:
        """
        Resolve the whole inventory, keeping track of members that failed.

        Member order is preserved. Unresolvable members are omitted from
        `records` and their URIs listed in `gaps`.
        """
        inventory = self.fetch_inventory(inventory_uri)
        records = []
        gaps = []

        for member_uri in inventory.members:
            try:
                records.append(self.fetch_member(member_uri))
            except ResolutionGap as gap:
                # Don't fail the entire inventory for one component
                self.adapter.logger.warning(gap.message)
                gaps.append(member_uri)

        if gaps:
            self.adapter.logger.warning(
                f"{len(gaps)} of {len(inventory.members)} firmware inventory members could not be resolved"
            )

        return InventorySnapshot(inventory=inventory, records=records, gaps=gaps)

    def resolve(self, inventory_uri: str) -> List[FirmwareRecord]:
        """Return resolved firmware records in inventory order."""
        return self.resolve_inventory(inventory_uri).records
