"""
Redfish Firmware Operations Module

Provides the firmware-update orchestration on top of RedfishAdapter:
update service discovery, inventory resolution, version gating, multipart
push and outcome recording. Session create/delete are provided for callers
that do not already hold a token.
"""

from typing import Optional
from urllib.parse import urlparse

from ..config import Settings, settings as default_settings
from .adapter import RedfishAdapter
from .endpoints import SERVICE_ROOT, SESSIONS, UPDATE_SERVICE
from .errors import AuthError, FetchError, RedfishFirmwareError
from .gate import VersionGate, find_firmware
from .inventory import InventoryResolver
from .models import (
    FirmwareRecord,
    InventorySnapshot,
    SessionInfo,
    UpdateOutcome,
    UpdateRequest,
    UpdateServiceInfo,
)
from .outcome import OutcomeRecorder
from .upload import UploadSession


def _is_json_object(body) -> bool:
    return isinstance(body, dict) and '_parse_error' not in body


def _odata_link(body: dict, key: str, uri: str) -> Optional[str]:
    """
    Return body[key]['@odata.id'], or None when the link is absent.

    Raises:
        FetchError: If the link is present but not a {"@odata.id": "<uri>"} object
    """
    link = body.get(key)
    if link is None:
        return None
    target = link.get('@odata.id') if isinstance(link, dict) else None
    if target is not None and not isinstance(target, str):
        target = None
    if target is None and link:
        raise FetchError(message=f"{uri} has a malformed {key} link: {link!r}", uri=uri)
    return target or None


class FirmwareOperations:
    """
    High-level firmware operations against one Redfish device at a time.

    Every call re-reads device state; nothing is cached between calls, so a
    repeated apply with an already-installed version is a no-op.
    """

    def __init__(self, adapter: RedfishAdapter, settings: Optional[Settings] = None, gate: Optional[VersionGate] = None):
        """
        Initialize operations with adapter.

        Args:
            adapter: RedfishAdapter instance for making API calls
            settings: Executor settings (timeouts, service root, identity confirmation)
            gate: VersionGate used to decide skip vs. update
        """
        self.adapter = adapter
        self.settings = settings or default_settings
        self.gate = gate or VersionGate()

    # Session Management Operations

    def create_session(self, host: str, username: str, password: str) -> SessionInfo:
        """
        Create a Redfish session.

        Endpoint: POST /redfish/v1/SessionService/Sessions

        Returns:
            SessionInfo with token and session location

        Raises:
            AuthError: If the device issues no token
        """
        response = self.adapter.make_request(
            method='POST',
            host=host,
            endpoint=SESSIONS,
            payload={'UserName': username, 'Password': password},
            operation_name='Create Session',
            timeout=self.settings.request_timeout,
            return_response=True
        )

        session_token = response.headers.get('X-Auth-Token')
        if not session_token:
            raise AuthError(f"Session created on {host} but no X-Auth-Token was returned")

        try:
            session_data = response.json()
        except ValueError:
            session_data = {}

        return SessionInfo(
            token=session_token,
            location=response.headers.get('Location'),
            session_id=session_data.get('Id'),
            username=session_data.get('UserName')
        )

    def delete_session(self, host: str, session_token: str, session_uri: str) -> bool:
        """
        Delete a Redfish session (logout). Best-effort.

        Endpoint: DELETE /redfish/v1/SessionService/Sessions/{sessionId}
        """
        # Extract just the path from full URI if needed
        if session_uri.startswith('http'):
            session_uri = urlparse(session_uri).path

        try:
            self.adapter.make_request(
                method='DELETE',
                host=host,
                endpoint=session_uri,
                auth_token=session_token,
                operation_name='Delete Session',
                timeout=self.settings.request_timeout
            )
            return True
        except RedfishFirmwareError as e:
            self.adapter.logger.warning(f"Could not delete session {session_uri} on {host}: {e.message}")
            return False

    # Update Service Operations

    def discover_update_service(self, host: str, session_token: str) -> UpdateServiceInfo:
        """
        Locate the UpdateService and read its FirmwareInventory and HttpPushUri links.

        Raises:
            AuthError: If the device rejects the session token
            FetchError: If the service root or update service cannot be read
        """
        try:
            root = self.adapter.make_request(
                method='GET',
                host=host,
                endpoint=self.settings.service_root,
                auth_token=session_token,
                operation_name='Get Service Root',
                timeout=self.settings.request_timeout
            )
            if not _is_json_object(root):
                raise FetchError(
                    message=f"Service root {self.settings.service_root} on {host} did not return a JSON object",
                    uri=self.settings.service_root
                )
            update_uri = _odata_link(root, 'UpdateService', self.settings.service_root) or UPDATE_SERVICE

            update = self.adapter.make_request(
                method='GET',
                host=host,
                endpoint=update_uri,
                auth_token=session_token,
                operation_name='Get Update Service',
                timeout=self.settings.request_timeout
            )
        except (AuthError, FetchError):
            raise
        except RedfishFirmwareError as e:
            raise FetchError(
                message=f"Error fetching update service on {host}: {e.message}",
                uri=SERVICE_ROOT,
                error_code=e.error_code,
                status_code=e.status_code
            ) from e

        if not _is_json_object(update):
            raise FetchError(
                message=f"Update service {update_uri} on {host} did not return a JSON object",
                uri=update_uri
            )

        inventory_uri = _odata_link(update, 'FirmwareInventory', update_uri)
        if not inventory_uri:
            raise FetchError(
                message=f"Update service {update_uri} on {host} exposes no FirmwareInventory",
                uri=update_uri
            )

        push_uri = update.get('HttpPushUri')
        if push_uri is not None and not isinstance(push_uri, str):
            self.adapter.logger.warning(f"Ignoring non-string HttpPushUri on {update_uri}: {push_uri!r}")
            push_uri = None

        return UpdateServiceInfo(
            uri=update_uri,
            firmware_inventory_uri=inventory_uri,
            http_push_uri=push_uri
        )

    def get_firmware_inventory(self, host: str, session_token: str, inventory_uri: Optional[str] = None) -> InventorySnapshot:
        """
        Resolve the firmware inventory, discovering its URI when not given.
        """
        if not session_token:
            raise AuthError()
        if inventory_uri is None:
            inventory_uri = self.discover_update_service(host, session_token).firmware_inventory_uri
        resolver = InventoryResolver(self.adapter, host, session_token)
        return resolver.resolve_inventory(inventory_uri)

    def read_firmware(self, host: str, session_token: str, name: str) -> Optional[FirmwareRecord]:
        """Return the first inventory record named `name`, or None."""
        snapshot = self.get_firmware_inventory(host, session_token)
        return find_firmware(snapshot.records, name)

    # Firmware Update Operations

    def apply_firmware(self, host: str, session_token: str, request: UpdateRequest) -> UpdateOutcome:
        """
        Bring the named firmware slot to the requested version.

        Flow: discover update service -> resolve inventory -> version gate ->
        (skip, or) multipart push -> outcome.

        Args:
            host: Device host or IP address
            session_token: Session token issued by a prior login
            request: UpdateRequest

        Returns:
            UpdateOutcome

        Raises:
            AuthError: No usable session token
            FetchError: Update service or inventory collection unreachable
            LocalIOError: Image or signature file cannot be opened
            UploadError: Push failed
        """
        if not session_token:
            raise AuthError("No session token available for firmware update")

        self.adapter.logger.debug(f"Beginning firmware update of '{request.target_name}' on {host}")

        service = self.discover_update_service(host, session_token)
        resolver = InventoryResolver(self.adapter, host, session_token)
        snapshot = resolver.resolve_inventory(service.firmware_inventory_uri)

        decision = self.gate.decide(snapshot.records, request.target_name, request.target_version)
        recorder = OutcomeRecorder(request.target_version)

        if not decision.needs_update:
            self.adapter.logger.info(
                f"'{request.target_name}' already at version {request.target_version} on {host}, skipping upload"
            )
            return recorder.record(decision.match, unresolved_members=len(snapshot.gaps))

        if decision.match is None:
            self.adapter.logger.info(f"'{request.target_name}' not found in inventory on {host}, uploading")
        else:
            self.adapter.logger.info(
                f"'{request.target_name}' at version {decision.match.version} on {host}, "
                f"updating to {request.target_version}"
            )

        uploader = UploadSession(self.adapter, host, timeout=self.settings.push_timeout)
        result = uploader.upload(service.http_push_uri or "", session_token, request)

        match_after = None
        if decision.match is None and self.settings.confirm_identity_after_upload:
            match_after = self._reresolve(resolver, service.firmware_inventory_uri, request.target_name)

        outcome = recorder.record(
            decision.match,
            match_after,
            result.task_reference,
            unresolved_members=len(snapshot.gaps)
        )
        self.adapter.logger.debug(f"{outcome.resolved_identifier or request.target_name}: Update finished successfully")
        return outcome

    def _reresolve(self, resolver: InventoryResolver, inventory_uri: str, name: str) -> Optional[FirmwareRecord]:
        """Look the firmware up again after upload; a failure here leaves the identity unknown."""
        try:
            return find_firmware(resolver.resolve(inventory_uri), name)
        except RedfishFirmwareError as e:
            self.adapter.logger.warning(f"Could not re-read inventory after upload: {e.message}")
            return None
