"""
Managed firmware resource.

Maps the caller-facing configuration surface
{name, version, local_file, signature_file, update_recovery_set, task_uri, id}
onto create/read/update/delete. Only create/update touch the device.
"""

from typing import Any, Dict

from .models import FirmwareResourceConfig
from .operations import FirmwareOperations


class FirmwareResource:
    """Lifecycle wrapper around FirmwareOperations for one device and session."""

    def __init__(self, operations: FirmwareOperations, host: str, session_token: str):
        self.operations = operations
        self.host = host
        self.session_token = session_token

    @property
    def logger(self):
        return self.operations.adapter.logger

    def apply(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """Create or update: push the firmware when the device is not at the requested version."""
        config = FirmwareResourceConfig(**state)
        outcome = self.operations.apply_firmware(self.host, self.session_token, config.to_request())

        updated = config.model_copy(update={
            'signature_file': config.signature_file or "",
            'task_uri': outcome.task_reference,
            'id': outcome.resolved_identifier or config.id,
        })
        return updated.model_dump()

    create = apply
    update = apply

    def read(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """Refresh `version` and `id` from the device; state is returned unchanged when the firmware is absent."""
        config = FirmwareResourceConfig(**state)
        record = self.operations.read_firmware(self.host, self.session_token, config.name)

        if record is None:
            self.logger.debug(f"{config.name}: Read finished not found")
            return config.model_dump()

        refreshed = config.model_copy(update={'version': record.version, 'id': record.identifier})
        self.logger.debug(f"{record.identifier}: Read finished successfully")
        return refreshed.model_dump()

    def delete(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """Forget the managed slot. Installed firmware cannot be removed, so the device is not contacted."""
        config = FirmwareResourceConfig(**state)
        return config.model_copy(update={'id': ""}).model_dump()
