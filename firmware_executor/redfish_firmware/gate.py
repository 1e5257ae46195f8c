"""Version gating: decides between skip and update from current device inventory."""

from typing import Iterable, Optional

from .models import FirmwareRecord, VersionDecision


def find_firmware(records: Iterable[FirmwareRecord], name: str) -> Optional[FirmwareRecord]:
    """Return the first record whose name equals `name` exactly, or None."""
    for record in records:
        if record.name == name:
            return record
    return None


class VersionGate:
    """
    Compares a requested (name, version) against resolved inventory.

    Versions are compared as plain strings: "1.0" and "1.00" differ.
    """

    def decide(self, records: Iterable[FirmwareRecord], target_name: str, target_version: str) -> VersionDecision:
        match = find_firmware(records, target_name)
        if match is None:
            return VersionDecision(match=None, needs_update=True)
        return VersionDecision(match=match, needs_update=match.version != target_version)
