"""Derives the caller-visible outcome of a firmware orchestration run."""

from typing import Optional

from .models import FirmwareRecord, UpdateOutcome


class OutcomeRecorder:
    """Builds UpdateOutcome records."""

    def __init__(self, target_version: str):
        self.target_version = target_version

    def record(
        self,
        match_before: Optional[FirmwareRecord],
        match_after: Optional[FirmwareRecord] = None,
        task_reference: Optional[str] = None,
        unresolved_members: int = 0
    ) -> UpdateOutcome:
        """
        Args:
            match_before: Inventory match found before any upload
            match_after: Match from a post-upload re-resolution, when one was done
            task_reference: Task URI returned by the push, if any
            unresolved_members: Inventory members dropped during resolution

        Returns:
            UpdateOutcome
        """
        if match_before is not None and match_before.version == self.target_version:
            return UpdateOutcome(
                resolved_identifier=match_before.identifier,
                skipped=True,
                unresolved_members=unresolved_members
            )

        # Identity of a pre-existing slot wins; a new slot is only known after re-resolution
        if match_before is not None:
            identifier = match_before.identifier
        elif match_after is not None:
            identifier = match_after.identifier
        else:
            identifier = ""

        return UpdateOutcome(
            resolved_identifier=identifier,
            task_reference=task_reference or "",
            skipped=False,
            unresolved_members=unresolved_members
        )
