"""Outcome of reconciling one episode or movie."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ItemOutcome(str, Enum):
    """Result of one item's reconciliation.

    Attributes:
        SKIPPED: The item has no identifier to build a link from.
        MISSING: The link is invalid, or processing the item failed.
        VALID: The link is valid and the artifact already existed.
        CREATED: The link is valid and the artifact was newly written.
    """

    SKIPPED = "skipped"
    MISSING = "missing"
    VALID = "valid"
    CREATED = "created"

    @property
    def is_valid_link(self) -> bool:
        """Whether the outcome counts as a valid link."""
        return self in (ItemOutcome.VALID, ItemOutcome.CREATED)


@dataclass(frozen=True)
class ItemResult:
    """What happened to one item.

    Attributes:
        outcome: The reconciliation outcome.
        artifact_path: Path of the item's artifact, None when skipped.
        artifacts_deleted: Stale artifacts removed from disk.
        media_file_deleted: Whether the catalog's media file was deleted.
    """

    outcome: ItemOutcome
    artifact_path: Path | None = None
    artifacts_deleted: int = 0
    media_file_deleted: bool = False

    @property
    def created(self) -> bool:
        """Whether an artifact was newly written."""
        return self.outcome == ItemOutcome.CREATED
