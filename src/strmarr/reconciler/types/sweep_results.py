"""Aggregated counters of one sweep.

This module defines the SweepResults dataclass, filled in by the
ReconciliationEngine while a sweep runs and logged when it finishes.
"""

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from typing import Any

from .item_result import ItemOutcome, ItemResult


@dataclass
class SweepResults:
    """Counters of a full or wanted/missing sweep.

    All counters are only mutated from the event loop between awaits.

    Attributes:
        sweep_name: Name of the sweep, e.g. "full_series".
        start_time: When the sweep began.
        total_duration_seconds: Wall time of the sweep.
        parents_processed: Series or movies whose processing completed.
        parents_failed: Series or movies whose processing raised.
        items_processed: Episodes or movies reconciled.
        items_skipped: Items without an identifier.
        valid_links: Items whose link validated.
        missing: Items with an invalid link or a processing failure.
        artifacts_created: Artifacts newly written.
        artifacts_deleted: Stale artifacts removed.
        media_files_deleted: Catalog media files removed before writing.
        monitoring_updates: Successful monitored-flag write-backs.
        rescans_triggered: Rescan commands accepted by the catalog.
    """

    sweep_name: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    total_duration_seconds: float = 0.0
    parents_processed: int = 0
    parents_failed: int = 0
    items_processed: int = 0
    items_skipped: int = 0
    valid_links: int = 0
    missing: int = 0
    artifacts_created: int = 0
    artifacts_deleted: int = 0
    media_files_deleted: int = 0
    monitoring_updates: int = 0
    rescans_triggered: int = 0

    def record(self, result: ItemResult) -> None:
        """Add one item's result to the counters."""
        self.items_processed += 1
        self.artifacts_deleted += result.artifacts_deleted
        if result.media_file_deleted:
            self.media_files_deleted += 1
        match result.outcome:
            case ItemOutcome.SKIPPED:
                self.items_skipped += 1
            case ItemOutcome.MISSING:
                self.missing += 1
            case ItemOutcome.VALID:
                self.valid_links += 1
            case ItemOutcome.CREATED:
                self.valid_links += 1
                self.artifacts_created += 1

    def merge(self, other: "SweepResults") -> None:
        """Add every counter of ``other`` to this result."""
        for f in fields(self):
            if f.type is int:
                setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def summary_dict(self) -> dict[str, Any]:
        """Return a dictionary summary suitable for logging."""
        return {
            "sweep_name": self.sweep_name,
            "total_duration_seconds": round(self.total_duration_seconds, 3),
            "parents_processed": self.parents_processed,
            "parents_failed": self.parents_failed,
            "items_processed": self.items_processed,
            "items_skipped": self.items_skipped,
            "valid_links": self.valid_links,
            "missing": self.missing,
            "artifacts_created": self.artifacts_created,
            "artifacts_deleted": self.artifacts_deleted,
            "media_files_deleted": self.media_files_deleted,
            "monitoring_updates": self.monitoring_updates,
            "rescans_triggered": self.rescans_triggered,
        }
