"""Response models shared by the HTTP routers."""

from pydantic import BaseModel

from ..reconciler.types import SweepResults
from ..webhook_orchestrator import WebhookSummary


class WebhookResponse(BaseModel):
    """Response model for webhook endpoints.

    Attributes:
        message: Human-readable summary.
        event_type: The event type as received.
        item_id: Series or movie id, when the event was acted on.
        title: Series or movie title.
        season_count: Seasons of the series.
        episode_count: Episodes of the series.
        valid_links: Items whose link validated.
        missing: Items without a valid link.
        artifacts_created: Artifacts newly written.
        rescan_triggered: Whether a rescan was accepted.
    """

    message: str
    event_type: str
    item_id: int | None = None
    title: str | None = None
    season_count: int | None = None
    episode_count: int | None = None
    valid_links: int = 0
    missing: int = 0
    artifacts_created: int = 0
    rescan_triggered: bool = False

    @classmethod
    def from_summary(cls, summary: WebhookSummary) -> "WebhookResponse":
        """Build the response from an orchestrator summary."""
        return cls(
            message=summary.message,
            event_type=summary.event_type,
            item_id=summary.item_id,
            title=summary.title,
            season_count=summary.season_count,
            episode_count=summary.episode_count,
            valid_links=summary.valid_links,
            missing=summary.missing,
            artifacts_created=summary.artifacts_created,
            rescan_triggered=summary.rescan_triggered,
        )


class SweepResponse(BaseModel):
    """Response model for manually triggered sweeps.

    Attributes:
        sweep_name: Name of the sweep that ran.
        duration_seconds: Wall time of the sweep.
        parents_processed: Series or movies processed.
        parents_failed: Series or movies whose processing failed.
        items_processed: Episodes or movies reconciled.
        valid_links: Items whose link validated.
        missing: Items without a valid link.
        artifacts_created: Artifacts newly written.
        artifacts_deleted: Stale artifacts removed.
        monitoring_updates: Monitored-flag write-backs.
        rescans_triggered: Rescans accepted by the catalog.
    """

    sweep_name: str
    duration_seconds: float
    parents_processed: int
    parents_failed: int
    items_processed: int
    valid_links: int
    missing: int
    artifacts_created: int
    artifacts_deleted: int
    monitoring_updates: int
    rescans_triggered: int

    @classmethod
    def from_results(cls, results: SweepResults) -> "SweepResponse":
        """Build the response from sweep counters."""
        return cls(
            sweep_name=results.sweep_name,
            duration_seconds=results.total_duration_seconds,
            parents_processed=results.parents_processed,
            parents_failed=results.parents_failed,
            items_processed=results.items_processed,
            valid_links=results.valid_links,
            missing=results.missing,
            artifacts_created=results.artifacts_created,
            artifacts_deleted=results.artifacts_deleted,
            monitoring_updates=results.monitoring_updates,
            rescans_triggered=results.rescans_triggered,
        )
