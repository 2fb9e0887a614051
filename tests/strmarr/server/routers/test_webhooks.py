# pyright: reportPrivateUsage=false

"""Tests for the webhook router."""

from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from strmarr.catalog.types import RadarrWebhookPayload, SonarrWebhookPayload
from strmarr.reconciler import ReconciliationEngine
from strmarr.reconciler.types import SweepResults
from strmarr.server.routers.webhooks import router
from strmarr.webhook_orchestrator import WebhookOrchestrator, WebhookSummary


@pytest.fixture
def mock_orchestrator() -> MagicMock:
    """Provides an orchestrator mock returning a series-add summary."""
    orchestrator = MagicMock(spec=WebhookOrchestrator)
    orchestrator.handle_event = AsyncMock(
        return_value=WebhookSummary(
            message="SeriesAdd event processed",
            event_type="SeriesAdd",
            item_id=1,
            title="Show",
            season_count=2,
            episode_count=20,
            items_processed=10,
            valid_links=8,
            missing=2,
            artifacts_created=8,
            unmonitored=8,
            rescan_triggered=True,
        )
    )
    return orchestrator


@pytest.fixture
def mock_engine() -> MagicMock:
    """Provides an engine mock with canned wanted sweeps."""
    engine = MagicMock(spec=ReconciliationEngine)
    engine.run_wanted_episodes_sweep = AsyncMock(
        return_value=SweepResults(sweep_name="wanted_episodes", items_processed=4)
    )
    engine.run_wanted_movies_sweep = AsyncMock(
        return_value=SweepResults(sweep_name="wanted_movies", items_processed=1)
    )
    return engine


@pytest.fixture
def client(mock_engine: MagicMock, mock_orchestrator: MagicMock) -> TestClient:
    """Create a test client for the webhook endpoints."""
    app = FastAPI()
    app.state.engine = mock_engine
    app.state.webhook_orchestrator = mock_orchestrator
    app.include_router(router)
    return TestClient(app)


@pytest.mark.unit
def test_sonarr_webhook_dispatches_payload(
    client: TestClient, mock_orchestrator: MagicMock
):
    """The Sonarr body is parsed and handed to the orchestrator."""
    response = client.post(
        "/sonarr",
        json={
            "eventType": "SeriesAdd",
            "series": {"id": 1, "title": "Show", "tvdbId": 81189},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["item_id"] == 1
    assert data["valid_links"] == 8
    assert data["rescan_triggered"] is True
    payload = mock_orchestrator.handle_event.await_args.args[0]
    assert isinstance(payload, SonarrWebhookPayload)
    assert payload.is_series_add
    assert payload.series is not None
    assert payload.series.title == "Show"


@pytest.mark.unit
def test_radarr_webhook_dispatches_payload(
    client: TestClient, mock_orchestrator: MagicMock
):
    """The Radarr body is parsed as a Radarr payload."""
    response = client.post(
        "/radarr", json={"eventType": "MovieAdded", "movie": {"id": 42, "title": "Alien"}}
    )

    assert response.status_code == 200
    payload = mock_orchestrator.handle_event.await_args.args[0]
    assert isinstance(payload, RadarrWebhookPayload)
    assert payload.is_movie_add


@pytest.mark.unit
def test_webhook_without_event_type_is_rejected(
    client: TestClient, mock_orchestrator: MagicMock
):
    """A body without an event type fails validation."""
    response = client.post("/sonarr", json={"series": {"id": 1}})

    assert response.status_code == 422
    mock_orchestrator.handle_event.assert_not_awaited()


@pytest.mark.unit
def test_sonarr_monitor_wanted(client: TestClient, mock_engine: MagicMock):
    """The Sonarr wanted endpoint runs the episode sweep."""
    response = client.post("/sonarr/monitor/wanted")

    assert response.status_code == 200
    assert response.json()["sweep_name"] == "wanted_episodes"
    mock_engine.run_wanted_episodes_sweep.assert_awaited_once()


@pytest.mark.unit
def test_radarr_monitor_wanted(client: TestClient, mock_engine: MagicMock):
    """The Radarr wanted endpoint runs the movie sweep."""
    response = client.post("/radarr/monitor/wanted")

    assert response.status_code == 200
    assert response.json()["items_processed"] == 1
    mock_engine.run_wanted_movies_sweep.assert_awaited_once()
