"""Sonarr API client."""

import logging

from pydantic import TypeAdapter

from ..exceptions import CatalogApiError
from .arr_client import ArrApiClient
from .types import Episode, Series

logger = logging.getLogger(__name__)

_SERIES_ADAPTER = TypeAdapter(Series)
_SERIES_LIST_ADAPTER = TypeAdapter(list[Series])
_EPISODE_LIST_ADAPTER = TypeAdapter(list[Episode])


class SonarrClient(ArrApiClient[Episode]):
    """Client for the Sonarr v3 API.

    Wanted/missing records are episodes, newest air date first.
    """

    service = "sonarr"
    wanted_record_type = Episode
    wanted_sort_key = "airDateUtc"

    async def get_all_series(self) -> list[Series]:
        """Fetch every series in the library."""
        return await self._get_json("/api/v3/series", _SERIES_LIST_ADAPTER, "get_all_series")

    async def get_series_details(self, series_id: int) -> Series:
        """Fetch one series by id."""
        return await self._get_json(
            f"/api/v3/series/{series_id}", _SERIES_ADAPTER, "get_series_details"
        )

    async def get_episodes(self, series_id: int) -> list[Episode]:
        """Fetch every episode of a series."""
        return await self._get_json(
            "/api/v3/episode",
            _EPISODE_LIST_ADAPTER,
            "get_episodes",
            params={"seriesId": series_id},
        )

    async def update_series(self, series: Series) -> None:
        """Write a modified series back to Sonarr.

        Raises:
            CatalogApiError: If the update fails.
        """
        await self._put_resource(f"/api/v3/series/{series.id}", series, "update_series")
        logger.debug(
            "Series updated.", extra={"series_id": series.id, "monitored": series.monitored}
        )

    async def update_episode(self, episode: Episode) -> bool:
        """Write a modified episode back to Sonarr.

        Returns:
            True if the update succeeded, False if it failed (logged).
        """
        try:
            await self._put_resource(
                f"/api/v3/episode/{episode.id}", episode, "update_episode"
            )
        except CatalogApiError as e:
            logger.warning(
                "Failed to update episode.",
                extra={"episode_id": episode.id, "status_code": e.status_code},
                exc_info=e,
            )
            return False
        return True

    async def delete_episode_file(self, episode_file_id: int) -> bool:
        """Delete an episode file record (and its file) from Sonarr.

        A 404 means the record is already gone and is not retried.

        Returns:
            True if the file was deleted, False otherwise (logged).
        """
        try:
            await self._send(
                "DELETE",
                f"/api/v3/episodefile/{episode_file_id}",
                "delete_episode_file",
                retry_status_codes={503},
            )
        except CatalogApiError as e:
            logger.warning(
                "Failed to delete episode file.",
                extra={"episode_file_id": episode_file_id, "status_code": e.status_code},
            )
            return False
        logger.info("Episode file deleted.", extra={"episode_file_id": episode_file_id})
        return True

    async def rescan_series(self, series_id: int) -> bool:
        """Ask Sonarr to rescan a series' directory."""
        return await self._send_command(
            {"name": "RescanSeries", "seriesId": series_id}, "rescan_series"
        )

    async def refresh_series(self, series_id: int) -> bool:
        """Ask Sonarr to refresh a series' metadata and rescan it."""
        return await self._send_command(
            {"name": "RefreshSeries", "seriesId": series_id}, "refresh_series"
        )

