"""Radarr API client."""

import logging

from pydantic import TypeAdapter

from ..exceptions import CatalogApiError
from .arr_client import ArrApiClient
from .types import Movie, QualityProfile

logger = logging.getLogger(__name__)

_MOVIE_ADAPTER = TypeAdapter(Movie)
_MOVIE_LIST_ADAPTER = TypeAdapter(list[Movie])
_QUALITY_PROFILE_LIST_ADAPTER = TypeAdapter(list[QualityProfile])


class RadarrClient(ArrApiClient[Movie]):
    """Client for the Radarr v3 API.

    Wanted/missing records are movies, newest physical release first.
    """

    service = "radarr"
    wanted_record_type = Movie
    wanted_sort_key = "physicalRelease"

    async def get_all_movies(self) -> list[Movie]:
        """Fetch every movie in the library."""
        return await self._get_json("/api/v3/movie", _MOVIE_LIST_ADAPTER, "get_all_movies")

    async def get_movie_details(self, movie_id: int) -> Movie:
        """Fetch one movie by id."""
        return await self._get_json(
            f"/api/v3/movie/{movie_id}", _MOVIE_ADAPTER, "get_movie_details"
        )

    async def update_movie(self, movie: Movie) -> None:
        """Write a modified movie back to Radarr.

        Raises:
            CatalogApiError: If the update fails.
        """
        await self._put_resource(f"/api/v3/movie/{movie.id}", movie, "update_movie")
        logger.debug(
            "Movie updated.", extra={"movie_id": movie.id, "monitored": movie.monitored}
        )

    async def delete_movie_file(self, movie_file_id: int) -> bool:
        """Delete a movie file record (and its file) from Radarr.

        Returns:
            True if the file was deleted, False otherwise (logged).
        """
        try:
            await self._send(
                "DELETE",
                f"/api/v3/moviefile/{movie_file_id}",
                "delete_movie_file",
                retry_status_codes={503},
            )
        except CatalogApiError as e:
            logger.warning(
                "Failed to delete movie file.",
                extra={"movie_file_id": movie_file_id, "status_code": e.status_code},
            )
            return False
        logger.info("Movie file deleted.", extra={"movie_file_id": movie_file_id})
        return True

    async def rescan_movie(self, movie_id: int) -> bool:
        """Ask Radarr to rescan a movie's directory."""
        return await self._send_command(
            {"name": "RescanMovie", "movieId": movie_id}, "rescan_movie"
        )

    async def refresh_movie(self, movie_id: int) -> bool:
        """Ask Radarr to refresh a movie's metadata and rescan it."""
        return await self._send_command(
            {"name": "RefreshMovie", "movieId": movie_id}, "refresh_movie"
        )

    async def get_quality_profiles(self) -> list[QualityProfile]:
        """Fetch every quality profile."""
        return await self._get_json(
            "/api/v3/qualityprofile",
            _QUALITY_PROFILE_LIST_ADAPTER,
            "get_quality_profiles",
        )

