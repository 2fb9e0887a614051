"""Per-item reconciliation of .strm artifacts.

This module defines the StrmReconciler class. For one episode or movie it
decides, from scratch, whether the stream link is usable and brings the
artifact on disk (and the catalog's media file) in line with that verdict.
"""

from collections.abc import Awaitable, Callable
import logging
from pathlib import Path
from typing import Any

from ..artifact_naming import (
    episode_artifact_glob,
    episode_artifact_path,
    movie_artifact_path,
)
from ..catalog import RadarrClient, SonarrClient
from ..catalog.types import Episode, Movie, Series
from ..config.types import StreamUrlTemplate
from ..exceptions import ConfigurationError
from ..file_store import FileStore
from ..link_validator import LinkValidator
from .types import ItemOutcome, ItemResult

logger = logging.getLogger(__name__)


class StrmReconciler:
    """Reconcile a single item's artifact against its stream link.

    Every call re-evaluates the item:

    - no IMDb id: skipped, nothing touched;
    - invalid link: any artifact of the item is deleted, outcome MISSING;
    - valid link with the artifact present: nothing to do, outcome VALID;
    - valid link with the artifact absent: the catalog's media file is
      deleted, the directory ensured and the artifact written, outcome
      CREATED.

    Attributes:
        _link_validator: Probe for stream links.
        _file_store: Filesystem access for artifacts.
        _series_url_template: Template of episode stream URLs.
        _movie_url_template: Template of movie stream URLs.
        _username: Provider account name.
        _password: Provider account password.
        _validate_urls: When False, every constructed link counts as valid.
    """

    def __init__(
        self,
        link_validator: LinkValidator,
        file_store: FileStore,
        series_url_template: StreamUrlTemplate,
        movie_url_template: StreamUrlTemplate,
        username: str | None,
        password: str | None,
        validate_urls: bool = True,
    ):
        if not username or not username.strip():
            raise ConfigurationError(
                "Provider username is not configured.",
                setting_name="PROVIDER_USERNAME",
            )
        if not password or not password.strip():
            raise ConfigurationError(
                "Provider password is not configured.",
                setting_name="PROVIDER_PASSWORD",
            )
        self._link_validator = link_validator
        self._file_store = file_store
        self._series_url_template = series_url_template
        self._movie_url_template = movie_url_template
        self._username = username.strip()
        self._password = password.strip()
        self._validate_urls = validate_urls
        logger.debug(
            "StrmReconciler initialized.", extra={"validate_urls": validate_urls}
        )

    def episode_url(self, series: Series, episode: Episode) -> str:
        """Build the stream URL of an episode."""
        return self._series_url_template.render(
            username=self._username,
            password=self._password,
            imdbId=series.imdb_id or "",
            season=episode.season_number,
            episode=episode.episode_number,
        )

    def movie_url(self, movie: Movie) -> str:
        """Build the stream URL of a movie."""
        return self._movie_url_template.render(
            username=self._username,
            password=self._password,
            imdbId=movie.imdb_id or "",
        )

    async def _is_link_valid(self, url: str) -> bool:
        if not self._validate_urls:
            return True
        return await self._link_validator.is_valid(url)

    async def _delete_artifacts(self, paths: list[Path]) -> int:
        deleted = 0
        for path in paths:
            if await self._file_store.delete(path):
                deleted += 1
        return deleted

    async def _reconcile_item(
        self,
        url: str,
        artifact_path: Path,
        stale_pattern: str | None,
        delete_media_file: Callable[[], Awaitable[bool]] | None,
        log_params: dict[str, Any],
    ) -> ItemResult:
        """Apply the link verdict to one item's artifact.

        Args:
            url: The item's stream URL.
            artifact_path: Where the item's artifact belongs.
            stale_pattern: Glob matching artifacts the item may have been
                written under before (e.g. an older episode title).
            delete_media_file: Deletes the catalog's media file of the item,
                or None when the catalog tracks no file.
            log_params: Identifiers of the item for logging.

        Returns:
            The item's result.
        """
        directory = artifact_path.parent
        stale_paths: list[Path] = []
        if stale_pattern is not None:
            stale_paths = [
                p
                for p in await self._file_store.list_files(directory, stale_pattern)
                if p != artifact_path
            ]

        if not await self._is_link_valid(url):
            deleted = await self._delete_artifacts([artifact_path, *stale_paths])
            logger.info(
                "Stream link is invalid, item marked missing.",
                extra={**log_params, "artifacts_deleted": deleted},
            )
            return ItemResult(
                ItemOutcome.MISSING, artifact_path, artifacts_deleted=deleted
            )

        deleted = await self._delete_artifacts(stale_paths)
        if await self._file_store.exists(artifact_path):
            logger.debug("Artifact already present.", extra=log_params)
            return ItemResult(ItemOutcome.VALID, artifact_path, artifacts_deleted=deleted)

        media_file_deleted = False
        if delete_media_file is not None:
            media_file_deleted = await delete_media_file()

        await self._file_store.create_directory(directory)
        await self._file_store.write_text(artifact_path, url)
        logger.info(
            "Artifact created.",
            extra={
                **log_params,
                "artifact_path": str(artifact_path),
                "media_file_deleted": media_file_deleted,
            },
        )
        return ItemResult(
            ItemOutcome.CREATED,
            artifact_path,
            artifacts_deleted=deleted,
            media_file_deleted=media_file_deleted,
        )

    async def reconcile_episode(
        self, sonarr: SonarrClient, series: Series, episode: Episode
    ) -> ItemResult:
        """Reconcile one episode's artifact.

        Args:
            sonarr: Client used to delete the episode's media file.
            series: The episode's series (provides path, title and IMDb id).
            episode: The episode.

        Returns:
            The episode's result.

        Raises:
            FileOperationError: If the artifact cannot be read or written.
        """
        log_params = {
            "series_id": series.id,
            "episode_id": episode.id,
            "season": episode.season_number,
            "episode": episode.episode_number,
        }
        if not series.imdb_id:
            logger.warning("Series has no IMDb id, skipping episode.", extra=log_params)
            return ItemResult(ItemOutcome.SKIPPED)

        artifact_path = episode_artifact_path(
            series.path,
            series.title,
            episode.season_number,
            episode.episode_number,
            episode.title,
        )

        delete_media_file: Callable[[], Awaitable[bool]] | None = None
        if episode.has_file and episode.episode_file_id:

            async def delete_episode_file() -> bool:
                deleted = await sonarr.delete_episode_file(episode.episode_file_id)
                if deleted:
                    episode.has_file = False
                    episode.episode_file_id = 0
                return deleted

            delete_media_file = delete_episode_file

        return await self._reconcile_item(
            self.episode_url(series, episode),
            artifact_path,
            episode_artifact_glob(episode.season_number, episode.episode_number),
            delete_media_file,
            log_params,
        )

    async def reconcile_movie(self, radarr: RadarrClient, movie: Movie) -> ItemResult:
        """Reconcile one movie's artifact.

        Args:
            radarr: Client used to delete the movie's media file.
            movie: The movie.

        Returns:
            The movie's result.

        Raises:
            FileOperationError: If the artifact cannot be read or written.
        """
        log_params = {"movie_id": movie.id, "title": movie.title}
        if not movie.imdb_id:
            logger.warning("Movie has no IMDb id, skipping.", extra=log_params)
            return ItemResult(ItemOutcome.SKIPPED)

        artifact_path = movie_artifact_path(movie.path, movie.title, movie.year)

        delete_media_file: Callable[[], Awaitable[bool]] | None = None
        movie_file_id = movie.movie_file_id
        if movie.has_file and movie_file_id is not None:

            async def delete_movie_file() -> bool:
                deleted = await radarr.delete_movie_file(movie_file_id)
                if deleted:
                    movie.has_file = False
                    movie.movie_file = None
                return deleted

            delete_media_file = delete_movie_file

        return await self._reconcile_item(
            self.movie_url(movie), artifact_path, None, delete_media_file, log_params
        )
