"""Sonarr series, season and episode resources."""

from pydantic import Field

from .arr_model import ArrModel


class SeasonStatistics(ArrModel):
    """Episode-file statistics of a season.

    Attributes:
        episode_file_count: Episodes with a file on disk.
        episode_count: Monitored episodes that have aired.
        total_episode_count: All episodes of the season.
    """

    episode_file_count: int = 0
    episode_count: int = 0
    total_episode_count: int = 0


class Season(ArrModel):
    """A season of a series. Season 0 holds specials.

    Attributes:
        season_number: The season number.
        monitored: Whether the season is monitored.
        statistics: Episode-file statistics, when provided.
    """

    season_number: int
    monitored: bool = False
    statistics: SeasonStatistics | None = None


class Series(ArrModel):
    """A Sonarr series.

    Attributes:
        id: Sonarr series identifier.
        title: Series title.
        path: Root directory of the series.
        imdb_id: IMDb identifier, required to build stream links.
        year: First-air year.
        monitored: Whether the series is monitored.
        seasons: Seasons of the series.
    """

    id: int
    title: str = ""
    path: str = ""
    imdb_id: str | None = None
    year: int = 0
    monitored: bool = False
    seasons: list[Season] = Field(default_factory=list[Season])

    @property
    def latest_season_number(self) -> int | None:
        """Highest season number above 0, or None when there is none."""
        regular = [s.season_number for s in self.seasons if s.season_number > 0]
        return max(regular) if regular else None


class Episode(ArrModel):
    """A Sonarr episode.

    Attributes:
        id: Sonarr episode identifier.
        series_id: Identifier of the parent series.
        season_number: Season the episode belongs to.
        episode_number: Episode number within the season.
        title: Episode title; may be a placeholder such as "TBA".
        has_file: Whether Sonarr tracks a file for the episode.
        episode_file_id: Identifier of that file, 0 if none.
        monitored: Whether the episode is monitored.
    """

    id: int
    series_id: int
    season_number: int
    episode_number: int
    title: str | None = None
    has_file: bool = False
    episode_file_id: int = 0
    monitored: bool = False
