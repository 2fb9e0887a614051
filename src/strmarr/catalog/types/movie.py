"""Radarr movie resources."""

from .arr_model import ArrModel


class MovieFile(ArrModel):
    """A file Radarr tracks for a movie.

    Attributes:
        id: Radarr movie-file identifier.
    """

    id: int


class Movie(ArrModel):
    """A Radarr movie.

    Attributes:
        id: Radarr movie identifier.
        title: Movie title.
        year: Release year.
        path: Directory of the movie.
        imdb_id: IMDb identifier, required to build stream links.
        monitored: Whether the movie is monitored.
        has_file: Whether Radarr tracks a file for the movie.
        movie_file: The tracked file, if any.
        quality_profile_id: Identifier of the assigned quality profile.
    """

    id: int
    title: str = ""
    year: int = 0
    path: str = ""
    imdb_id: str | None = None
    monitored: bool = False
    has_file: bool = False
    movie_file: MovieFile | None = None
    quality_profile_id: int = 0

    @property
    def movie_file_id(self) -> int | None:
        """Identifier of the tracked file, or None."""
        if self.movie_file is None:
            return None
        return self.movie_file.id


class QualityProfile(ArrModel):
    """A Radarr quality profile.

    Attributes:
        id: Profile identifier.
        name: Display name.
    """

    id: int
    name: str
