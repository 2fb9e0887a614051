"""Sonarr and Radarr webhook payloads."""

from .arr_model import ArrModel
from .movie import Movie
from .series import Series

SERIES_ADD_EVENT = "seriesadd"
MOVIE_ADD_EVENT = "movieadd"


class SonarrWebhookPayload(ArrModel):
    """Payload posted by a Sonarr "Connect" webhook.

    Attributes:
        event_type: Event name, e.g. "SeriesAdd" or "Test".
        series: The series the event is about, if any.
    """

    event_type: str
    series: Series | None = None

    @property
    def is_series_add(self) -> bool:
        """Whether this is a series-added event."""
        return self.event_type.lower() == SERIES_ADD_EVENT


class RadarrWebhookPayload(ArrModel):
    """Payload posted by a Radarr "Connect" webhook.

    Attributes:
        event_type: Event name, e.g. "MovieAdded" or "Test".
        movie: The movie the event is about, if any.
    """

    event_type: str
    movie: Movie | None = None

    @property
    def is_movie_add(self) -> bool:
        """Whether this is a movie-added event."""
        return self.event_type.lower() in (MOVIE_ADD_EVENT, "movieadded")


type WebhookPayload = SonarrWebhookPayload | RadarrWebhookPayload
