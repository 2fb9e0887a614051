from .arr_model import ArrModel
from .movie import Movie, MovieFile, QualityProfile
from .series import Episode, Season, SeasonStatistics, Series
from .wanted_missing import WantedMissingPage
from .webhook import RadarrWebhookPayload, SonarrWebhookPayload, WebhookPayload

__all__ = [
    "ArrModel",
    "Episode",
    "Movie",
    "MovieFile",
    "QualityProfile",
    "RadarrWebhookPayload",
    "Season",
    "SeasonStatistics",
    "Series",
    "SonarrWebhookPayload",
    "WantedMissingPage",
    "WebhookPayload",
]
