from .arr_client import ArrApiClient
from .radarr_client import RadarrClient
from .sonarr_client import SonarrClient

__all__ = [
    "ArrApiClient",
    "RadarrClient",
    "SonarrClient",
]
