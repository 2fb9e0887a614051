"""Catalog topologies the engine can be built with.

The set of catalogs is fixed at construction: either Sonarr alone or Sonarr
together with Radarr. Code that needs Radarr matches on the topology instead
of checking for an absent client.
"""

from dataclasses import dataclass

from ..catalog import RadarrClient, SonarrClient


@dataclass(frozen=True)
class SeriesOnly:
    """Only series are handled.

    Attributes:
        sonarr: The Sonarr client.
    """

    sonarr: SonarrClient


@dataclass(frozen=True)
class SeriesAndMovies:
    """Series and movies are handled.

    Attributes:
        sonarr: The Sonarr client.
        radarr: The Radarr client.
    """

    sonarr: SonarrClient
    radarr: RadarrClient


type EngineTopology = SeriesOnly | SeriesAndMovies


def radarr_of(topology: EngineTopology) -> RadarrClient | None:
    """Return the Radarr client of a topology, if it has one."""
    match topology:
        case SeriesAndMovies(radarr=radarr):
            return radarr
        case SeriesOnly():
            return None


async def close_topology(topology: EngineTopology) -> None:
    """Close every catalog client of a topology."""
    await topology.sonarr.close()
    radarr = radarr_of(topology)
    if radarr is not None:
        await radarr.close()
