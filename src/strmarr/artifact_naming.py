"""Deterministic artifact path derivation.

Every function here is pure: the same catalog metadata always maps to the
same ``.strm`` path, which is what lets repeated sweeps recognise artifacts
they wrote earlier.
"""

from pathlib import Path
import re

ARTIFACT_SUFFIX = ".strm"

PLACEHOLDER_TITLES = frozenset({"TBA", "TBD"})

# NUL, control characters and path separators
_INVALID_CHARS_PATTERN = re.compile(r"[\x00-\x1f/\\]+")
_MULTI_SPACE_PATTERN = re.compile(r" {2,}")
_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    (":", " -"),
    ('"', "'"),
    ("?", ""),
    ("*", ""),
    ("<", ""),
    (">", ""),
    ("|", "-"),
)


def resolve_episode_title(title: str | None, episode_number: int) -> str:
    """Return a usable episode title.

    Falls back to ``"Episode {n}"`` when the title is blank, a placeholder
    such as "TBA"/"TBD", or already a generic "Episode ..." title.

    Args:
        title: Title from the catalog, possibly None.
        episode_number: The episode number.

    Returns:
        The title to use in the file name.
    """
    stripped = (title or "").strip()
    if (
        not stripped
        or stripped.upper() in PLACEHOLDER_TITLES
        or stripped.lower().startswith("episode ")
    ):
        return f"Episode {episode_number}"
    return stripped


def sanitize_file_name(name: str) -> str:
    """Make ``name`` safe to use as a single file name.

    Runs of invalid characters become a single underscore (leading and
    trailing runs are dropped), then ``:`` becomes `` -``, ``"`` becomes
    ``'``, ``? * < >`` are dropped and ``|`` becomes ``-``. Finally runs of
    spaces are collapsed, the result is trimmed and trailing periods are
    stripped.

    Args:
        name: The raw file name.

    Returns:
        The sanitized file name.
    """
    sanitized = "_".join(part for part in _INVALID_CHARS_PATTERN.split(name) if part)
    for old, new in _REPLACEMENTS:
        sanitized = sanitized.replace(old, new)
    sanitized = _MULTI_SPACE_PATTERN.sub(" ", sanitized)
    return sanitized.strip().rstrip(".")


def season_directory(series_path: str | Path, season_number: int) -> Path:
    """Return the ``Season NN`` directory under a series root."""
    return Path(series_path) / f"Season {season_number:02d}"


def episode_file_name(
    series_title: str,
    season_number: int,
    episode_number: int,
    episode_title: str | None,
) -> str:
    """Return the sanitized artifact file name of an episode.

    Examples:
        >>> episode_file_name("Show: Title?", 1, 2, "")
        'Show - Title - S01E02 - Episode 2.strm'
    """
    title = resolve_episode_title(episode_title, episode_number)
    stem = sanitize_file_name(
        f"{series_title} - S{season_number:02d}E{episode_number:02d} - {title}"
    )
    return f"{stem}{ARTIFACT_SUFFIX}"


def episode_artifact_path(
    series_path: str | Path,
    series_title: str,
    season_number: int,
    episode_number: int,
    episode_title: str | None,
) -> Path:
    """Return the full artifact path of an episode."""
    return season_directory(series_path, season_number) / episode_file_name(
        series_title, season_number, episode_number, episode_title
    )


def episode_artifact_glob(season_number: int, episode_number: int) -> str:
    """Return a glob matching any artifact of the given episode in its season directory.

    Used to find artifacts written under an earlier episode title.
    """
    return f"* - S{season_number:02d}E{episode_number:02d} - *{ARTIFACT_SUFFIX}"


def movie_artifact_path(movie_path: str | Path, title: str, year: int) -> Path:
    """Return the full artifact path of a movie: ``<root>/<Title> (<year>).strm``."""
    stem = sanitize_file_name(f"{title} ({year})")
    return Path(movie_path) / f"{stem}{ARTIFACT_SUFFIX}"
