"""Stream URL template data type.

This module provides the StreamUrlTemplate dataclass, a parsed URL template
whose ``{placeholder}`` segments are substituted in a single pass so that a
value containing placeholder-like text is never expanded again.
"""

from dataclasses import dataclass
import re

_PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z]+)\}")

SUPPORTED_PLACEHOLDERS = frozenset(
    {"username", "password", "imdbId", "season", "episode"}
)

DEFAULT_SERIES_URL_TEMPLATE = "https://starlite.best/api/stream/{username}/{password}/tvshow/{imdbId}/{season}/{episode}"
DEFAULT_MOVIE_URL_TEMPLATE = (
    "https://starlite.best/api/stream/{username}/{password}/movie/{imdbId}"
)


@dataclass(frozen=True)
class StreamUrlTemplate:
    """A URL template with named placeholders.

    Supported placeholders are ``{username}``, ``{password}``, ``{imdbId}``,
    ``{season}`` and ``{episode}``.

    Examples:
        >>> StreamUrlTemplate("https://x/{imdbId}/{season}").render(
        ...     imdbId="tt1", season=2
        ... )
        'https://x/tt1/2'

    Attributes:
        template_str: The raw template string.
        placeholders: Placeholder names in order of appearance.
    """

    template_str: str
    placeholders: tuple[str, ...]

    def __init__(self, template_str: str):
        """Parse and validate a template string.

        Args:
            template_str: Template with ``{name}`` placeholders.

        Raises:
            ValueError: If the template is empty or uses unknown placeholders.
        """
        stripped = template_str.strip()
        if not stripped:
            raise ValueError("URL template cannot be empty")

        names = tuple(_PLACEHOLDER_PATTERN.findall(stripped))
        unknown = sorted(set(names) - SUPPORTED_PLACEHOLDERS)
        if unknown:
            raise ValueError(
                f"Unknown placeholder(s) {unknown} in URL template '{stripped}'. "
                f"Supported: {sorted(SUPPORTED_PLACEHOLDERS)}"
            )

        object.__setattr__(self, "template_str", stripped)
        object.__setattr__(self, "placeholders", names)

    def render(self, **values: str | int) -> str:
        """Substitute every placeholder with its value.

        Args:
            **values: Placeholder values keyed by placeholder name. Extra keys
                are ignored, so one set of values can serve several templates.

        Returns:
            The rendered URL.

        Raises:
            ValueError: If a placeholder used by the template has no value.
        """
        missing = sorted(set(self.placeholders) - values.keys())
        if missing:
            raise ValueError(f"Missing values for URL placeholder(s) {missing}")
        return _PLACEHOLDER_PATTERN.sub(
            lambda m: str(values[m.group(1)]), self.template_str
        )

    def __str__(self) -> str:
        """Return the raw template string."""
        return self.template_str
