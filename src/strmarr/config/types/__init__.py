"""Aggregated config data types."""

from .cron_expression import CronExpression
from .url_template import (
    DEFAULT_MOVIE_URL_TEMPLATE,
    DEFAULT_SERIES_URL_TEMPLATE,
    StreamUrlTemplate,
)

__all__ = [
    "DEFAULT_MOVIE_URL_TEMPLATE",
    "DEFAULT_SERIES_URL_TEMPLATE",
    "CronExpression",
    "StreamUrlTemplate",
]
