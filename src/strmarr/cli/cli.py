"""Command-line interface entry point for strmarr.

This module provides the main CLI function that loads settings, configures
logging and runs the service.
"""

import logging

from ..config import AppSettings
from ..logging_config import setup_logging
from .default import default


async def main_cli():
    """Initialize and run the strmarr service.

    Loads application settings, sets up logging, and hands over to the
    default mode, which runs the scheduler and the HTTP server until shutdown.
    """
    settings = AppSettings()  # type: ignore

    setup_logging(
        log_format_type=settings.log_format,
        app_log_level_name=settings.log_level,
        include_stacktrace=settings.log_include_stacktrace,
    )

    logger = logging.getLogger(__name__)

    logger.debug(
        "Application logging configured.",
        extra={
            "log_format": settings.log_format,
            "log_level": settings.log_level,
            "include_stacktrace": settings.log_include_stacktrace,
        },
    )
    logger.debug(
        "Application settings loaded.",
        extra={
            "config_file": str(settings.config_file),
            "movies_enabled": settings.radarr_enabled,
            "validate_urls": settings.validate_urls,
        },
    )

    await default(settings)

    logger.debug("main_cli execution finished.")
