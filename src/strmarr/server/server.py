"""HTTP server initialization and configuration for strmarr.

This module provides the function that wraps the FastAPI application in a
configured uvicorn server.
"""

from collections.abc import Awaitable, Callable
import logging

import uvicorn

from ..config import AppSettings
from ..logging_config import LOGGING_CONFIG
from ..reconciler import ReconciliationEngine
from ..webhook_orchestrator import WebhookOrchestrator
from .app import create_app

logger = logging.getLogger(__name__)


def create_server(
    settings: AppSettings,
    engine: ReconciliationEngine,
    webhook_orchestrator: WebhookOrchestrator,
    shutdown_callback: Callable[[], Awaitable[None]] | None = None,
) -> uvicorn.Server:
    """Create and configure a uvicorn HTTP server with FastAPI app.

    Args:
        settings: Application settings containing server configuration.
        engine: The reconciliation engine.
        webhook_orchestrator: The webhook orchestrator.
        shutdown_callback: Optional callback to execute during shutdown.

    Returns:
        Configured uvicorn server ready to run.
    """
    logger.debug("Creating FastAPI application.")
    app = create_app(
        engine=engine,
        webhook_orchestrator=webhook_orchestrator,
        shutdown_callback=shutdown_callback,
    )

    config = uvicorn.Config(
        app=app,
        host=settings.server_host,
        port=settings.server_port,
        log_config=LOGGING_CONFIG,  # Use our own logging configuration
        access_log=False,  # We have our own logging middleware
        ws="none",
        lifespan="on",  # Enable lifespan for shutdown handling
    )
    server = uvicorn.Server(config)

    logger.debug(
        "HTTP server configured.",
        extra={"host": settings.server_host, "port": settings.server_port},
    )

    return server
