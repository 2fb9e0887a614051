"""Dependency provider functions for FastAPI endpoints.

This module contains functions that retrieve dependencies from the
application state for use in FastAPI endpoints via the Depends system.
"""

from typing import Annotated

from fastapi import Depends, Request

from strmarr.reconciler import ReconciliationEngine
from strmarr.webhook_orchestrator import WebhookOrchestrator


def get_engine(request: Request) -> ReconciliationEngine:
    """Return the shared :class:`ReconciliationEngine` from application state.

    Args:
        request: Incoming FastAPI request.

    Returns:
        Engine stored on ``app.state``.
    """
    return request.app.state.engine


def get_webhook_orchestrator(request: Request) -> WebhookOrchestrator:
    """Return the :class:`WebhookOrchestrator` bound to the app.

    Args:
        request: Incoming FastAPI request.

    Returns:
        Webhook orchestrator stored on ``app.state``.
    """
    return request.app.state.webhook_orchestrator


EngineDep = Annotated[ReconciliationEngine, Depends(get_engine)]
WebhookOrchestratorDep = Annotated[
    WebhookOrchestrator, Depends(get_webhook_orchestrator)
]
