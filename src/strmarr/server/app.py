"""FastAPI application factory for the strmarr HTTP server.

This module provides the factory function for creating and configuring the
FastAPI application instance with its middleware, exception handlers and
routers.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..exceptions import (
    CatalogApiError,
    UnsupportedOperationError,
    WebhookPayloadError,
)
from ..logging_config import get_context_id, set_context_id
from ..reconciler import ReconciliationEngine
from ..webhook_orchestrator import WebhookOrchestrator
from .routers import health, sweeps, webhooks

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every log line of a request with its correlation id.

    The id is taken from the ``X-Correlation-ID`` request header, or generated
    when absent, and echoed back in the response header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Set the request's context id and echo it in the response."""
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex
        set_context_id(correlation_id)
        response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request and log details.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint to call.

        Returns:
            The HTTP response.
        """
        logger.debug(
            "HTTP request received.",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None,
            },
        )

        response = await call_next(request)

        logger.info(
            "HTTP response sent.",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
            },
        )

        return response


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": str(exc),
            "error_type": type(exc).__name__,
            "correlation_id": get_context_id(),
        },
    )


async def _bad_request_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    logger.warning(
        "Rejected invalid request.", extra={"path": request.url.path}, exc_info=exc
    )
    return _error_response(400, exc)


async def _unsupported_operation_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    logger.info("Unsupported operation requested.", extra={"path": request.url.path})
    return _error_response(404, exc)


async def _catalog_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Catalog request failed while handling HTTP request.",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return _error_response(502, exc)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error while handling HTTP request.",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return _error_response(500, exc)


def create_app(
    engine: ReconciliationEngine,
    webhook_orchestrator: WebhookOrchestrator,
    shutdown_callback: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        engine: The reconciliation engine.
        webhook_orchestrator: The webhook orchestrator.
        shutdown_callback: Optional callback run when the app shuts down.

    Returns:
        Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
        """Handle application lifespan events."""
        try:
            yield
        finally:
            if shutdown_callback:
                await shutdown_callback()

    app = FastAPI(
        title="strmarr",
        description="Keeps .strm stream files in sync with Sonarr and Radarr",
        version="0.1.0",
        lifespan=lifespan,
    )

    # last added runs first: correlation id must be set before request logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    app.add_exception_handler(WebhookPayloadError, _bad_request_handler)
    app.add_exception_handler(ValueError, _bad_request_handler)
    app.add_exception_handler(UnsupportedOperationError, _unsupported_operation_handler)
    app.add_exception_handler(CatalogApiError, _catalog_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.state.engine = engine
    app.state.webhook_orchestrator = webhook_orchestrator

    app.include_router(webhooks.router, tags=["webhooks"])
    app.include_router(sweeps.router, tags=["sweeps"])
    app.include_router(health.router, tags=["health"])

    logger.debug("FastAPI application created successfully.")

    return app
