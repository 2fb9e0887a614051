"""HTTP server module for strmarr.

This module provides the FastAPI-based HTTP server that receives catalog
webhooks and exposes on-demand sweeps and a health check.
"""

from .server import create_server

__all__ = ["create_server"]
