"""Stream link validation.

This module provides the LinkValidator, which probes a stream URL with a HEAD
request to decide whether the provider can currently serve it.
"""

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ERROR_HOST_MARKER = "error.starlite.best"
DEFAULT_VALIDATION_TIMEOUT_SECONDS = 10.0


class LinkValidator:
    """Probe stream URLs for availability.

    A link is valid iff the probe returns a success status and the final
    (post-redirect) URL does not contain the provider's error-host marker.
    Timeouts, transport errors and non-success statuses all mean "invalid";
    they are expected outcomes and never raised. Cancellation of the caller
    still propagates.

    Attributes:
        _client: Shared HTTP client used for probes.
        _timeout_seconds: Local deadline of one probe.
        _error_host_marker: Substring identifying the provider's error page.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_VALIDATION_TIMEOUT_SECONDS,
        error_host_marker: str = DEFAULT_ERROR_HOST_MARKER,
    ):
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._error_host_marker = error_host_marker
        logger.debug(
            "LinkValidator initialized.",
            extra={
                "timeout_seconds": timeout_seconds,
                "error_host_marker": error_host_marker,
            },
        )

    async def is_valid(self, url: str) -> bool:
        """Probe ``url`` and report whether it is currently playable.

        Args:
            url: The stream URL.

        Returns:
            True if the link is valid, False otherwise.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled.
        """
        # the URL embeds provider credentials, so only the host is logged
        try:
            log_params = {"host": httpx.URL(url).host}
        except httpx.InvalidURL as e:
            logger.warning(
                "Stream URL is malformed.", extra={"error": type(e).__name__}
            )
            return False

        try:
            async with asyncio.timeout(self._timeout_seconds):
                response = await self._client.head(url, follow_redirects=True)
        except TimeoutError:
            logger.warning(
                "Stream URL validation timed out.",
                extra={**log_params, "timeout_seconds": self._timeout_seconds},
            )
            return False
        except Exception as e:
            logger.warning(
                "Stream URL validation failed with an error.",
                extra={**log_params, "error": f"{type(e).__name__}: {e}"},
            )
            return False

        final_url = str(response.url)
        if self._error_host_marker and self._error_host_marker in final_url:
            logger.info(
                "Stream URL redirected to the provider error page.",
                extra={**log_params, "status_code": response.status_code},
            )
            return False

        if not response.is_success:
            logger.info(
                "Stream URL returned a non-success status.",
                extra={**log_params, "status_code": response.status_code},
            )
            return False

        logger.debug("Stream URL is valid.", extra=log_params)
        return True
