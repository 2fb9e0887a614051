"""Bounded retry execution for catalog API calls.

This module provides the RetryExecutor, which runs an async operation and
retries it after transient failures using a fixed table of delays, plus the
error classification that decides what counts as transient.
"""

import asyncio
from collections.abc import Awaitable, Callable, Collection
import errno
import logging

import httpx

from .exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5
DEFAULT_DELAYS_MS: tuple[int, ...] = (2000, 3000, 5000, 8000, 10000)
DEFAULT_RETRY_STATUS_CODES = frozenset({404, 503})

TRANSIENT_ERRNOS = frozenset(
    {
        errno.ECONNRESET,
        errno.ECONNREFUSED,
        errno.ETIMEDOUT,
        errno.ENETUNREACH,
        errno.EAGAIN,
        errno.EWOULDBLOCK,
    }
)

_TRANSIENT_HTTPX_ERRORS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.RemoteProtocolError,
)


def is_transient_error(exc: BaseException) -> bool:
    """Classify a failure as transient (worth retrying) or not.

    The exception chain is searched for an OSError carrying an errno; if one
    is found it decides on its own (connection reset, refused, timed out,
    network unreachable, and try-again/would-block are transient; anything
    else, such as a DNS or TLS failure, is not). Without an errno, httpx
    timeouts and connection-level errors are treated as transient.

    Args:
        exc: The exception to classify.

    Returns:
        True if the failure should be retried.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError) and current.errno is not None:
            return current.errno in TRANSIENT_ERRNOS
        current = current.__cause__ or current.__context__

    return isinstance(exc, (*_TRANSIENT_HTTPX_ERRORS, TimeoutError))


class RetryExecutor:
    """Execute async operations with bounded retries.

    The delay before retry ``i`` (0-based) is ``delays_ms[min(i, len - 1)]``.
    Cancellation is never caught: a cancelled attempt or a cancelled delay
    aborts immediately and does not count as a retry.

    Attributes:
        _max_retries: Retries allowed after the first attempt.
        _delays_ms: Delay table in milliseconds.
        _retry_status_codes: Default HTTP statuses that trigger a retry.
        _sleep: Awaitable sleep function, replaceable in tests.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        delays_ms: Collection[int] = DEFAULT_DELAYS_MS,
        retry_status_codes: Collection[int] = DEFAULT_RETRY_STATUS_CODES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {max_retries}")
        if not delays_ms:
            raise ValueError("delays_ms must contain at least one delay")
        self._max_retries = max_retries
        self._delays_ms = tuple(delays_ms)
        self._retry_status_codes = frozenset(retry_status_codes)
        self._sleep = sleep
        logger.debug(
            "RetryExecutor initialized.",
            extra={
                "max_retries": max_retries,
                "delays_ms": list(self._delays_ms),
                "retry_status_codes": sorted(self._retry_status_codes),
            },
        )

    @property
    def max_retries(self) -> int:
        """Retries allowed after the first attempt."""
        return self._max_retries

    def delay_ms(self, retry_index: int) -> int:
        """Return the delay in milliseconds before retry ``retry_index``."""
        return self._delays_ms[min(retry_index, len(self._delays_ms) - 1)]

    async def execute[T](
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str,
        is_retryable: Callable[[Exception], bool] = is_transient_error,
    ) -> T:
        """Run ``operation``, retrying retryable failures.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt.
            operation_name: Name used in logs and errors.
            is_retryable: Classifier deciding whether a failure is retried.

        Returns:
            The operation's result.

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable
                error; the last failure is chained as the cause.
            Exception: A non-retryable failure, re-raised unchanged.
        """
        total_attempts = self._max_retries + 1
        last_error: Exception | None = None

        for attempt in range(total_attempts):
            log_params = {
                "operation": operation_name,
                "attempt": attempt + 1,
                "max_attempts": total_attempts,
            }
            logger.debug("Executing operation.", extra=log_params)
            try:
                return await operation()
            except Exception as e:
                if not is_retryable(e):
                    raise
                last_error = e

            if attempt < self._max_retries:
                delay = self.delay_ms(attempt)
                logger.warning(
                    "Operation failed with a retryable error, retrying after delay.",
                    extra={
                        **log_params,
                        "delay_ms": delay,
                        "error": f"{type(last_error).__name__}: {last_error}",
                    },
                )
                await self._sleep(delay / 1000)

        logger.error(
            "Operation failed after all retries.",
            extra={"operation": operation_name, "attempts": total_attempts},
        )
        raise RetryExhaustedError(
            f"Failed {operation_name} after {total_attempts} attempts.",
            operation=operation_name,
            attempts=total_attempts,
        ) from last_error

    async def execute_http(
        self,
        request: Callable[[], Awaitable[httpx.Response]],
        operation_name: str,
        retry_status_codes: Collection[int] | None = None,
    ) -> httpx.Response:
        """Send an HTTP request, retrying retryable statuses and transport errors.

        Success statuses are returned. Statuses in the retryable set are
        retried; every other non-success status raises immediately. Transport
        errors are retried only when ``is_transient_error`` says so.

        Args:
            request: Zero-argument callable sending the request.
            operation_name: Name used in logs and errors.
            retry_status_codes: Statuses to retry; defaults to the executor's
                set. An empty collection disables status retries.

        Returns:
            The successful response.

        Raises:
            httpx.HTTPStatusError: For a non-retryable non-success status.
            httpx.HTTPError: For a non-transient transport failure.
            RetryExhaustedError: When retries are exhausted.
        """
        status_codes = (
            self._retry_status_codes
            if retry_status_codes is None
            else frozenset(retry_status_codes)
        )

        async def attempt() -> httpx.Response:
            response = await request()
            if not response.is_success:
                response.raise_for_status()
            return response

        def is_retryable(exc: Exception) -> bool:
            match exc:
                case httpx.HTTPStatusError():
                    return exc.response.status_code in status_codes
                case _:
                    return is_transient_error(exc)

        return await self.execute(attempt, operation_name, is_retryable)
