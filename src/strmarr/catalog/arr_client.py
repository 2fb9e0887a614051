"""Shared HTTP plumbing for the Sonarr and Radarr v3 APIs.

This module provides ArrApiClient, the base of the catalog clients. It owns
the httpx client, routes every request through the RetryExecutor, decodes
JSON bodies with pydantic, and implements the paginated wanted/missing query
both catalogs expose.
"""

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from ..exceptions import CatalogApiError, ConfigurationError, RetryExhaustedError
from ..retry_executor import RetryExecutor
from .types import ArrModel, WantedMissingPage

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_WANTED_PAGE_SIZE = 100


class ArrApiClient[R: ArrModel]:
    """Base client for an *arr v3 API.

    Subclasses bind ``R``, the record type of their wanted/missing query, and
    its server-side sort key.

    Attributes:
        service: Catalog name used in logs and errors ("sonarr" or "radarr").
        _retry: Executor applied to every request.
        _client: The underlying HTTP client.
    """

    service: str = "arr"
    wanted_record_type: type[R]
    wanted_sort_key: str

    def __init__(
        self,
        base_url: str | None,
        api_key: str | None,
        retry: RetryExecutor,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        if not base_url or not base_url.strip():
            raise ConfigurationError(
                f"{self.service} base URL is not configured.",
                setting_name=f"{self.service.upper()}_URL",
            )
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                f"{self.service} API key is not configured.",
                setting_name=f"{self.service.upper()}_API_KEY",
            )

        self._retry = retry
        self._client = httpx.AsyncClient(
            base_url=base_url.strip().rstrip("/"),
            headers={API_KEY_HEADER: api_key.strip(), "Accept": "application/json"},
            timeout=timeout_seconds,
        )
        logger.debug(
            "Catalog client initialized.",
            extra={"service": self.service, "base_url": str(self._client.base_url)},
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        retry_status_codes: set[int] | None = None,
    ) -> httpx.Response:
        """Send one request with retries.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            operation: Operation name used in logs and errors.
            params: Query parameters.
            json: JSON body.
            retry_status_codes: Override of the retryable statuses.

        Returns:
            The successful response.

        Raises:
            CatalogApiError: If the request fails or keeps failing.
        """
        log_params = {"service": self.service, "operation": operation, "path": path}
        logger.debug("Sending catalog request.", extra={**log_params, "method": method})

        async def request() -> httpx.Response:
            return await self._client.request(method, path, params=params, json=json)

        try:
            return await self._retry.execute_http(
                request,
                f"{self.service}.{operation}",
                retry_status_codes=retry_status_codes,
            )
        except RetryExhaustedError as e:
            status_code = (
                e.__cause__.response.status_code
                if isinstance(e.__cause__, httpx.HTTPStatusError)
                else None
            )
            raise CatalogApiError(
                "Catalog request kept failing after retries.",
                service=self.service,
                operation=operation,
                status_code=status_code,
            ) from e
        except httpx.HTTPStatusError as e:
            raise CatalogApiError(
                "Catalog request returned an error status.",
                service=self.service,
                operation=operation,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise CatalogApiError(
                "Catalog request failed.",
                service=self.service,
                operation=operation,
            ) from e

    async def _get_json[T](
        self,
        path: str,
        adapter: TypeAdapter[T],
        operation: str,
        params: dict[str, Any] | None = None,
    ) -> T:
        """GET ``path`` and validate the JSON body with ``adapter``.

        Raises:
            CatalogApiError: If the request fails or the body does not validate.
        """
        response = await self._send("GET", path, operation, params=params)
        try:
            return adapter.validate_json(response.content)
        except ValidationError as e:
            raise CatalogApiError(
                "Catalog returned an unexpected response body.",
                service=self.service,
                operation=operation,
                status_code=response.status_code,
            ) from e

    async def _put_resource(self, path: str, resource: ArrModel, operation: str) -> None:
        await self._send("PUT", path, operation, json=resource.to_payload())

    async def _send_command(self, body: dict[str, Any], operation: str) -> bool:
        """POST a command, reporting failure instead of raising.

        Commands such as rescans are best-effort follow-ups: a failure is
        logged and returned as False.

        Returns:
            True if the catalog accepted the command.
        """
        try:
            await self._send("POST", "/api/v3/command", operation, json=body)
        except CatalogApiError as e:
            logger.warning(
                "Catalog command failed.",
                extra={
                    "service": self.service,
                    "operation": operation,
                    "command": body.get("name"),
                    "status_code": e.status_code,
                },
                exc_info=e,
            )
            return False
        logger.info(
            "Catalog command queued.",
            extra={"service": self.service, "command": body.get("name")},
        )
        return True

    async def get_wanted_missing(
        self, page: int, page_size: int = DEFAULT_WANTED_PAGE_SIZE
    ) -> WantedMissingPage[R]:
        """Fetch one page of monitored wanted/missing records."""
        return await self._get_json(
            "/api/v3/wanted/missing",
            TypeAdapter(WantedMissingPage[self.wanted_record_type]),
            f"get_wanted_missing_page_{page}",
            params={
                "page": page,
                "pageSize": page_size,
                "sortKey": self.wanted_sort_key,
                "sortDirection": "descending",
                "monitored": "true",
            },
        )

    async def get_all_wanted_missing(
        self, page_size: int = DEFAULT_WANTED_PAGE_SIZE
    ) -> list[R]:
        """Fetch every monitored wanted/missing record.

        Pages are fetched from 1 until a page is empty or
        ``page * page_size >= total_records``. Records are filtered
        client-side to monitored ones, since the server-side filter is not
        always honoured.

        Args:
            page_size: Records per page.

        Returns:
            All monitored records, in page order.
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        records: list[R] = []
        page = 1
        while True:
            result = await self.get_wanted_missing(page, page_size)
            if not result.records:
                break

            monitored = [r for r in result.records if getattr(r, "monitored", False)]
            filtered = len(result.records) - len(monitored)
            logger.debug(
                "Fetched wanted/missing page.",
                extra={
                    "service": self.service,
                    "page": page,
                    "records": len(result.records),
                    "unmonitored_filtered": filtered,
                    "total_records": result.total_records,
                },
            )
            records.extend(monitored)

            if page * page_size >= result.total_records:
                break
            page += 1

        logger.info(
            "Fetched monitored wanted/missing records.",
            extra={"service": self.service, "count": len(records), "pages": page},
        )
        return records
