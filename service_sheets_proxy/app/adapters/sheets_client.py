"""
Google Sheets values API client for the Sheets Proxy Service.
"""

from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from shared.logging import get_logger
from shared.errors import ConfigurationError, UpstreamError, UpstreamErrorKind


class SheetsClient:
    """Single-attempt client for the Sheets values endpoint.

    Every call makes exactly one request. Retries and caching belong to the
    retrieval coordinator.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://sheets.googleapis.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("sheets_proxy.sheets_client")

    async def fetch_rows(self, spreadsheet_id: str, range_name: str) -> List[List[Any]]:
        """Fetch the raw ``values`` grid for a spreadsheet range."""
        if not self.api_key:
            raise ConfigurationError(
                "Google Sheets API key not configured. "
                "Please add GOOGLE_SHEETS_API_KEY to your environment variables.",
                details={"setting": "GOOGLE_SHEETS_API_KEY"},
            )

        url = f"{self.base_url}/v4/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(range_name, safe='')}"
        details = {"spreadsheet_id": spreadsheet_id, "range": range_name}
        self.logger.info("Requesting sheet values", url=f"{url}?key=API_KEY_HIDDEN")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    url,
                    params={"key": self.api_key},
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as exc:
            self.logger.error("Sheets API timed out", timeout=self.timeout, error=str(exc))
            raise UpstreamError(
                UpstreamErrorKind.TRANSIENT,
                f"Google Sheets API timed out after {self.timeout:g}s",
                details=details,
            ) from exc
        except httpx.HTTPError as exc:
            self.logger.error("Sheets API transport error", error=str(exc))
            raise UpstreamError(
                UpstreamErrorKind.TRANSIENT,
                f"Google Sheets API unreachable: {exc}",
                details=details,
            ) from exc

        self.logger.info("Sheets API responded", status_code=response.status_code)

        if not response.is_success:
            raise self._classify(response, details)

        try:
            payload = response.json()
        except ValueError as exc:
            self.logger.error("Sheets API returned invalid JSON", error=str(exc))
            raise UpstreamError(
                UpstreamErrorKind.TRANSIENT,
                "Google Sheets API returned an invalid response body",
                details=details,
            ) from exc

        rows = payload.get("values") if isinstance(payload, dict) else None
        rows = rows or []
        self.logger.info(
            "Raw sheet values received",
            total_rows=len(rows) if isinstance(rows, list) else 0,
            columns=len(rows[0]) if isinstance(rows, list) and rows and isinstance(rows[0], list) else 0,
        )
        return rows

    def _classify(self, response: httpx.Response, details: dict) -> UpstreamError:
        """Map a non-2xx response onto an upstream error kind."""
        status = response.status_code
        details = {**details, "status_code": status}
        self.logger.error("Sheets API error response", status_code=status, response=response.text[:500])

        if status == 403:
            return UpstreamError(
                UpstreamErrorKind.FORBIDDEN,
                "Access denied to Google Sheet. Please ensure the sheet's sharing settings "
                "grant access to the configured API key.",
                details=details,
            )
        if status == 404:
            return UpstreamError(
                UpstreamErrorKind.NOT_FOUND,
                "Google Sheet not found. Please verify the spreadsheet ID and sheet name.",
                details=details,
            )
        if status == 400:
            return UpstreamError(
                UpstreamErrorKind.TRANSIENT,
                "Invalid request to Google Sheets API. Please check the configuration.",
                details=details,
            )
        return UpstreamError(
            UpstreamErrorKind.TRANSIENT,
            f"Google Sheets API error: {status}",
            details=details,
        )
