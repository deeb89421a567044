"""Google Sheets REST connector: fetches value ranges and normalizes them."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from commercial_intel.analytics.records import DemoLoanRecord, LeadRecord, TransactionRecord
from commercial_intel.ingestion import row_normalizer

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class SheetsError(Exception):
    """The Sheets API rejected a request or returned no data."""


class SheetsClient:
    """Read-only client for the Sheets ``values`` endpoint.

    Args:
        api_key: API key with Sheets read access.
        sheet_id: Spreadsheet ID.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str,
        sheet_id: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        ranges: dict[str, str] | None = None,
    ) -> None:
        if not api_key or not sheet_id:
            raise SheetsError("Sheets API key and spreadsheet ID must be configured")
        self.api_key = api_key
        self.sheet_id = sheet_id
        self.timeout = timeout
        self._transport = transport
        self.ranges = {
            "sales": "VENDAS!A:J",
            "history": "HVENDAS!A:K",
            "demo_loans": "DEMONS_COMODATOS!A:I",
            "leads": "LEADS!A:K",
            **(ranges or {}),
        }

    def _url(self, value_range: str) -> str:
        return f"{SHEETS_API_URL}/{self.sheet_id}/values/{quote(value_range, safe='!:')}"

    async def fetch_values(self, value_range: str) -> list[list[Any]]:
        """Raw rows of *value_range*, header included.

        Raises:
            SheetsError: on HTTP errors (with the API's message), transport
                failures, or when the range holds no rows.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self._url(value_range), params={"key": self.api_key})
        except httpx.HTTPError as exc:
            raise SheetsError(f"Could not reach Google Sheets: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.is_error:
            message = (data.get("error") or {}).get("message") if isinstance(data, dict) else None
            raise SheetsError(message or f"Google Sheets returned HTTP {resp.status_code}")

        values = data.get("values") if isinstance(data, dict) else None
        if not values:
            raise SheetsError(f"No data found in range {value_range}")

        logger.info("Fetched %d rows from %s", len(values), value_range)
        return values

    async def test_connection(self) -> bool:
        """True when the sales header row can be read."""
        sheet = self.ranges["sales"].split("!")[0]
        try:
            await self.fetch_values(f"{sheet}!A1:J1")
        except SheetsError as exc:
            logger.warning("Sheets connection test failed: %s", exc)
            return False
        return True

    async def fetch_sales(self) -> list[TransactionRecord]:
        return row_normalizer.normalize_sales(await self.fetch_values(self.ranges["sales"]))

    async def fetch_history(self) -> list[TransactionRecord]:
        return row_normalizer.normalize_history(await self.fetch_values(self.ranges["history"]))

    async def fetch_demo_loans(self) -> list[DemoLoanRecord]:
        return row_normalizer.normalize_demo_loans(await self.fetch_values(self.ranges["demo_loans"]))

    async def fetch_leads(self) -> list[LeadRecord]:
        return row_normalizer.normalize_leads(await self.fetch_values(self.ranges["leads"]))
