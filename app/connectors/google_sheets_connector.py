"""
app/connectors/google_sheets_connector.py

Google Sheets connector for the product inventory feed.

Reads one A1 range through the Sheets v4 ``values.get`` REST endpoint and
returns unformatted cell values: no currency symbols or thousands
separators. Numbers arrive as JSON numbers and are turned
into strings here. Trailing empty cells are omitted by the API, so rows may
be shorter than the range is wide.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

from app.config import ExternalHTTPSettings, GoogleSheetsSettings
from app.connectors.base import BaseConnector, ConnectorRequestError
from app.domain.inventory import FeedSnapshot

logger = logging.getLogger(__name__)


class GoogleSheetsConnector(BaseConnector):
    """
    Connector for the product rows kept in a Google spreadsheet.
    """

    def __init__(
        self,
        *,
        settings: GoogleSheetsSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="google_sheets", http_settings=http_settings, session=session)
        if not settings.spreadsheet_id:
            raise ValueError("GOOGLE_SHEET_ID is required for the Google Sheets connector.")
        if not settings.api_key and not settings.access_token:
            raise ValueError(
                "Google Sheets credentials missing. Set GOOGLE_SHEETS_API_KEY or "
                "GOOGLE_SHEETS_ACCESS_TOKEN."
            )
        self._settings = settings

    def fetch_snapshot(self) -> FeedSnapshot:
        rows = self._fetch_range(self._settings.data_range)
        header: list[str] | None = None
        if self._settings.header_range:
            header_rows = self._fetch_range(self._settings.header_range)
            header = header_rows[0] if header_rows else []

        logger.info(
            "Sheet fetched source=%s range=%s rows=%s header=%s",
            self.source,
            self._settings.data_range,
            len(rows),
            header is not None,
        )
        return FeedSnapshot(rows=rows, header=header)

    def _fetch_range(self, a1_range: str) -> list[list[str]]:
        payload = self._request_json(
            method="GET",
            url=self._values_url(a1_range),
            params=self._query_params(),
            headers=self._auth_headers(),
        )
        return self._parse_values(payload, a1_range)

    def _values_url(self, a1_range: str) -> str:
        base_url = self._settings.base_url.rstrip("/")
        return (
            f"{base_url}/spreadsheets/{quote(self._settings.spreadsheet_id, safe='')}"
            f"/values/{quote(a1_range, safe='')}"
        )

    def _query_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "majorDimension": "ROWS",
            "valueRenderOption": "UNFORMATTED_VALUE",
        }
        if self._settings.api_key and not self._settings.access_token:
            params["key"] = self._settings.api_key
        return params

    def _auth_headers(self) -> dict[str, str] | None:
        if self._settings.access_token:
            return {"Authorization": f"Bearer {self._settings.access_token}"}
        return None

    def _parse_values(self, payload: Any, a1_range: str) -> list[list[str]]:
        if not isinstance(payload, dict):
            raise ConnectorRequestError(f"{self.source}: unexpected payload for range {a1_range}.")

        # An empty range comes back without a "values" key at all.
        values = payload.get("values")
        if values is None:
            return []
        if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
            raise ConnectorRequestError(f"{self.source}: malformed values for range {a1_range}.")

        return [["" if cell is None else str(cell) for cell in row] for row in values]
