"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for feed connectors.

    ``max_retries`` defaults to 0: re-attempting a failed sync is the
    scheduler's decision, not the transport's.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 0
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class GoogleSheetsSettings:
    """
    Google Sheets feed connector settings.
    """

    spreadsheet_id: str = ""
    data_range: str = "Sheet1!A2:H1000"
    header_range: str | None = None
    api_key: str | None = None
    access_token: str | None = None
    base_url: str = "https://sheets.googleapis.com/v4"


@dataclass(frozen=True)
class InventorySyncSettings:
    """
    Runtime settings for the inventory sync workflow and its schedule.
    """

    batch_size: int = 100
    feed_layout: str = "v1"
    interval_minutes: int = 15
    max_retries: int = 3
    retry_delay_seconds: int = 60
    scheduler_enabled: bool = True


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 0)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_google_sheets_settings() -> GoogleSheetsSettings:
    """
    Return Google Sheets connector settings from environment variables.
    """

    return GoogleSheetsSettings(
        spreadsheet_id=_get_str_env("GOOGLE_SHEET_ID", ""),
        data_range=_get_str_env("GOOGLE_SHEET_RANGE", "Sheet1!A2:H1000"),
        header_range=_get_optional_str_env("GOOGLE_SHEET_HEADER_RANGE"),
        api_key=_get_optional_str_env("GOOGLE_SHEETS_API_KEY"),
        access_token=_get_optional_str_env("GOOGLE_SHEETS_ACCESS_TOKEN"),
        base_url=_get_str_env("GOOGLE_SHEETS_BASE_URL", "https://sheets.googleapis.com/v4"),
    )


@lru_cache(maxsize=1)
def get_inventory_sync_settings() -> InventorySyncSettings:
    """
    Return inventory sync settings from environment variables.
    """

    return InventorySyncSettings(
        batch_size=max(1, _get_int_env("INVENTORY_SYNC_BATCH_SIZE", 100)),
        feed_layout=_get_str_env("INVENTORY_FEED_LAYOUT", "v1"),
        interval_minutes=max(1, _get_int_env("INVENTORY_SYNC_INTERVAL_MINUTES", 15)),
        max_retries=max(0, _get_int_env("INVENTORY_SYNC_MAX_RETRIES", 3)),
        retry_delay_seconds=max(1, _get_int_env("INVENTORY_SYNC_RETRY_DELAY_SECONDS", 60)),
        scheduler_enabled=_get_bool_env("INVENTORY_SYNC_SCHEDULER_ENABLED", True),
    )
