"""
app/connectors/base.py

Base feed connector abstraction and shared HTTP mechanics.

Connectors make a single attempt per call unless ``EXTERNAL_HTTP_MAX_RETRIES``
asks for transport-level retries. Throttling and server errors (429, 5xx)
are the only statuses worth another attempt; a ``Retry-After`` header, when
present, overrides the exponential backoff delay.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import requests

from app.config import ExternalHTTPSettings
from app.domain.inventory import FeedSnapshot

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
MAX_RETRY_AFTER_SECONDS = 60.0


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class _TransientFailure(Exception):
    def __init__(self, cause: Exception, retry_after: float | None = None) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.retry_after = retry_after


def _parse_retry_after(response: requests.Response) -> float | None:
    raw_value = (response.headers or {}).get("Retry-After")
    if not raw_value:
        return None
    try:
        return min(MAX_RETRY_AFTER_SECONDS, max(0.0, float(raw_value)))
    except ValueError:
        return None


class BaseConnector(ABC):
    """
    Connector interface for reading raw rows from an external feed.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._http = http_settings
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0

    @abstractmethod
    def fetch_snapshot(self) -> FeedSnapshot:
        """
        Read the feed and return its raw rows.

        Must be idempotent: with no change upstream, repeated calls return
        the same rows.
        """

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self._request(method=method, url=url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(
                f"{self.source}: response was not valid JSON.",
                status_code=response.status_code,
            ) from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with rate limiting and optional backoff.

        ``max_retries`` of 0 means a single attempt.
        """

        attempts = self._http.max_retries + 1
        last_failure: _TransientFailure | None = None
        for attempt in range(attempts):
            try:
                return self._send(method=method, url=url, params=params, headers=headers)
            except _TransientFailure as failure:
                last_failure = failure

            if attempt + 1 >= attempts:
                break

            wait_seconds = (
                last_failure.retry_after
                if last_failure.retry_after is not None
                else self._backoff_seconds(attempt)
            )
            logger.warning(
                "Connector request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s error=%s",
                self.source,
                attempt + 1,
                self._http.max_retries,
                wait_seconds,
                url,
                last_failure,
            )
            time.sleep(wait_seconds)

        assert last_failure is not None
        logger.error(
            "Connector request gave up source=%s url=%s attempts=%s error=%s",
            self.source,
            url,
            attempts,
            last_failure,
        )
        status_code = getattr(getattr(last_failure.cause, "response", None), "status_code", None)
        raise ConnectorRequestError(
            f"{self.source}: request failed after {attempts} attempt(s).",
            status_code=status_code,
        ) from last_failure.cause

    def _send(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> requests.Response:
        """
        One rate-limited attempt. Transient failures raise ``_TransientFailure``.
        """

        self._apply_rate_limit()
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                timeout=self._http.timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise _TransientFailure(exc) from exc

        if response.status_code in RETRYABLE_STATUS_CODES:
            error = requests.HTTPError(
                f"Retryable HTTP status code: {response.status_code}",
                response=response,
            )
            raise _TransientFailure(error, retry_after=_parse_retry_after(response))

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.error(
                "Connector request failed source=%s status=%s url=%s error=%s",
                self.source,
                response.status_code,
                url,
                exc,
            )
            raise ConnectorRequestError(
                f"{self.source}: request failed with status {response.status_code}.",
                status_code=response.status_code,
            ) from exc
        return response

    def _backoff_seconds(self, attempt: int) -> float:
        return self._http.backoff_initial_seconds * (self._http.backoff_multiplier**attempt)

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests.
        """

        if self._min_request_interval_seconds <= 0:
            return

        now = time.monotonic()
        elapsed = now - self._last_request_monotonic
        remaining = self._min_request_interval_seconds - elapsed
        if remaining > 0:
            time.sleep(remaining)
        self._last_request_monotonic = time.monotonic()
