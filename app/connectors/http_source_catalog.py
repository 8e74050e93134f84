"""
app/connectors/http_source_catalog.py

Source catalog backed by public object storage over HTTP.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import requests

from app.config import SourceCatalogSettings
from app.connectors.base import BaseSourceCatalog, SourceFetchError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class HTTPSourceCatalog(BaseSourceCatalog):
    """
    Fetches ``{base_url}/{file_name}`` and parses the JSON body.
    """

    def __init__(
        self,
        *,
        base_url: str,
        settings: SourceCatalogSettings,
        file_names: Sequence[str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(file_names=file_names if file_names is not None else settings.file_names)
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_seconds = settings.timeout_seconds
        self._max_retries = settings.max_retries
        self._backoff_initial_seconds = settings.backoff_initial_seconds
        self._backoff_multiplier = settings.backoff_multiplier

    def file_url(self, name: str) -> str:
        return f"{self._base_url}/{name}"

    def fetch_file(self, name: str) -> list[dict[str, Any]]:
        self._require_known(name)
        response = self._request(url=self.file_url(name), name=name)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceFetchError(f"{name}: response was not valid JSON.") from exc
        records = self.parse_records(name, payload)
        logger.info("Fetched source file name=%s records=%s", name, len(records))
        return records

    def _request(self, *, url: str, name: str) -> requests.Response:
        """
        GET with exponential backoff on timeouts, connection errors and
        retryable status codes.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.get(url, timeout=self._timeout_seconds)
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Source fetch failed name=%s status=%s url=%s error=%s",
                        name,
                        status_code,
                        url,
                        exc,
                    )
                    raise SourceFetchError(f"{name}: fetch failed with status {status_code}.") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Source fetch retry name=%s attempt=%s/%s wait_seconds=%.2f",
                name,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)

        logger.error("Source fetch exhausted retries name=%s url=%s error=%s", name, url, last_error)
        raise SourceFetchError(f"{name}: fetch failed after retries.") from last_error
