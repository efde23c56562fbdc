# spot_deals/scrapers/base_scraper.py

"""Shared HTTP plumbing for the upstream JSON sources."""

import json
import logging
from typing import Any

from curl_cffi import requests as curl_requests

from spot_deals.config.settings import Settings


def merge_headers(
    defaults: dict[str, str],
    overrides: dict[str, str] | None = None,
) -> dict[str, str]:
    """Overlay *overrides* on *defaults*, matching header names case-insensitively."""
    merged = dict(defaults)
    for name, value in (overrides or {}).items():
        for existing in [k for k in merged if k.lower() == name.lower()]:
            del merged[existing]
        merged[name] = value
    return merged


class FetchError(Exception):
    """An upstream request failed or returned an unusable body."""


class BaseScraper:
    """Base class owning one curl_cffi session per instance.

    Sessions are not shared between threads, so the aggregator builds a
    fresh scraper for every concurrent region fetch.
    """

    error_cls: type[FetchError] = FetchError

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"spot_deals.{source_name}"
        )
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = (
            self.settings.REQUEST_TIMEOUT
        )

    def _fetch_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET *url* once and decode the JSON body.

        There is no retry: a failure surfaces as ``error_cls`` and the
        caller decides what it means for the run.
        """
        merged_headers = merge_headers(
            self.settings.DEFAULT_HEADERS, headers
        )
        try:
            resp = self.session.get(
                url,
                params=params,
                headers=merged_headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            msg = f"[{self.source_name}] Request to {url} failed: {exc}"
            raise self.error_cls(msg) from exc

        if resp.status_code != 200:
            msg = (
                f"[{self.source_name}] HTTP {resp.status_code} "
                f"from {url}"
            )
            raise self.error_cls(msg)

        try:
            return json.loads(resp.text)
        except ValueError as exc:
            msg = f"[{self.source_name}] Unparseable JSON from {url}"
            raise self.error_cls(msg) from exc

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()
