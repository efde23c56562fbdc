# spot_deals/services/health_checker.py

"""Upstream endpoint connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass
from urllib.parse import urlencode

from curl_cffi import requests as curl_requests

from spot_deals.config.settings import Settings
from spot_deals.scrapers.base_scraper import merge_headers

logger = logging.getLogger("spot_deals.health")


@dataclass
class HealthResult:
    """Result of a single endpoint health check."""

    endpoint: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_endpoint(name: str, url: str) -> HealthResult:
    """GET *url* once and classify the response."""
    session = curl_requests.Session(
        impersonate=Settings.IMPERSONATE_BROWSER
    )
    start = time.monotonic()
    try:
        resp = session.get(
            url,
            headers=merge_headers(
                Settings.DEFAULT_HEADERS, {"accept": "json"}
            ),
            timeout=Settings.HEALTH_TIMEOUT,
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        if resp.status_code != 200:
            return HealthResult(
                endpoint=name,
                status="down",
                latency_ms=elapsed_ms,
                message=f"HTTP {resp.status_code}",
            )

        if elapsed_ms > Settings.HEALTH_SLOW_MS:
            return HealthResult(
                endpoint=name,
                status="slow",
                latency_ms=elapsed_ms,
                message="High latency",
            )

        return HealthResult(
            endpoint=name,
            status="ok",
            latency_ms=elapsed_ms,
            message="",
        )

    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            endpoint=name,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    finally:
        session.close()


def default_endpoints() -> list[tuple[str, str]]:
    """The region directory and one representative pricing query."""
    query = urlencode({
        "region": Settings.HEALTH_PROBE_REGION,
        "filter": Settings.pricing_filter(),
    })
    return [
        ("regions", Settings.REGIONS_URL),
        ("ec2shop", f"{Settings.PRICING_URL}?{query}"),
    ]


class HealthChecker:
    """Runs concurrent health probes against the upstream endpoints."""

    def __init__(
        self, endpoints: list[tuple[str, str]] | None = None,
    ) -> None:
        self.endpoints = endpoints or default_endpoints()

    async def check_all(self) -> list[HealthResult]:
        """Probe every endpoint concurrently."""
        tasks = [
            asyncio.to_thread(probe_endpoint, name, url)
            for name, url in self.endpoints
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.endpoint,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
