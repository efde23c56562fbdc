# spot_deals/services/aggregator.py

"""Concurrent per-region fan-out and global leaderboard construction."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from spot_deals.config.settings import Settings
from spot_deals.models.global_deal import GlobalDeal
from spot_deals.models.offer import Offer
from spot_deals.models.spot_dataset import SpotDataset
from spot_deals.scrapers.price_fetcher import RegionPriceFetcher

logger = logging.getLogger("spot_deals.aggregator")


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format *moment* (default: now) as ``YYYY-MM-DDTHH:MM:SSZ``."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_leaderboard(
    regions: dict[str, list[Offer]],
    top_n: int,
) -> list[GlobalDeal]:
    """Rank each non-empty region's best offer and keep the first *top_n*.

    Regions are visited in sorted order before the stable sort so that
    price ties resolve the same way on every run.
    """
    pool = [
        GlobalDeal.from_offer(offers[0], region)
        for region, offers in sorted(regions.items())
        if offers
    ]
    pool.sort(key=lambda d: d.price_per_vcpu)
    return pool[:top_n]


class Aggregator:
    """Fans out one fetch per region and collects a :class:`SpotDataset`.

    Fetches run in worker threads behind a semaphore so at most
    ``Settings.MAX_CONCURRENCY`` requests are in flight.  Each task hands
    its result back to the coordinating coroutine through
    ``asyncio.gather``; nothing shared is mutated while a request is
    outstanding.
    """

    def __init__(
        self,
        fetcher_factory: Callable[[], Any] = RegionPriceFetcher,
        max_concurrency: int | None = None,
    ) -> None:
        self.settings = Settings()
        self._fetcher_factory = fetcher_factory
        self._max_concurrency = max(
            1, max_concurrency or self.settings.MAX_CONCURRENCY
        )
        self.failed_regions: list[str] = []

    # ── Private helpers ──────────────────────────────────

    def _fetch_one(self, region_id: str) -> list[Offer]:
        """Blocking fetch for one region with its own HTTP session."""
        fetcher = self._fetcher_factory()
        try:
            offers: list[Offer] = fetcher.fetch_region(region_id)
            return offers
        finally:
            close = getattr(fetcher, "close", None)
            if close is not None:
                close()

    async def _run_fetchers(
        self,
        region_ids: list[str],
    ) -> tuple[dict[str, list[Offer]], list[str]]:
        """Dispatch all region fetches and collect their outcomes.

        Returns the successful snapshots and the failed region ids.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run_one(region_id: str) -> list[Offer]:
            async with semaphore:
                return await asyncio.to_thread(
                    self._fetch_one, region_id
                )

        outcomes = await asyncio.gather(
            *(run_one(r) for r in region_ids),
            return_exceptions=True,
        )

        snapshots: dict[str, list[Offer]] = {}
        failed: list[str] = []
        for region_id, outcome in zip(region_ids, outcomes):
            if isinstance(outcome, BaseException):
                failed.append(region_id)
                logger.error(
                    "Error getting spot deals for region %s: %s",
                    region_id,
                    outcome,
                    exc_info=outcome,
                )
                continue
            snapshots[region_id] = outcome

        return snapshots, failed

    # ── Public API ───────────────────────────────────────

    async def aggregate(self, region_ids: list[str]) -> SpotDataset:
        """Fetch every region concurrently and build this run's dataset.

        Failed regions are left out of the mapping entirely; regions
        with no qualifying offers are kept as empty lists.
        """
        started = utc_timestamp()
        unique_ids = list(dict.fromkeys(region_ids))
        logger.info(
            "Aggregating %d regions (max %d in flight)",
            len(unique_ids),
            self._max_concurrency,
        )

        snapshots, self.failed_regions = await self._run_fetchers(
            unique_ids
        )
        top = build_leaderboard(snapshots, self.settings.TOP_N)

        if self.failed_regions:
            logger.warning(
                "%d of %d region fetches failed: %s",
                len(self.failed_regions),
                len(unique_ids),
                ", ".join(self.failed_regions),
            )
        logger.info(
            "Aggregated %d regions, leaderboard has %d entries",
            len(snapshots),
            len(top),
        )

        return SpotDataset(
            last_updated=started,
            regions=snapshots,
            global_top_5=top,
        )
