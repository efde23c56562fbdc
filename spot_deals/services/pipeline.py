# spot_deals/services/pipeline.py

"""One end-to-end run: regions → fetch → merge → persist."""

import asyncio
import logging
from dataclasses import dataclass, field

from spot_deals.models.spot_dataset import SpotDataset
from spot_deals.scrapers.region_catalog import RegionCatalog
from spot_deals.services.aggregator import Aggregator
from spot_deals.services.state_merger import StateMerger
from spot_deals.storage.dataset_store import DatasetStore

logger = logging.getLogger("spot_deals.pipeline")


@dataclass
class PipelineResult:
    """Summary of a completed pipeline run."""

    dataset: SpotDataset
    changed: bool
    written: bool
    region_count: int
    failed_regions: list[str] = field(
        default_factory=lambda: list[str]()
    )


class SpotPipeline:
    """Coordinates the catalog, aggregator, merger and store.

    ``RegionCatalogError`` and ``DatasetStoreError`` propagate to the
    caller; per-region failures are absorbed by the aggregator.
    """

    def __init__(
        self,
        store: DatasetStore,
        catalog: RegionCatalog | None = None,
        aggregator: Aggregator | None = None,
        merger: StateMerger | None = None,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.aggregator = aggregator or Aggregator()
        self.merger = merger or StateMerger()

    async def _list_regions(self) -> list[str]:
        catalog = self.catalog or RegionCatalog()
        try:
            return await asyncio.to_thread(catalog.list_regions)
        finally:
            if self.catalog is None:
                catalog.close()

    async def run(self, dry_run: bool = False) -> PipelineResult:
        """Execute one refresh; skips the write when nothing changed."""
        regions = await self._list_regions()
        fresh = await self.aggregator.aggregate(regions)

        previous = await asyncio.to_thread(self.store.load)
        outcome = self.merger.merge(previous, fresh)

        written = False
        if not outcome.changed:
            logger.info("No changes in spot data. Skipping file write.")
        elif dry_run:
            logger.info("Dry run: changes detected but not written")
        else:
            await asyncio.to_thread(self.store.store, outcome.dataset)
            written = True

        return PipelineResult(
            dataset=outcome.dataset,
            changed=outcome.changed,
            written=written,
            region_count=len(regions),
            failed_regions=list(self.aggregator.failed_regions),
        )
