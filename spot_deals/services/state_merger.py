# spot_deals/services/state_merger.py

"""Reconciles a freshly aggregated dataset with the persisted one."""

import json
import logging
from dataclasses import dataclass

from spot_deals.filters.offer_filter import OfferFilter
from spot_deals.models.global_deal import GlobalDeal
from spot_deals.models.offer import Offer
from spot_deals.models.spot_dataset import SpotDataset

logger = logging.getLogger("spot_deals.merger")


@dataclass
class MergeResult:
    """Outcome of a merge: the dataset to persist and whether it moved."""

    dataset: SpotDataset
    changed: bool


def _deals_json(deals: list[GlobalDeal]) -> str:
    return json.dumps([d.to_dict() for d in deals], sort_keys=True)


class StateMerger:
    """Carry-over merge that never erases regions a run failed to fetch.

    Policy:
    - A region only in the old dataset is kept as is.
    - A region fetched with zero qualifying offers becomes empty.
    - Otherwise offers are matched by instance type: new values replace
      old ones in place, old-only offers stay, new-only offers are
      appended, then the list is re-ranked by price-per-vCPU.
    - The leaderboard is taken from the new run when it differs.
    - The timestamp only advances when regions or leaderboard changed,
      so an unchanged upstream produces ``changed=False``.
    """

    @staticmethod
    def merge_offers(
        old_offers: list[Offer],
        new_offers: list[Offer],
    ) -> list[Offer]:
        """Reconcile one region's offers keyed by instance type."""
        merged = list(old_offers)
        index = {o.instance_type: i for i, o in enumerate(merged)}
        for offer in new_offers:
            pos = index.get(offer.instance_type)
            if pos is None:
                index[offer.instance_type] = len(merged)
                merged.append(offer)
            else:
                merged[pos] = offer
        return OfferFilter.rank_by_price_per_vcpu(merged)

    def merge_regions(
        self,
        old_regions: dict[str, list[Offer]],
        new_regions: dict[str, list[Offer]],
    ) -> dict[str, list[Offer]]:
        merged: dict[str, list[Offer]] = {}
        for region in sorted(set(old_regions) | set(new_regions)):
            if region not in new_regions:
                merged[region] = list(old_regions[region])
                logger.debug(
                    "Region %s missing from this run, carried over",
                    region,
                )
            elif not new_regions[region]:
                merged[region] = []
                if old_regions.get(region):
                    logger.info(
                        "Region %s now has no qualifying offers",
                        region,
                    )
            elif region in old_regions:
                merged[region] = self.merge_offers(
                    old_regions[region], new_regions[region]
                )
            else:
                merged[region] = list(new_regions[region])
        return merged

    def merge(
        self,
        old: SpotDataset | None,
        new: SpotDataset,
    ) -> MergeResult:
        """Combine *old* (may be ``None``) with *new*."""
        if old is None:
            logger.info("No previous dataset, using fresh snapshot")
            return MergeResult(dataset=new, changed=True)

        regions = self.merge_regions(old.regions, new.regions)

        if _deals_json(old.global_top_5) != _deals_json(new.global_top_5):
            top = list(new.global_top_5)
        else:
            top = list(old.global_top_5)

        merged = SpotDataset(
            last_updated=old.last_updated,
            regions=regions,
            global_top_5=top,
        )
        if merged.same_as(old):
            logger.info("Merge complete: no changes since %s", old.last_updated)
            return MergeResult(dataset=merged, changed=False)

        merged.last_updated = new.last_updated
        logger.info(
            "Merge complete: %d regions, updated %s",
            len(regions),
            merged.last_updated,
        )
        return MergeResult(dataset=merged, changed=True)
