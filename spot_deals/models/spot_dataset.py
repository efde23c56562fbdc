# spot_deals/models/spot_dataset.py

"""The persisted dataset: per-region snapshots plus the leaderboard."""

import json
from dataclasses import dataclass, field
from typing import Any

from spot_deals.models.global_deal import GlobalDeal
from spot_deals.models.offer import Offer


@dataclass
class SpotDataset:
    """All spot deals produced by one pipeline run (or loaded from disk)."""

    last_updated: str
    regions: dict[str, list[Offer]] = field(
        default_factory=lambda: dict[str, list[Offer]]()
    )
    global_top_5: list[GlobalDeal] = field(
        default_factory=lambda: list[GlobalDeal]()
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpotDataset":
        """Parse the canonical JSON layout.

        Raises ``ValueError`` when the document does not have the
        expected shape.
        """
        if not isinstance(data, dict):
            msg = "Spot dataset must be a JSON object"
            raise ValueError(msg)
        raw_regions = data.get("regions") or {}
        raw_top = data.get("global_top_5") or []
        if not isinstance(raw_regions, dict) or not isinstance(
            raw_top, list
        ):
            msg = "Malformed 'regions' or 'global_top_5' section"
            raise ValueError(msg)
        try:
            regions = {
                str(region): [Offer.from_dict(o) for o in offers]
                for region, offers in raw_regions.items()
            }
            top = [GlobalDeal.from_dict(d) for d in raw_top]
        except (KeyError, TypeError, AttributeError) as exc:
            msg = f"Malformed spot dataset entry: {exc}"
            raise ValueError(msg) from exc
        return cls(
            last_updated=str(data.get("last_updated", "")),
            regions=regions,
            global_top_5=top,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": self.last_updated,
            "regions": {
                region: [o.to_dict() for o in offers]
                for region, offers in self.regions.items()
            },
            "global_top_5": [d.to_dict() for d in self.global_top_5],
        }

    def canonical_json(self) -> str:
        """Sorted-key, indented JSON used both on disk and for equality.

        Mapping key order does not affect the output; list order does.
        """
        return json.dumps(
            self.to_dict(),
            sort_keys=True,
            ensure_ascii=False,
            indent=2,
        )

    def same_as(self, other: "SpotDataset") -> bool:
        """Structural equality via the canonical form."""
        return self.canonical_json() == other.canonical_json()
