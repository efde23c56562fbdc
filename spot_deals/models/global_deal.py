# spot_deals/models/global_deal.py

"""Leaderboard entry model: a region's best offer."""

from dataclasses import dataclass
from typing import Any

from spot_deals.models.offer import Offer, parse_vcpus


@dataclass(frozen=True)
class GlobalDeal:
    """One region's lowest price-per-vCPU offer, tagged with its region."""

    instance_type: str
    vcpus: int
    memory: str
    price: float
    region: str

    @property
    def price_per_vcpu(self) -> float:
        return self.price / self.vcpus

    @classmethod
    def from_offer(cls, offer: Offer, region: str) -> "GlobalDeal":
        """Promote a region's best offer to a leaderboard entry."""
        return cls(
            instance_type=offer.instance_type,
            vcpus=offer.vcpus,
            memory=offer.memory,
            price=offer.price,
            region=region,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GlobalDeal":
        """Parse a persisted leaderboard entry (camelCase keys)."""
        return cls(
            instance_type=str(data["instanceType"]),
            vcpus=parse_vcpus(data["cpus"]),
            memory=str(data.get("memory") or ""),
            price=float(data["price"]),
            region=str(data["region"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "instanceType": self.instance_type,
            "cpus": self.vcpus,
            "memory": self.memory,
            "price": self.price,
            "pricePerVCPU": self.price_per_vcpu,
            "region": self.region,
        }
