# spot_deals/models/offer.py

"""Spot offer data model shared by the fetcher, merger and store."""

import math
from dataclasses import dataclass
from typing import Any


def parse_percentage(text: str) -> float:
    """Parse a savings rate like ``'63%'`` into ``63.0``.

    Raises ``ValueError`` for non-numeric or non-finite input.
    """
    value = float(str(text).strip().removesuffix("%"))
    if not math.isfinite(value):
        msg = f"Non-finite percentage: {text!r}"
        raise ValueError(msg)
    return value


def parse_price(text: str) -> float:
    """Parse a spot price string like ``'0.0520'``.

    Raises ``ValueError`` for non-numeric, negative or non-finite input.
    """
    value = float(str(text).strip())
    if not math.isfinite(value) or value < 0:
        msg = f"Invalid price: {text!r}"
        raise ValueError(msg)
    return value


def parse_vcpus(raw: Any) -> int:
    """Coerce an upstream vCPU count to a positive integer."""
    if isinstance(raw, bool):
        msg = f"Invalid vCPU count: {raw!r}"
        raise ValueError(msg)
    if isinstance(raw, float) and not raw.is_integer():
        msg = f"Fractional vCPU count: {raw!r}"
        raise ValueError(msg)
    value = int(raw)
    if value <= 0:
        msg = f"vCPU count must be positive: {raw!r}"
        raise ValueError(msg)
    return value


@dataclass(frozen=True)
class Offer:
    """One instance type's current spot price in a region.

    The savings rate and spot price are kept exactly as the pricing
    source reported them so the persisted file mirrors upstream text.
    Numeric views are derived on access.
    """

    instance_type: str
    vcpus: int
    memory: str
    spot_saving_rate: str
    spot_price: str

    def __post_init__(self) -> None:
        if not self.instance_type:
            msg = "Offer requires an instance type"
            raise ValueError(msg)
        parse_vcpus(self.vcpus)
        parse_percentage(self.spot_saving_rate)
        parse_price(self.spot_price)

    @property
    def savings_ratio(self) -> float:
        return parse_percentage(self.spot_saving_rate)

    @property
    def price(self) -> float:
        return parse_price(self.spot_price)

    @property
    def price_per_vcpu(self) -> float:
        """Spot price divided by vCPU count, recomputed on every access."""
        return self.price / self.vcpus

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Offer":
        """Build an Offer from an ec2.shop record or a persisted entry.

        Raises ``ValueError``/``TypeError``/``KeyError`` when a field is
        missing or malformed.
        """
        return cls(
            instance_type=str(data["InstanceType"]),
            vcpus=parse_vcpus(data["VCPUS"]),
            memory=str(data.get("Memory") or ""),
            spot_saving_rate=str(data["SpotSavingRate"]),
            spot_price=str(data["SpotPrice"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the capitalised keys the display layer reads."""
        return {
            "InstanceType": self.instance_type,
            "VCPUS": self.vcpus,
            "Memory": self.memory,
            "SpotSavingRate": self.spot_saving_rate,
            "SpotPrice": self.spot_price,
        }
