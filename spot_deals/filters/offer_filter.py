# spot_deals/filters/offer_filter.py

"""Savings-threshold filtering and price-per-vCPU ranking of offers."""

import logging

from spot_deals.models.offer import Offer

logger = logging.getLogger("spot_deals.filters")


class OfferFilter:
    """Keep high-savings offers and order them by cost efficiency."""

    @staticmethod
    def filter_by_savings(
        offers: list[Offer],
        threshold: float,
    ) -> tuple[list[Offer], int]:
        """Drop offers whose savings ratio is not strictly above *threshold*.

        Returns the kept offers and the count of excluded ones.
        """
        kept: list[Offer] = []
        excluded = 0
        for offer in offers:
            if offer.savings_ratio > threshold:
                kept.append(offer)
            else:
                excluded += 1

        if excluded:
            logger.debug(
                "Savings filter excluded %d offers at <= %.0f%%",
                excluded,
                threshold,
            )

        return kept, excluded

    @staticmethod
    def rank_by_price_per_vcpu(offers: list[Offer]) -> list[Offer]:
        """Return a new list sorted ascending by price-per-vCPU.

        ``sorted`` is stable, so ties keep their upstream order.
        """
        return sorted(offers, key=lambda o: o.price_per_vcpu)
