# spot_deals/scrapers/price_fetcher.py

"""Per-region spot price fetcher backed by the ec2.shop JSON API."""

from typing import Any

from spot_deals.filters.offer_filter import OfferFilter
from spot_deals.models.offer import Offer
from spot_deals.scrapers.base_scraper import BaseScraper, FetchError


class PriceFetchError(FetchError):
    """A single region's prices could not be fetched or parsed."""


class RegionPriceFetcher(BaseScraper):
    """Fetches, filters and ranks spot offers for one region.

    ec2.shop answers ``GET /?region=<id>&filter=ebs,cpu>=4,cpu<=32``
    with ``{"Prices": [...]}`` when asked for JSON.  Malformed records
    are dropped one by one; only transport or body-level problems fail
    the region.
    """

    error_cls = PriceFetchError

    def __init__(self) -> None:
        super().__init__("ec2shop")

    def fetch_region(self, region_id: str) -> list[Offer]:
        """Return qualifying offers for *region_id*, cheapest per vCPU first.

        An empty list means the region was checked and nothing qualified.
        """
        body = self._fetch_json(
            self.settings.PRICING_URL,
            params={
                "region": region_id,
                "filter": self.settings.pricing_filter(),
            },
            headers={"accept": "json"},
        )
        offers = self.parse_offers(body, region_id)
        kept, _excluded = OfferFilter.filter_by_savings(
            offers, self.settings.SAVINGS_THRESHOLD
        )
        ranked = OfferFilter.rank_by_price_per_vcpu(kept)
        self.logger.info(
            "[%s] %d of %d offers above %.0f%% savings",
            region_id,
            len(ranked),
            len(offers),
            self.settings.SAVINGS_THRESHOLD,
        )
        return ranked

    def parse_offers(self, body: Any, region_id: str) -> list[Offer]:
        """Parse the ``Prices`` array, skipping malformed records."""
        if not isinstance(body, dict) or not isinstance(
            body.get("Prices"), list
        ):
            msg = f"[ec2shop] No 'Prices' list in response for {region_id}"
            raise PriceFetchError(msg)

        offers: list[Offer] = []
        dropped = 0
        for record in body["Prices"]:
            try:
                offers.append(Offer.from_dict(record))
            except (KeyError, TypeError, ValueError) as exc:
                dropped += 1
                self.logger.debug(
                    "[%s] Dropped malformed offer %r: %s",
                    region_id,
                    record,
                    exc,
                )

        if dropped:
            self.logger.info(
                "[%s] Dropped %d malformed offers", region_id, dropped
            )
        return offers
