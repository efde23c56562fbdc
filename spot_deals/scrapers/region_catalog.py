# spot_deals/scrapers/region_catalog.py

"""Discovery of primary AWS regions from the public locations directory."""

from typing import Any

from spot_deals.scrapers.base_scraper import BaseScraper, FetchError


class RegionCatalogError(FetchError):
    """The region directory could not be fetched or parsed."""


class RegionCatalog(BaseScraper):
    """Lists primary region codes, skipping local and wavelength zones.

    The directory is a JSON object keyed by location id; each value
    carries a ``code`` and a ``type`` tag.  Without this list the run
    cannot proceed, so every failure raises :class:`RegionCatalogError`.
    """

    error_cls = RegionCatalogError

    def __init__(self) -> None:
        super().__init__("regions")

    def list_regions(self) -> list[str]:
        """Return sorted, deduplicated primary region identifiers."""
        document = self._fetch_json(self.settings.REGIONS_URL)
        regions = self.parse_regions(
            document, self.settings.PRIMARY_REGION_TYPE
        )
        self.logger.info(
            "Discovered %d primary regions", len(regions)
        )
        return regions

    @staticmethod
    def parse_regions(document: Any, region_type: str) -> list[str]:
        """Extract region codes tagged *region_type* from a directory."""
        if not isinstance(document, dict):
            msg = "Region directory is not a JSON object"
            raise RegionCatalogError(msg)

        codes: set[str] = set()
        for key, entry in document.items():
            if not isinstance(entry, dict):
                continue
            if entry.get("type") != region_type:
                continue
            code = str(entry.get("code") or key).strip()
            if code:
                codes.add(code)
        return sorted(codes)
