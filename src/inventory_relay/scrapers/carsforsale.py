"""CarsForSale.com scraper implementation."""

from typing import ClassVar

from inventory_relay.models.pydantic_models import ScrapeSource
from inventory_relay.scrapers.base import InventoryScraper


class CarsForSaleScraper(InventoryScraper):
    """Scraper for carsforsale.com dealer inventory pages.

    Thin configuration wrapper around InventoryScraper; the card selector
    list covers the grid, list and article layouts dealers use.
    """

    HOST: ClassVar[str] = "carsforsale.com"
    CARD_SELECTORS: ClassVar[list[str]] = [
        '[data-qa="vehicle-card"]',
        ".vehicle-card",
        ".srp-grid .vehicle",
        ".vehicle-item",
        "article",
        ".listing-item",
        ".inventory-item",
        ".vehicle-listing",
        ".car-item",
        ".auto-item",
    ]

    @property
    def source(self) -> ScrapeSource:  # type: ignore[override]
        """Return the ScrapeSource enum value for CarsForSale."""
        return ScrapeSource.CARSFORSALE
