"""AutoTrader scraper implementation."""

from typing import ClassVar

from inventory_relay.models.pydantic_models import ScrapeSource
from inventory_relay.scrapers.base import InventoryScraper


class AutoTraderScraper(InventoryScraper):
    """Scraper for autotrader.com search result pages."""

    HOST: ClassVar[str] = "autotrader.com"
    CARD_SELECTORS: ClassVar[list[str]] = [
        '[data-cmp="inventoryListing"]',
        ".inventory-listing",
        "article",
        ".vehicle-card",
    ]
    TITLE_SELECTORS: ClassVar[list[str]] = ["h2", "h3", ".title", ".vehicle-title"]
    PRICE_SELECTORS: ClassVar[list[str]] = [".first-price", ".price", ".inventory-listing-price"]
    MILEAGE_SELECTORS: ClassVar[list[str]] = [".mileage", ".item-card-specifications"]
    VIN_SELECTORS: ClassVar[list[str]] = [".vin", '[data-cmp="vin"]']

    @property
    def source(self) -> ScrapeSource:  # type: ignore[override]
        """Return the ScrapeSource enum value for AutoTrader."""
        return ScrapeSource.AUTOTRADER
