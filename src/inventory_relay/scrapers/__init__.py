"""Dealer inventory scrapers."""

from inventory_relay.models.pydantic_models import ScrapeSource
from inventory_relay.scrapers.autotrader import AutoTraderScraper
from inventory_relay.scrapers.base import InventoryScraper
from inventory_relay.scrapers.carsforsale import CarsForSaleScraper

SCRAPER_CLASSES: dict[ScrapeSource, type[InventoryScraper]] = {
    ScrapeSource.CARSFORSALE: CarsForSaleScraper,
    ScrapeSource.AUTOTRADER: AutoTraderScraper,
}


def get_scraper_class(source: ScrapeSource) -> type[InventoryScraper]:
    """Get the scraper class for a source.

    Raises:
        ValueError: If the source has no scraper.
    """
    try:
        return SCRAPER_CLASSES[source]
    except KeyError:
        raise ValueError(f"Unknown source: {source}") from None


def detect_source(url: str) -> ScrapeSource | None:
    """Guess the source from a page URL, or None for unsupported sites."""
    for source, scraper_class in SCRAPER_CLASSES.items():
        if scraper_class.handles_url(url):
            return source
    return None


__all__ = [
    "AutoTraderScraper",
    "CarsForSaleScraper",
    "InventoryScraper",
    "SCRAPER_CLASSES",
    "detect_source",
    "get_scraper_class",
]
