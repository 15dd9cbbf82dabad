"""Base inventory scraper."""

import logging
from abc import ABC, abstractmethod
from typing import ClassVar
from urllib.parse import urljoin

from inventory_relay.dom.base import DomDocument, Element
from inventory_relay.models.pydantic_models import (
    MAX_IMAGES,
    RawListingRecord,
    ScrapeBatch,
    ScrapeSource,
    VehicleCreate,
)
from inventory_relay.normalization import (
    extract_vin,
    parse_title,
    standardize_exterior_color,
    standardize_interior_color,
    to_int,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class InventoryScraper(ABC):
    """Heuristic listing-card scraper for one dealer inventory site.

    Page layouts vary between dealers on the same site, so every field is
    located by an ordered list of selector candidates. Subclasses are thin
    configuration wrappers that set:
    - source: The ScrapeSource enum value
    - HOST: Hostname fragment used to recognise the site
    - CARD_SELECTORS and the per-field selector lists

    Scraping is read-only: running it twice over an unchanged document gives
    field-equal batches.
    """

    HOST: ClassVar[str]
    CARD_SELECTORS: ClassVar[list[str]]
    TITLE_SELECTORS: ClassVar[list[str]] = [".title", ".vehicle-title", "h2", "h3"]
    PRICE_SELECTORS: ClassVar[list[str]] = [".price", '[data-qa="price"]', ".vehicle-price"]
    MILEAGE_SELECTORS: ClassVar[list[str]] = [".mileage", '[data-qa="mileage"]', ".vehicle-mileage"]
    VIN_SELECTORS: ClassVar[list[str]] = ['[data-qa="vin"]', ".vin"]
    COLOR_SELECTORS: ClassVar[list[str]] = [
        ".exterior-color",
        '[data-qa="exterior-color"]',
        ".color",
    ]

    @property
    @abstractmethod
    def source(self) -> ScrapeSource:
        """Return the ScrapeSource enum value."""
        ...

    @classmethod
    def handles_url(cls, url: str) -> bool:
        """Check whether this scraper targets the site serving ``url``."""
        return cls.HOST in url.lower()

    async def find_cards(self, document: DomDocument) -> list[Element]:
        """Return the cards matched by the first selector that matches any.

        Results are never merged across selectors. An empty list means the
        page is not an inventory page (or has not rendered yet).
        """
        for selector in self.CARD_SELECTORS:
            cards = await document.query_all(selector)
            if cards:
                logger.debug("Found %d cards with selector %s", len(cards), selector)
                return cards
        logger.info("No vehicle cards found on %s", document.url or "<document>")
        return []

    async def extract_records(self, document: DomDocument) -> list[RawListingRecord]:
        """Extract raw listing records from every card on the page."""
        cards = await self.find_cards(document)
        return [await self._extract_card(document, card) for card in cards]

    async def _extract_card(self, document: DomDocument, card: Element) -> RawListingRecord:
        title = await document.read_text(await document.query_first(self.TITLE_SELECTORS, card))
        price_text = await document.read_text(
            await document.query_first(self.PRICE_SELECTORS, card)
        )
        mileage_text = await document.read_text(
            await document.query_first(self.MILEAGE_SELECTORS, card)
        )
        color_text = await document.read_text(
            await document.query_first(self.COLOR_SELECTORS, card)
        )

        # VIN: pattern match over the whole card first, labeled element second
        vin_text = extract_vin(await document.read_text(card))
        if vin_text is None:
            labeled = await document.read_text(await document.query_first(self.VIN_SELECTORS, card))
            vin_text = labeled or None

        image_urls: list[str] = []
        for img in (await document.query_all("img", card))[:MAX_IMAGES]:
            src = await document.read_attribute(img, "src")
            if src:
                image_urls.append(urljoin(document.url, src) if document.url else src)

        return RawListingRecord(
            source=self.source,
            title=title,
            price_text=price_text,
            mileage_text=mileage_text,
            vin_text=vin_text,
            color_text=color_text,
            image_urls=image_urls,
            description_text=title,
        )

    def normalize(self, record: RawListingRecord) -> VehicleCreate | None:
        """Convert a raw record into a canonical vehicle.

        Returns:
            VehicleCreate, or None when the title yields no make/model.
        """
        parts = parse_title(record.title)
        if parts is None:
            logger.info("Skipped card (missing make/model) - title: %r", record.title)
            return None

        return VehicleCreate(
            year=parts.year,
            make=parts.make,
            model=parts.model,
            vin=extract_vin(record.vin_text),
            price=to_minor_units(record.price_text),
            mileage=to_int(record.mileage_text),
            exterior_color=standardize_exterior_color(record.color_text),
            interior_color=standardize_interior_color(record.color_text),
            images=list(record.image_urls),
            description=record.description_text or record.title,
            source=self.source.value,
        )

    async def scrape(self, document: DomDocument) -> ScrapeBatch:
        """Run one scrape pass and return the batch of valid vehicles."""
        records = await self.extract_records(document)
        vehicles = []
        for record in records:
            vehicle = self.normalize(record)
            if vehicle is not None:
                vehicles.append(vehicle)

        dropped = len(records) - len(vehicles)
        logger.info(
            "Scraped %d valid vehicles from %s (%d cards dropped)",
            len(vehicles),
            self.source.value,
            dropped,
        )
        return ScrapeBatch(source=self.source, vehicles=vehicles, dropped=dropped)
