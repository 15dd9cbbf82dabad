"""Service layer for scraping inventory pages and forwarding the results."""

import logging
from dataclasses import dataclass

from inventory_relay.config import RelaySettings
from inventory_relay.dom.base import DomDocument
from inventory_relay.dom.page import PlaywrightDocument
from inventory_relay.dom.soup import SoupDocument
from inventory_relay.models.pydantic_models import ScrapeBatch, ScrapeSource
from inventory_relay.relay.channel import MessageRelay
from inventory_relay.relay.messages import ScrapedInventoryRequest, ScrapedInventoryResponse
from inventory_relay.scrapers import detect_source, get_scraper_class
from inventory_relay.scrapers.browser import BrowserConfig, BrowserManager
from inventory_relay.scrapers.retrigger import scrape_with_retrigger

logger = logging.getLogger(__name__)


@dataclass
class ScrapePassResult:
    """The batch a pass produced and, if one was sent, the ingest reply."""

    batch: ScrapeBatch
    response: ScrapedInventoryResponse | None = None

    @property
    def sent(self) -> bool:
        return self.response is not None


class ScrapeService:
    """Runs scrape passes and sends non-empty batches over the relay."""

    def __init__(self, relay: MessageRelay, settings: RelaySettings | None = None) -> None:
        self._relay = relay
        self._settings = settings or RelaySettings()

    async def scrape_document(
        self, source: ScrapeSource, document: DomDocument
    ) -> ScrapePassResult:
        """Scrape ``document`` with re-triggering and forward the batch.

        At most one scrapedInventory message is sent per pass, and none when
        every attempt came back empty.
        """
        scraper = get_scraper_class(source)()
        batch = await scrape_with_retrigger(scraper, document, self._settings.scrape_retry)
        if not batch.vehicles:
            logger.info(
                "No vehicles found on %s after retries; nothing sent",
                document.url or source.value,
            )
            return ScrapePassResult(batch=batch)

        response = await self._relay.send(
            ScrapedInventoryRequest(
                source=source.value,
                vehicles=[vehicle.model_dump(mode="json") for vehicle in batch.vehicles],
            )
        )
        if not response.ok:
            logger.warning("Ingest rejected batch from %s: %s", source.value, response.error)
        return ScrapePassResult(batch=batch, response=response)

    async def scrape_html(
        self, html: str, source: ScrapeSource, url: str = ""
    ) -> ScrapePassResult:
        """Scrape a saved inventory page."""
        return await self.scrape_document(source, SoupDocument(html, url=url))

    async def scrape_url(
        self,
        url: str,
        source: ScrapeSource | None = None,
        headless: bool = True,
    ) -> ScrapePassResult:
        """Open ``url`` in a stealth browser and scrape the rendered page.

        Raises:
            ValueError: If no source is given and none matches the URL.
        """
        source = source or detect_source(url)
        if source is None:
            raise ValueError(f"Unsupported inventory site: {url}")

        async with BrowserManager(BrowserConfig(headless=headless)) as browser:
            page = await browser.open(url)
            return await self.scrape_document(source, PlaywrightDocument(page))
