"""Service layer for business logic."""

from inventory_relay.services.ingest_service import IngestService, coerce_vehicle
from inventory_relay.services.scrape_service import ScrapePassResult, ScrapeService

__all__ = ["IngestService", "ScrapePassResult", "ScrapeService", "coerce_vehicle"]
