"""Data models for inventory-relay."""

from inventory_relay.models.pydantic_models import (
    IngestError,
    IngestResult,
    PostStatus,
    RawListingRecord,
    ScrapeBatch,
    ScrapeSource,
    StandardColor,
    VehicleCreate,
    VehicleRead,
    VehicleStatus,
    VinDecodingResult,
)

__all__ = [
    "IngestError",
    "IngestResult",
    "PostStatus",
    "RawListingRecord",
    "ScrapeBatch",
    "ScrapeSource",
    "StandardColor",
    "VehicleCreate",
    "VehicleRead",
    "VehicleStatus",
    "VinDecodingResult",
]
