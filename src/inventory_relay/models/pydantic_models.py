"""Pydantic models for data validation."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

MAX_IMAGES = 10


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class ScrapeSource(str, Enum):
    """Supported dealer inventory sources."""

    CARSFORSALE = "carsforsale"
    AUTOTRADER = "autotrader"


class StandardColor(str, Enum):
    """Marketplace-approved color vocabulary plus the ``Unknown`` sentinel."""

    BLACK = "Black"
    BLUE = "Blue"
    BROWN = "Brown"
    GOLD = "Gold"
    GREEN = "Green"
    GRAY = "Gray"
    PINK = "Pink"
    PURPLE = "Purple"
    RED = "Red"
    SILVER = "Silver"
    ORANGE = "Orange"
    WHITE = "White"
    YELLOW = "Yellow"
    CHARCOAL = "Charcoal"
    OFF_WHITE = "Off white"
    TAN = "Tan"
    BEIGE = "Beige"
    BURGUNDY = "Burgundy"
    UNKNOWN = "Unknown"


class VehicleStatus(str, Enum):
    """Inventory status of a stored vehicle."""

    AVAILABLE = "available"
    POSTED = "posted"
    ERROR = "error"


class PostStatus(str, Enum):
    """Marketplace posting status of a stored vehicle."""

    DRAFT = "draft"
    POSTED = "posted"


class RawListingRecord(BaseModel):
    """Listing card fields exactly as extracted from the page."""

    source: ScrapeSource
    title: str = ""
    price_text: str = ""
    mileage_text: str = ""
    vin_text: str | None = None
    color_text: str = ""
    image_urls: list[str] = Field(default_factory=list, max_length=MAX_IMAGES)
    description_text: str = ""

    model_config = ConfigDict(frozen=True)


class VehicleCreate(BaseModel):
    """Canonical vehicle ready for persistence."""

    year: int | None = None
    make: str
    model: str
    trim: str | None = None
    vin: str | None = Field(None, pattern=r"^[A-HJ-NPR-Z0-9]{17}$")
    price: int | None = Field(None, ge=0, description="Price in cents")
    mileage: int | None = Field(None, ge=0)
    exterior_color: StandardColor = StandardColor.UNKNOWN
    interior_color: StandardColor = StandardColor.BLACK
    images: list[str] = Field(default_factory=list, max_length=MAX_IMAGES)
    description: str = ""
    location: str | None = None
    source: str | None = None


class VehicleRead(VehicleCreate):
    """Vehicle as read from the database."""

    id: int
    owner_id: str | None = None
    status: VehicleStatus = VehicleStatus.AVAILABLE
    facebook_post_status: PostStatus = PostStatus.DRAFT
    external_post_id: str | None = None
    last_posted_at: datetime | None = None
    body_style: str | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    engine: str | None = None
    vehicle_type: str | None = None
    drivetrain: str | None = None
    vin_decoded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ScrapeBatch(BaseModel):
    """One scrape pass worth of canonical vehicles from a single source."""

    source: ScrapeSource
    vehicles: list[VehicleCreate] = Field(default_factory=list)
    dropped: int = Field(0, description="Cards rejected by the validity gate")


class IngestError(BaseModel):
    """A record that could not be stored, with the reason."""

    index: int
    vin: str | None = None
    code: str
    reason: str


class IngestResult(BaseModel):
    """Per-bucket outcome of ingesting a batch."""

    inserted: list[VehicleRead] = Field(default_factory=list)
    updated: list[VehicleRead] = Field(default_factory=list)
    errored: list[IngestError] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.inserted) + len(self.updated) + len(self.errored)

    @property
    def counts(self) -> dict[str, int]:
        """Bucket sizes keyed by bucket name."""
        return {
            "inserted": len(self.inserted),
            "updated": len(self.updated),
            "errored": len(self.errored),
            "total": self.total,
        }


class VinDecodingResult(BaseModel):
    """Decoded VIN attributes, or a tagged failure with a reason."""

    success: bool
    decoded_at: datetime = Field(default_factory=utc_now)
    error: str | None = None
    body_style: str | None = None
    fuel_type: str | None = None
    transmission: str | None = None
    engine: str | None = None
    vehicle_type: str | None = None
    drivetrain: str | None = None

    model_config = ConfigDict(frozen=True)
