"""SQLAlchemy ORM models."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Enum, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from inventory_relay.models.pydantic_models import PostStatus, StandardColor, VehicleStatus


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Vehicle(Base):
    """Canonical vehicle owned by one account."""

    __tablename__ = "vehicles"
    __table_args__ = (UniqueConstraint("owner_id", "vin", name="uq_vehicles_owner_vin"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Identity
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    make: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(200), nullable=False)
    trim: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vin: Mapped[str | None] = mapped_column(String(17), nullable=True)

    # Listing details
    price: Mapped[int | None] = mapped_column(Integer, nullable=True)  # cents
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    exterior_color: Mapped[str] = mapped_column(
        Enum(StandardColor), default=StandardColor.UNKNOWN, nullable=False
    )
    interior_color: Mapped[str] = mapped_column(
        Enum(StandardColor), default=StandardColor.BLACK, nullable=False
    )
    images: Mapped[list[str]] = mapped_column(JSON, default=list)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Posting state
    status: Mapped[str] = mapped_column(
        Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True
    )
    facebook_post_status: Mapped[str] = mapped_column(
        Enum(PostStatus), default=PostStatus.DRAFT, nullable=False
    )
    external_post_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_posted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # VIN decoder output
    body_style: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fuel_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transmission: Mapped[str | None] = mapped_column(String(50), nullable=True)
    engine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vehicle_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    drivetrain: Mapped[str | None] = mapped_column(String(50), nullable=True)
    vin_decoded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Vehicle(id={self.id}, {self.year} {self.make} {self.model}, vin={self.vin})>"
