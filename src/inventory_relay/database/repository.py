"""Repository layer for vehicle persistence."""

import functools
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import asc
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from typing_extensions import ParamSpec

from inventory_relay.models.db_models import Vehicle, utc_now
from inventory_relay.models.pydantic_models import (
    PostStatus,
    StandardColor,
    VehicleCreate,
    VehicleStatus,
    VinDecodingResult,
)
from inventory_relay.normalization.vin import map_decoded_value

P = ParamSpec("P")
R = TypeVar("R")

# Retry configuration for database operations
DB_RETRY_MAX_ATTEMPTS = 5
DB_RETRY_WAIT_MIN = 1  # seconds
DB_RETRY_WAIT_MAX = 8  # seconds
DB_RETRY_WAIT_MULTIPLIER = 2

PENDING_STATUSES = (VehicleStatus.AVAILABLE, VehicleStatus.ERROR)
MAPPED_DECODED_FIELDS = ("fuel_type", "transmission", "drivetrain")


def with_db_retry(func: Callable[P, R]) -> Callable[P, R]:
    """Retry a write on SQLite lock errors with exponential backoff."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        for attempt in Retrying(
            retry=retry_if_exception_type(OperationalError),
            stop=stop_after_attempt(DB_RETRY_MAX_ATTEMPTS),
            wait=wait_exponential(
                multiplier=DB_RETRY_WAIT_MULTIPLIER,
                min=DB_RETRY_WAIT_MIN,
                max=DB_RETRY_WAIT_MAX,
            ),
            reraise=True,
        ):
            with attempt:
                return func(*args, **kwargs)
        raise RuntimeError("Retry logic failed unexpectedly")

    return wrapper


class VehicleRepository:
    """Repository for vehicle rows, scoped by owner where it matters."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ========== CREATE ==========

    @with_db_retry
    def create_vehicle(self, data: VehicleCreate, owner_id: str) -> Vehicle:
        """Insert a new vehicle for ``owner_id`` with default posting state.

        Raises:
            sqlalchemy.exc.IntegrityError: If the owner already has this VIN.
        """
        vehicle = Vehicle(
            owner_id=owner_id,
            source=data.source,
            year=data.year,
            make=data.make,
            model=data.model,
            trim=data.trim,
            vin=data.vin,
            price=data.price,
            mileage=data.mileage,
            exterior_color=data.exterior_color,
            interior_color=data.interior_color,
            images=list(data.images),
            description=data.description,
            location=data.location,
            status=VehicleStatus.AVAILABLE,
            facebook_post_status=PostStatus.DRAFT,
        )

        self._session.add(vehicle)
        self._session.commit()
        self._session.refresh(vehicle)

        return vehicle

    # ========== READ ==========

    def get_vehicle_by_id(self, vehicle_id: int, owner_id: str | None = None) -> Vehicle | None:
        """Get a vehicle by ID, optionally restricted to one owner."""
        query = self._session.query(Vehicle).filter(Vehicle.id == vehicle_id)
        if owner_id is not None:
            query = query.filter(Vehicle.owner_id == owner_id)
        return query.first()

    def get_vehicle_by_owner_vin(self, owner_id: str, vin: str) -> Vehicle | None:
        """Get the owner's vehicle with this VIN (the upsert identity)."""
        return (
            self._session.query(Vehicle)
            .filter(Vehicle.owner_id == owner_id, Vehicle.vin == vin)
            .first()
        )

    def get_pending_vehicles(self, owner_id: str) -> list[Vehicle]:
        """Vehicles still waiting for a marketplace listing, oldest first.

        Pending means inventory status available or error (so failed posts
        are retried) and marketplace status still draft.
        """
        return (
            self._session.query(Vehicle)
            .filter(
                Vehicle.owner_id == owner_id,
                Vehicle.status.in_(PENDING_STATUSES),
                Vehicle.facebook_post_status == PostStatus.DRAFT,
            )
            .order_by(asc(Vehicle.created_at), asc(Vehicle.id))
            .all()
        )

    def list_vehicles(
        self, owner_id: str | None = None, limit: int | None = None
    ) -> list[Vehicle]:
        """Vehicles, newest first."""
        query = self._session.query(Vehicle)
        if owner_id is not None:
            query = query.filter(Vehicle.owner_id == owner_id)
        query = query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_vehicles(self, owner_id: str | None = None) -> int:
        query = self._session.query(Vehicle)
        if owner_id is not None:
            query = query.filter(Vehicle.owner_id == owner_id)
        return query.count()

    # ========== UPDATE ==========

    @with_db_retry
    def update_vehicle_from_scrape(self, vehicle: Vehicle, data: VehicleCreate) -> Vehicle:
        """Refresh scraped attributes of an existing vehicle.

        Identity (owner, VIN) and posting state are left untouched. Missing
        values in ``data`` keep what is stored.
        """
        vehicle.year = data.year if data.year is not None else vehicle.year
        vehicle.make = data.make
        vehicle.model = data.model
        vehicle.trim = data.trim if data.trim is not None else vehicle.trim
        vehicle.price = data.price if data.price is not None else vehicle.price
        vehicle.mileage = data.mileage if data.mileage is not None else vehicle.mileage
        if data.exterior_color != StandardColor.UNKNOWN:
            vehicle.exterior_color = data.exterior_color
        vehicle.interior_color = data.interior_color
        if data.images:
            vehicle.images = list(data.images)
        vehicle.description = data.description or vehicle.description
        vehicle.location = data.location if data.location is not None else vehicle.location
        vehicle.source = data.source or vehicle.source
        vehicle.updated_at = utc_now()

        self._session.commit()
        self._session.refresh(vehicle)

        return vehicle

    @with_db_retry
    def set_posting_status(
        self,
        vehicle: Vehicle,
        status: VehicleStatus,
        external_post_id: str | None = None,
    ) -> Vehicle:
        """Record the outcome of a posting attempt.

        ``posted`` also flips the marketplace status and stamps
        ``last_posted_at``; ``error`` leaves the vehicle pending for retry.
        """
        now = utc_now()
        vehicle.status = status
        if status == VehicleStatus.POSTED:
            vehicle.facebook_post_status = PostStatus.POSTED
            vehicle.last_posted_at = now
        if external_post_id is not None:
            vehicle.external_post_id = external_post_id
        vehicle.updated_at = now

        self._session.commit()
        self._session.refresh(vehicle)

        return vehicle

    @with_db_retry
    def apply_vin_decoding(self, vehicle: Vehicle, result: VinDecodingResult) -> Vehicle:
        """Store decoded VIN attributes on the vehicle.

        Fuel type, transmission and drivetrain are translated to internal
        vocabulary and only fill fields that are still empty.
        """
        for field in MAPPED_DECODED_FIELDS:
            value = getattr(result, field)
            if value and not getattr(vehicle, field):
                setattr(vehicle, field, map_decoded_value(value, field))
        vehicle.body_style = result.body_style or vehicle.body_style
        vehicle.engine = result.engine or vehicle.engine
        vehicle.vehicle_type = result.vehicle_type or vehicle.vehicle_type
        vehicle.vin_decoded_at = result.decoded_at

        self._session.commit()
        self._session.refresh(vehicle)

        return vehicle

    # ========== DELETE ==========

    @with_db_retry
    def delete_vehicle(self, vehicle_id: int, owner_id: str | None = None) -> bool:
        """Delete a vehicle. Returns False if it does not exist."""
        vehicle = self.get_vehicle_by_id(vehicle_id, owner_id)
        if vehicle is None:
            return False
        self._session.delete(vehicle)
        self._session.commit()
        return True
