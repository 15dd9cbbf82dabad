"""Integration tests for VehicleRepository against SQLite."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_relay.database.repository import VehicleRepository
from inventory_relay.models.pydantic_models import (
    PostStatus,
    StandardColor,
    VehicleCreate,
    VehicleStatus,
    VinDecodingResult,
)

ACCORD = VehicleCreate(
    year=2019,
    make="Honda",
    model="Accord EX-L",
    vin="1HGCV1F51KA000001",
    price=2499500,
    mileage=32150,
    exterior_color=StandardColor.WHITE,
    images=["https://example.com/accord.jpg"],
    description="One owner",
    source="carsforsale",
)


@pytest.fixture
def repo(db_session: Session) -> VehicleRepository:
    return VehicleRepository(db_session)


class TestCreate:
    def test_create_sets_default_posting_state(self, repo: VehicleRepository) -> None:
        vehicle = repo.create_vehicle(ACCORD, "dealer-1")

        assert vehicle.id is not None
        assert vehicle.owner_id == "dealer-1"
        assert vehicle.status == VehicleStatus.AVAILABLE
        assert vehicle.facebook_post_status == PostStatus.DRAFT
        assert vehicle.images == ["https://example.com/accord.jpg"]
        assert vehicle.interior_color == StandardColor.BLACK

    def test_vin_unique_per_owner(self, repo: VehicleRepository, db_session: Session) -> None:
        repo.create_vehicle(ACCORD, "dealer-1")

        with pytest.raises(IntegrityError):
            repo.create_vehicle(ACCORD, "dealer-1")
        db_session.rollback()

        other = repo.create_vehicle(ACCORD, "dealer-2")
        assert other.owner_id == "dealer-2"
        assert repo.count_vehicles() == 2

    def test_vehicles_without_vin_never_collide(self, repo: VehicleRepository) -> None:
        data = ACCORD.model_copy(update={"vin": None})

        repo.create_vehicle(data, "dealer-1")
        repo.create_vehicle(data, "dealer-1")

        assert repo.count_vehicles("dealer-1") == 2


class TestPending:
    def test_pending_oldest_first_and_filtered(
        self, repo: VehicleRepository, db_session: Session
    ) -> None:
        base = datetime(2024, 5, 1, 12, 0)

        def add(model: str, owner: str = "dealer-1"):
            return repo.create_vehicle(ACCORD.model_copy(update={"vin": None, "model": model}), owner)

        newer = add("Civic")
        older = add("Pilot")
        failed = add("CR-V")
        posted = add("Fit")
        add("Accord EX-L", owner="dealer-2")

        newer.created_at = base + timedelta(hours=2)
        older.created_at = base
        failed.created_at = base + timedelta(hours=3)
        db_session.commit()
        repo.set_posting_status(failed, VehicleStatus.ERROR)
        repo.set_posting_status(posted, VehicleStatus.POSTED)

        pending = repo.get_pending_vehicles("dealer-1")

        assert [v.model for v in pending] == ["Pilot", "Civic", "CR-V"]

    def test_posted_flips_marketplace_status(self, repo: VehicleRepository) -> None:
        vehicle = repo.create_vehicle(ACCORD, "dealer-1")

        vehicle = repo.set_posting_status(vehicle, VehicleStatus.POSTED, external_post_id="fb-42")

        assert vehicle.status == VehicleStatus.POSTED
        assert vehicle.facebook_post_status == PostStatus.POSTED
        assert vehicle.external_post_id == "fb-42"
        assert vehicle.last_posted_at is not None


class TestUpdate:
    def test_update_keeps_identity_and_posting_state(self, repo: VehicleRepository) -> None:
        vehicle = repo.create_vehicle(ACCORD, "dealer-1")
        repo.set_posting_status(vehicle, VehicleStatus.ERROR)

        update = ACCORD.model_copy(
            update={
                "price": 2399500,
                "mileage": None,
                "exterior_color": StandardColor.UNKNOWN,
                "images": [],
            }
        )
        vehicle = repo.update_vehicle_from_scrape(vehicle, update)

        assert vehicle.price == 2399500
        assert vehicle.mileage == 32150
        assert vehicle.exterior_color == StandardColor.WHITE
        assert vehicle.images == ["https://example.com/accord.jpg"]
        assert vehicle.status == VehicleStatus.ERROR
        assert vehicle.owner_id == "dealer-1"

    def test_apply_vin_decoding_fills_empty_fields(self, repo: VehicleRepository) -> None:
        vehicle = repo.create_vehicle(ACCORD, "dealer-1")
        vehicle.fuel_type = "hybrid"

        result = VinDecodingResult(
            success=True,
            fuel_type="Gasoline",
            transmission="Automatic",
            drivetrain="All-Wheel Drive",
            body_style="Sedan/Saloon",
        )
        vehicle = repo.apply_vin_decoding(vehicle, result)

        assert vehicle.fuel_type == "hybrid"
        assert vehicle.transmission == "automatic"
        assert vehicle.drivetrain == "awd"
        assert vehicle.body_style == "Sedan/Saloon"
        assert vehicle.vin_decoded_at is not None


class TestDelete:
    def test_delete_scoped_by_owner(self, repo: VehicleRepository) -> None:
        vehicle = repo.create_vehicle(ACCORD, "dealer-1")

        assert repo.delete_vehicle(vehicle.id, owner_id="dealer-2") is False
        assert repo.delete_vehicle(vehicle.id, owner_id="dealer-1") is True
        assert repo.get_vehicle_by_id(vehicle.id) is None
