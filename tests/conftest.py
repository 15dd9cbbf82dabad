"""Shared fixtures."""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_relay.models.db_models import Base
from inventory_relay.models.pydantic_models import VehicleRead

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    """Session factory over one shared in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_vehicle() -> Callable[..., VehicleRead]:
    """Factory for stored-vehicle snapshots."""

    def _make(vehicle_id: int = 1, **overrides: object) -> VehicleRead:
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        data: dict[str, object] = {
            "id": vehicle_id,
            "owner_id": "dealer-1",
            "year": 2019,
            "make": "Honda",
            "model": "Accord EX-L",
            "vin": "1HGCV1F51KA000001",
            "price": 2499500,
            "mileage": 32150,
            "description": "One owner, clean history, new tires and recent service.",
            "location": "Austin, TX",
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return VehicleRead(**data)

    return _make


@pytest.fixture
def carsforsale_html() -> str:
    return read_fixture("carsforsale_inventory.html")


@pytest.fixture
def autotrader_html() -> str:
    return read_fixture("autotrader_inventory.html")


@pytest.fixture
def marketplace_html() -> str:
    return read_fixture("marketplace_create.html")
