"""Database module."""

from inventory_relay.database.engine import get_engine, get_session, init_db
from inventory_relay.database.repository import VehicleRepository

__all__ = ["get_engine", "get_session", "init_db", "VehicleRepository"]
