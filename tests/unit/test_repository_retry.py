"""Tests for database retry logic."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from inventory_relay.database.repository import (
    DB_RETRY_MAX_ATTEMPTS,
    VehicleRepository,
    with_db_retry,
)
from inventory_relay.models.pydantic_models import VehicleCreate


class TestWithDbRetry:
    """Tests for the with_db_retry decorator."""

    def test_retry_on_operational_error(self) -> None:
        """Transient lock errors are retried until the call succeeds."""
        mock_func = MagicMock()
        mock_func.side_effect = [
            OperationalError("database is locked", None, None),
            OperationalError("database is locked", None, None),
            "success",
        ]

        @with_db_retry
        def decorated_func() -> str:
            return mock_func()

        with patch("inventory_relay.database.repository.wait_exponential", return_value=0):
            result = decorated_func()

        assert result == "success"
        assert mock_func.call_count == 3

    def test_integrity_errors_are_not_retried(self) -> None:
        mock_func = MagicMock(side_effect=IntegrityError("UNIQUE constraint failed", None, None))

        @with_db_retry
        def decorated_func() -> str:
            return mock_func()

        with pytest.raises(IntegrityError):
            decorated_func()
        assert mock_func.call_count == 1

    def test_max_retries_exhausted(self) -> None:
        mock_func = MagicMock(side_effect=OperationalError("database is locked", None, None))

        @with_db_retry
        def decorated_func() -> str:
            return mock_func()

        with (
            patch("inventory_relay.database.repository.wait_exponential", return_value=0),
            pytest.raises(OperationalError),
        ):
            decorated_func()

        assert mock_func.call_count == DB_RETRY_MAX_ATTEMPTS

    def test_preserves_function_metadata(self) -> None:
        @with_db_retry
        def my_function() -> str:
            """My docstring."""
            return "result"

        assert my_function.__name__ == "my_function"
        assert my_function.__doc__ == "My docstring."

    def test_repository_write_retries_locked_commit(self) -> None:
        """A locked commit inside a repository write is retried."""
        session = MagicMock()
        session.commit.side_effect = [OperationalError("database is locked", None, None), None]
        repo = VehicleRepository(session)

        with patch("inventory_relay.database.repository.wait_exponential", return_value=0):
            vehicle = repo.create_vehicle(VehicleCreate(make="Honda", model="Civic"), "dealer-1")

        assert vehicle.make == "Honda"
        assert session.commit.call_count == 2
