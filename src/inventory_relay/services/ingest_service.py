"""Service layer for ingesting scraped vehicles and tracking posting state."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_relay.database.repository import VehicleRepository
from inventory_relay.errors import MissingOwnerError, RecordValidationError, RelayError
from inventory_relay.models.db_models import Vehicle
from inventory_relay.models.pydantic_models import (
    MAX_IMAGES,
    IngestError,
    IngestResult,
    StandardColor,
    VehicleCreate,
    VehicleRead,
    VehicleStatus,
    VinDecodingResult,
)
from inventory_relay.normalization import (
    is_valid_vin,
    standardize_exterior_color,
    standardize_interior_color,
    to_int,
    to_minor_units,
)
from inventory_relay.normalization.vin import VinDecoder

logger = logging.getLogger(__name__)

_STANDARD_COLOR_VALUES = {color.value for color in StandardColor}


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key present, accepting snake_case and camelCase."""
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def coerce_price(value: Any) -> int | None:
    """Coerce a price to cents.

    Numbers are taken to be cents already (what the scrapers send); text is
    read as a whole-currency amount such as ``"$24,995"``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    return to_minor_units(str(value))


def coerce_exterior_color(value: Any) -> StandardColor:
    text = _text(value)
    if text in _STANDARD_COLOR_VALUES:
        return StandardColor(text)
    return standardize_exterior_color(text)


def coerce_vehicle(payload: Mapping[str, Any], default_source: str | None = None) -> VehicleCreate:
    """Defensively re-parse one raw vehicle payload.

    Payloads cross a process boundary, so nothing upstream is trusted: text
    is trimmed, numbers re-parsed, colors re-standardized and the VIN
    re-validated.

    Raises:
        RecordValidationError: If make/model is missing or a VIN is present
            but malformed.
    """
    make = _text(payload.get("make"))
    model = _text(payload.get("model"))
    if not make or not model:
        raise RecordValidationError("Missing make or model")

    vin = _text(payload.get("vin"))
    if vin is not None:
        vin = vin.replace(" ", "").upper()
        if not is_valid_vin(vin):
            raise RecordValidationError(
                f"Malformed VIN {vin!r}: expected 17 characters excluding I, O and Q"
            )

    year = to_int(payload.get("year"))
    images = [str(url) for url in (payload.get("images") or []) if url][:MAX_IMAGES]
    description = _text(payload.get("description")) or " ".join(
        str(part) for part in (year, make, model) if part
    )

    try:
        return VehicleCreate(
            year=year,
            make=make,
            model=model,
            trim=_text(payload.get("trim")),
            vin=vin,
            price=coerce_price(payload.get("price")),
            mileage=to_int(payload.get("mileage")),
            exterior_color=coerce_exterior_color(
                _first(payload, "exterior_color", "exteriorColor")
            ),
            interior_color=standardize_interior_color(
                _first(payload, "interior_color", "interiorColor")
            ),
            images=images,
            description=description,
            location=_text(payload.get("location")),
            source=_text(payload.get("source")) or default_source,
        )
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise RecordValidationError(f"Invalid vehicle: {details}") from e


class IngestService:
    """Upserts scraped vehicles and tracks their marketplace posting state.

    Each record in a batch succeeds or fails on its own; failures are
    reported per record and never abort the rest of the batch.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._repo = VehicleRepository(session)

    def ingest_batch(
        self,
        vehicles: Iterable[Mapping[str, Any] | BaseModel],
        owner_id: str | None,
        source: str | None = None,
    ) -> IngestResult:
        """Upsert a batch of vehicle payloads for ``owner_id``.

        Records with a VIN the owner already has are updated in place;
        everything else is inserted. Inserting requires an owner.

        Returns:
            IngestResult with inserted, updated and errored buckets.
        """
        result = IngestResult()

        for index, raw in enumerate(vehicles):
            payload = raw.model_dump() if isinstance(raw, BaseModel) else raw
            vin = None
            try:
                if not isinstance(payload, Mapping):
                    raise RecordValidationError("Vehicle payload is not an object")
                vin = _text(payload.get("vin"))
                data = coerce_vehicle(payload, default_source=source)
                vehicle, created = self._upsert(data, owner_id)
            except RelayError as e:
                logger.info("Vehicle %d (vin=%s) rejected: %s", index, vin, e.message)
                result.errored.append(
                    IngestError(index=index, vin=vin, code=e.code, reason=e.message)
                )
            except SQLAlchemyError as e:
                self._session.rollback()
                logger.exception("Database error storing vehicle %d (vin=%s)", index, vin)
                result.errored.append(
                    IngestError(index=index, vin=vin, code="database", reason=str(e))
                )
            else:
                bucket = result.inserted if created else result.updated
                bucket.append(VehicleRead.model_validate(vehicle))

        logger.info(
            "Ingested batch for owner %s: %d inserted, %d updated, %d errored",
            owner_id,
            len(result.inserted),
            len(result.updated),
            len(result.errored),
        )
        return result

    def _upsert(self, data: VehicleCreate, owner_id: str | None) -> tuple[Vehicle, bool]:
        if data.vin and owner_id:
            existing = self._repo.get_vehicle_by_owner_vin(owner_id, data.vin)
            if existing is not None:
                return self._repo.update_vehicle_from_scrape(existing, data), False

        if not owner_id:
            raise MissingOwnerError()

        try:
            return self._repo.create_vehicle(data, owner_id), True
        except IntegrityError:
            # Lost an insert race for the same (owner, vin); fall back to update.
            self._session.rollback()
            existing = (
                self._repo.get_vehicle_by_owner_vin(owner_id, data.vin) if data.vin else None
            )
            if existing is None:
                raise
            return self._repo.update_vehicle_from_scrape(existing, data), False

    def get_pending_vehicles(self, owner_id: str | None) -> list[VehicleRead]:
        """Vehicles still waiting to be posted, oldest first."""
        if not owner_id:
            raise MissingOwnerError("Missing user; please authenticate first")
        return [VehicleRead.model_validate(v) for v in self._repo.get_pending_vehicles(owner_id)]

    def update_vehicle_status(
        self,
        vehicle_id: int,
        status: VehicleStatus | str,
        external_post_id: str | None = None,
        owner_id: str | None = None,
    ) -> VehicleRead:
        """Record a posting outcome (``posted`` or ``error``) for one vehicle.

        Raises:
            RecordValidationError: If the status is not a posting outcome or
                the vehicle does not exist for this owner.
        """
        try:
            status = VehicleStatus(status)
        except ValueError:
            raise RecordValidationError(f"Unknown vehicle status: {status!r}") from None
        if status not in (VehicleStatus.POSTED, VehicleStatus.ERROR):
            raise RecordValidationError(f"Status must be posted or error, got {status.value}")

        vehicle = self._repo.get_vehicle_by_id(vehicle_id, owner_id)
        if vehicle is None:
            raise RecordValidationError(f"Vehicle {vehicle_id} not found")

        vehicle = self._repo.set_posting_status(vehicle, status, external_post_id)
        logger.info("Vehicle %d marked %s", vehicle_id, status.value)
        return VehicleRead.model_validate(vehicle)

    async def decode_and_store_vin(
        self, vehicle_id: int, decoder: VinDecoder, owner_id: str | None = None
    ) -> VinDecodingResult:
        """Decode the vehicle's VIN and store the attributes on success."""
        vehicle = self._repo.get_vehicle_by_id(vehicle_id, owner_id)
        if vehicle is None:
            raise RecordValidationError(f"Vehicle {vehicle_id} not found")

        result = await decoder.decode(vehicle.vin)
        if result.success:
            self._repo.apply_vin_decoding(vehicle, result)
        else:
            logger.warning("VIN decoding failed for vehicle %d: %s", vehicle_id, result.error)
        return result
