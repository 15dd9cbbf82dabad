"""VIN validation and decoding against the NHTSA vPIC service."""

import logging
import re
from typing import Any

import httpx

from inventory_relay.models.pydantic_models import VinDecodingResult

logger = logging.getLogger(__name__)

VIN_LENGTH = 17
NHTSA_BASE_URL = "https://vpic.nhtsa.dot.gov/api/vehicles"

# 17 characters, I/O/Q are never used in a VIN.
VIN_PATTERN = re.compile(r"\b[A-HJ-NPR-Z0-9]{17}\b")
_FULL_VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

DECODED_VALUE_MAPPINGS: dict[str, dict[str, str]] = {
    "fuel_type": {
        "Gasoline": "gasoline",
        "Diesel": "diesel",
        "Electric": "electric",
        "Hybrid": "hybrid",
        "E85": "gasoline",
        "CNG": "gasoline",
    },
    "transmission": {
        "Manual": "manual",
        "Automatic": "automatic",
        "CVT": "automatic",
        "Semi-Automatic": "automatic",
    },
    "drivetrain": {
        "Front-Wheel Drive": "fwd",
        "Rear-Wheel Drive": "rwd",
        "All-Wheel Drive": "awd",
        "4WD": "awd",
        "AWD": "awd",
    },
}


def extract_vin(text: str | None) -> str | None:
    """Return the first VIN-shaped token in ``text``, or None."""
    if not text:
        return None
    match = VIN_PATTERN.search(text.upper())
    return match.group(0) if match else None


def is_valid_vin(vin: str | None) -> bool:
    """Check length and alphabet of a cleaned VIN."""
    return vin is not None and _FULL_VIN_RE.match(vin) is not None


def map_decoded_value(value: str, field: str) -> str:
    """Map decoder vocabulary onto internal vocabulary.

    Args:
        value: Value as returned by the decoder, e.g. "All-Wheel Drive".
        field: One of "fuel_type", "transmission", "drivetrain".

    Returns:
        Internal value, or the lower-cased input when there is no mapping.
    """
    return DECODED_VALUE_MAPPINGS.get(field, {}).get(value, value.lower())


def _describe_engine(data: dict[str, Any]) -> str | None:
    parts = []
    if data.get("EngineCylinders"):
        parts.append(f"{data['EngineCylinders']} Cylinder")
    if data.get("DisplacementL"):
        parts.append(f"{data['DisplacementL']}L")
    if data.get("EngineHP"):
        parts.append(f"{data['EngineHP']}HP")
    return " ".join(parts) or None


class VinDecoder:
    """Async client for the VIN decoding service.

    Never raises: transport failures, non-2xx responses and decoder error
    codes all come back as ``VinDecodingResult(success=False, error=...)``.

    Usage:
        async with VinDecoder() as decoder:
            result = await decoder.decode("1HGCM82633A004352")
    """

    def __init__(
        self,
        base_url: str = NHTSA_BASE_URL,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "VinDecoder":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def decode(self, vin: str | None) -> VinDecodingResult:
        """Decode a VIN; the length is validated before any network call."""
        if not vin or len(vin) != VIN_LENGTH:
            return VinDecodingResult(success=False, error="Invalid VIN format")

        url = f"{self._base_url}/DecodeVINValues/{vin}"
        try:
            if self._client is None:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params={"format": "json"})
            else:
                response = await self._client.get(url, params={"format": "json"})

            if response.status_code >= 300:
                logger.warning("VIN decoder returned HTTP %d for %s", response.status_code, vin)
                return VinDecodingResult(
                    success=False, error=f"NHTSA API error: {response.status_code}"
                )

            results = response.json().get("Results") or [{}]
            data: dict[str, Any] = results[0] or {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("VIN decoding failed for %s: %s", vin, e)
            return VinDecodingResult(success=False, error=str(e) or type(e).__name__)

        error_code = data.get("ErrorCode")
        if error_code and error_code != "0":
            return VinDecodingResult(
                success=False, error=data.get("ErrorText") or "VIN decoding failed"
            )

        return VinDecodingResult(
            success=True,
            body_style=data.get("BodyClass") or None,
            fuel_type=data.get("FuelTypePrimary") or None,
            transmission=data.get("TransmissionStyle") or None,
            engine=_describe_engine(data),
            vehicle_type=data.get("VehicleType") or None,
            drivetrain=data.get("DriveType") or None,
        )


async def decode_vin(vin: str | None, client: httpx.AsyncClient | None = None) -> VinDecodingResult:
    """Decode a single VIN with a short-lived decoder."""
    return await VinDecoder(client=client).decode(vin)
