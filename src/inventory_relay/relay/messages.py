"""Typed request/response messages exchanged over the relay.

Messages cross a process boundary as camelCase JSON; every request carries a
``command`` discriminator naming the handler that serves it.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from inventory_relay.models.pydantic_models import IngestError, VehicleRead


class RelayCommand(str, Enum):
    """Commands a relay endpoint can serve."""

    AUTHENTICATE = "authenticate"
    SCRAPED_INVENTORY = "scrapedInventory"
    GET_PENDING_VEHICLES = "getPendingVehicles"
    UPDATE_VEHICLE_STATUS = "updateVehicleStatus"
    POST_VEHICLE_TO_FACEBOOK = "postVehicleToFacebook"


class RelayMessage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== REQUESTS ==========


class AuthenticateRequest(RelayMessage):
    command: Literal["authenticate"] = "authenticate"
    token: str
    origin: str | None = None


class ScrapedInventoryRequest(RelayMessage):
    """A scrape batch. Vehicles stay loose dicts so one bad record cannot
    reject the whole message; ingest validates them one by one."""

    command: Literal["scrapedInventory"] = "scrapedInventory"
    source: str
    vehicles: list[dict[str, Any]] = Field(default_factory=list)


class GetPendingVehiclesRequest(RelayMessage):
    command: Literal["getPendingVehicles"] = "getPendingVehicles"


class UpdateVehicleStatusRequest(RelayMessage):
    command: Literal["updateVehicleStatus"] = "updateVehicleStatus"
    vehicle_id: int
    status: Literal["posted", "error"]
    external_post_id: str | None = None


class PostVehicleRequest(RelayMessage):
    command: Literal["postVehicleToFacebook"] = "postVehicleToFacebook"
    vehicle: VehicleRead


RelayRequest = Annotated[
    Union[
        AuthenticateRequest,
        ScrapedInventoryRequest,
        GetPendingVehiclesRequest,
        UpdateVehicleStatusRequest,
        PostVehicleRequest,
    ],
    Field(discriminator="command"),
]

REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(RelayRequest)


# ========== RESPONSES ==========


class RelayResponse(RelayMessage):
    """Common response envelope: ``ok`` plus an error reason and code."""

    ok: bool = True
    error: str | None = None
    code: str | None = None


class AuthenticateResponse(RelayResponse):
    owner_id: str | None = None


class ScrapedInventoryResponse(RelayResponse):
    inserted: int = 0
    updated: int = 0
    errors: list[IngestError] = Field(default_factory=list)


class PendingVehiclesResponse(RelayResponse):
    vehicles: list[VehicleRead] = Field(default_factory=list)


class UpdateVehicleStatusResponse(RelayResponse):
    vehicle: VehicleRead | None = None


class PostVehicleResponse(RelayResponse):
    filled: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


RESPONSE_TYPES: dict[RelayCommand, type[RelayResponse]] = {
    RelayCommand.AUTHENTICATE: AuthenticateResponse,
    RelayCommand.SCRAPED_INVENTORY: ScrapedInventoryResponse,
    RelayCommand.GET_PENDING_VEHICLES: PendingVehiclesResponse,
    RelayCommand.UPDATE_VEHICLE_STATUS: UpdateVehicleStatusResponse,
    RelayCommand.POST_VEHICLE_TO_FACEBOOK: PostVehicleResponse,
}
