"""Wires relay commands to the ingest, auth and posting services."""

import logging
from collections.abc import Awaitable, Callable
from contextlib import AbstractContextManager

from sqlalchemy.orm import Session

from inventory_relay.config import RelaySettings
from inventory_relay.dom.base import DomDocument
from inventory_relay.errors import MissingOwnerError, TargetContextError
from inventory_relay.posting.form_filler import FormFiller
from inventory_relay.relay.auth import AuthBridge, IdentityProvider
from inventory_relay.relay.channel import MessageRelay
from inventory_relay.relay.messages import (
    AuthenticateRequest,
    AuthenticateResponse,
    GetPendingVehiclesRequest,
    PendingVehiclesResponse,
    PostVehicleRequest,
    PostVehicleResponse,
    RelayCommand,
    ScrapedInventoryRequest,
    ScrapedInventoryResponse,
    UpdateVehicleStatusRequest,
    UpdateVehicleStatusResponse,
)
from inventory_relay.services.ingest_service import IngestService

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]
DocumentProvider = Callable[[], Awaitable[DomDocument]]


class RelayHub:
    """The background endpoint: owns the relay and serves every command.

    Args:
        session_factory: Returns a context-managed database session.
        settings: Relay settings.
        identity_provider: Resolves authentication tokens.
        document_provider: Returns the page to fill for posting commands.
        form_filler: Overrides the default form filler.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        settings: RelaySettings,
        identity_provider: IdentityProvider,
        document_provider: DocumentProvider | None = None,
        form_filler: FormFiller | None = None,
    ) -> None:
        self.settings = settings
        self.relay = MessageRelay(timeout=settings.relay_timeout)
        self.auth = AuthBridge(identity_provider, settings)
        self._session_factory = session_factory
        self._document_provider = document_provider
        self._form_filler = form_filler or FormFiller(settle_delay=settings.field_settle_delay)

        self.relay.register(RelayCommand.AUTHENTICATE, self._handle_authenticate)
        self.relay.register(RelayCommand.SCRAPED_INVENTORY, self._handle_scraped_inventory)
        self.relay.register(RelayCommand.GET_PENDING_VEHICLES, self._handle_pending_vehicles)
        self.relay.register(RelayCommand.UPDATE_VEHICLE_STATUS, self._handle_update_status)
        self.relay.register(RelayCommand.POST_VEHICLE_TO_FACEBOOK, self._handle_post_vehicle)

    async def authenticate(self, token: str, origin: str | None = None) -> AuthenticateResponse:
        return await self.relay.send(AuthenticateRequest(token=token, origin=origin))

    def attach_document(self, provider: DocumentProvider) -> None:
        self._document_provider = provider

    def _require_owner(self) -> str:
        owner_id = self.auth.owner_id
        if owner_id is None:
            raise MissingOwnerError("Missing user; please authenticate first")
        return owner_id

    async def _handle_authenticate(self, request: AuthenticateRequest) -> AuthenticateResponse:
        return await self.auth.authenticate(request)

    async def _handle_scraped_inventory(
        self, request: ScrapedInventoryRequest
    ) -> ScrapedInventoryResponse:
        owner_id = self.auth.owner_id
        with self._session_factory() as session:
            result = IngestService(session).ingest_batch(
                request.vehicles, owner_id=owner_id, source=request.source
            )

        response = ScrapedInventoryResponse(
            inserted=len(result.inserted),
            updated=len(result.updated),
            errors=result.errored,
        )
        if owner_id is None:
            error = MissingOwnerError()
            response.ok = False
            response.error = error.message
            response.code = error.code
        return response

    async def _handle_pending_vehicles(
        self, request: GetPendingVehiclesRequest
    ) -> PendingVehiclesResponse:
        owner_id = self._require_owner()
        with self._session_factory() as session:
            vehicles = IngestService(session).get_pending_vehicles(owner_id)
        return PendingVehiclesResponse(vehicles=vehicles)

    async def _handle_update_status(
        self, request: UpdateVehicleStatusRequest
    ) -> UpdateVehicleStatusResponse:
        owner_id = self._require_owner()
        with self._session_factory() as session:
            vehicle = IngestService(session).update_vehicle_status(
                request.vehicle_id,
                request.status,
                external_post_id=request.external_post_id,
                owner_id=owner_id,
            )
        return UpdateVehicleStatusResponse(vehicle=vehicle)

    async def _handle_post_vehicle(self, request: PostVehicleRequest) -> PostVehicleResponse:
        if self._document_provider is None:
            raise TargetContextError("No marketplace page is attached")
        document = await self._document_provider()
        report = await self._form_filler.fill(document, request.vehicle)
        return PostVehicleResponse(filled=report.filled, skipped=report.skipped)
