"""End-to-end tests: scrape, relay, ingest, posting, status."""

import pytest

from inventory_relay.config import RelaySettings, ScrapeRetryPolicy
from inventory_relay.dom import SoupDocument
from inventory_relay.models.pydantic_models import ScrapeSource
from inventory_relay.posting.orchestrator import PostingOrchestrator
from inventory_relay.relay.auth import StaticIdentityProvider
from inventory_relay.relay.hub import RelayHub
from inventory_relay.relay.messages import (
    GetPendingVehiclesRequest,
    PostVehicleRequest,
    UpdateVehicleStatusRequest,
)
from inventory_relay.services.scrape_service import ScrapeService

CREATE_URL = "https://www.facebook.com/marketplace/create/vehicle"
SETTINGS = RelaySettings(
    field_settle_delay=0,
    inter_task_delay=0,
    scrape_retry=ScrapeRetryPolicy(delays=(0,)),
)
TOKENS = {"tok-1": "dealer-1", "tok-2": "dealer-2"}


@pytest.fixture
def hub(session_factory) -> RelayHub:
    return RelayHub(session_factory, SETTINGS, StaticIdentityProvider(TOKENS))


async def scrape(hub: RelayHub, html: str):
    return await ScrapeService(hub.relay, SETTINGS).scrape_html(
        html, ScrapeSource.CARSFORSALE, url="https://www.carsforsale.com/lakeside-motors"
    )


class TestScrapeToIngest:
    """Scraped batches flow over the relay into storage."""

    @pytest.mark.asyncio
    async def test_scrape_inserts_then_updates(self, hub: RelayHub, carsforsale_html: str) -> None:
        await hub.authenticate("tok-1", origin="http://localhost:3000")

        first = await scrape(hub, carsforsale_html)
        second = await scrape(hub, carsforsale_html)

        assert first.sent is True
        assert (first.response.inserted, first.response.updated) == (3, 0)
        # The VIN-less Camry has no identity to match on and is inserted again.
        assert (second.response.inserted, second.response.updated) == (1, 2)

    @pytest.mark.asyncio
    async def test_unauthenticated_batch_is_rejected(
        self, hub: RelayHub, carsforsale_html: str
    ) -> None:
        result = await scrape(hub, carsforsale_html)

        assert result.response.ok is False
        assert result.response.code == "missing_owner"
        assert result.response.inserted == 0
        assert len(result.response.errors) == 3

    @pytest.mark.asyncio
    async def test_empty_page_sends_nothing(self, hub: RelayHub) -> None:
        result = await scrape(hub, "<html><body><p>No results</p></body></html>")

        assert result.sent is False
        assert result.batch.vehicles == []

    @pytest.mark.asyncio
    async def test_pending_requires_authentication(self, hub: RelayHub) -> None:
        response = await hub.relay.send(GetPendingVehiclesRequest())

        assert response.ok is False
        assert response.code == "missing_owner"


class TestPostingFlow:
    """Pending vehicles are filled into the create-listing form."""

    @pytest.mark.asyncio
    async def test_all_vehicles_posted(
        self, hub: RelayHub, carsforsale_html: str, marketplace_html: str
    ) -> None:
        await hub.authenticate("tok-1")
        await scrape(hub, carsforsale_html)
        documents: list[SoupDocument] = []

        async def fresh_form() -> SoupDocument:
            documents.append(SoupDocument(marketplace_html, CREATE_URL))
            return documents[-1]

        hub.attach_document(fresh_form)
        result = await PostingOrchestrator(hub.relay, SETTINGS).run()

        assert result.posted == 3
        assert result.errored == 0
        title = documents[0].soup.select_one("#title-input")
        assert title["value"] == "2019 Honda Accord EX-L"
        pending = await hub.relay.send(GetPendingVehiclesRequest())
        assert pending.vehicles == []

    @pytest.mark.asyncio
    async def test_wrong_page_leaves_vehicles_pending(
        self, hub: RelayHub, carsforsale_html: str, marketplace_html: str
    ) -> None:
        await hub.authenticate("tok-1")
        await scrape(hub, carsforsale_html)

        async def wrong_page() -> SoupDocument:
            return SoupDocument(marketplace_html, "https://www.facebook.com/")

        hub.attach_document(wrong_page)
        result = await PostingOrchestrator(hub.relay, SETTINGS).run()

        assert result.errored == 3
        assert all("create-listing" in task.error for task in result.tasks)
        pending = await hub.relay.send(GetPendingVehiclesRequest())
        assert len(pending.vehicles) == 3
        assert {vehicle.status.value for vehicle in pending.vehicles} == {"error"}

    @pytest.mark.asyncio
    async def test_post_without_page(self, hub: RelayHub, make_vehicle) -> None:
        response = await hub.relay.send(PostVehicleRequest(vehicle=make_vehicle()))

        assert response.ok is False
        assert response.code == "target_context"

    @pytest.mark.asyncio
    async def test_cannot_update_another_owners_vehicle(
        self, hub: RelayHub, carsforsale_html: str
    ) -> None:
        await hub.authenticate("tok-1")
        await scrape(hub, carsforsale_html)
        vehicle_id = (await hub.relay.send(GetPendingVehiclesRequest())).vehicles[0].id

        await hub.authenticate("tok-2")
        response = await hub.relay.send(
            UpdateVehicleStatusRequest(vehicle_id=vehicle_id, status="posted")
        )

        assert response.ok is False
        assert response.code == "validation"
