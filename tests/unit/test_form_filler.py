"""Unit tests for the marketplace form filler."""

from unittest.mock import AsyncMock, patch

import pytest

from inventory_relay.dom import SoupDocument
from inventory_relay.errors import NotOnTargetPageError
from inventory_relay.models.pydantic_models import StandardColor
from inventory_relay.posting.form_filler import (
    FormFiller,
    fallback_description,
    field_value,
    listing_title,
)

CREATE_URL = "https://www.facebook.com/marketplace/create/vehicle"


def value_of(document: SoupDocument, selector: str) -> str | None:
    element = document.soup.select_one(selector)
    if element.name == "textarea":
        return element.string
    return element.get("value")


class TestFieldValues:
    """Tests for rendering vehicle attributes as form text."""

    def test_listing_title_skips_missing_parts(self, make_vehicle) -> None:
        assert listing_title(make_vehicle()) == "2019 Honda Accord EX-L"
        assert listing_title(make_vehicle(year=None, trim="Sport")) == "Honda Accord EX-L Sport"

    def test_price_in_whole_units(self, make_vehicle) -> None:
        assert field_value(make_vehicle(), "price") == "24995"
        assert field_value(make_vehicle(price=None), "price") == ""

    def test_fallback_description(self, make_vehicle) -> None:
        text = fallback_description(make_vehicle(exterior_color=StandardColor.RED))

        assert text.startswith("2019 Honda Accord EX-L for sale.")
        assert "32,150 miles." in text
        assert "Red exterior, Black interior." in text
        assert "VIN: 1HGCV1F51KA000001" in text


class TestFormFiller:
    """Tests for FormFiller.fill against a saved create-listing page."""

    @pytest.mark.asyncio
    async def test_fills_every_locatable_field(self, marketplace_html: str, make_vehicle) -> None:
        document = SoupDocument(marketplace_html, CREATE_URL)
        vehicle = make_vehicle()

        report = await FormFiller(settle_delay=0).fill(document, vehicle)

        assert report.filled == ["title", "price", "mileage", "vin", "description"]
        assert report.skipped == ["location"]
        assert value_of(document, "#title-input") == "2019 Honda Accord EX-L"
        assert value_of(document, "#price-input") == "24995"
        assert value_of(document, 'input[name="mileage"]') == "32150"
        assert value_of(document, 'input[name="vin"]') == "1HGCV1F51KA000001"
        assert value_of(document, "textarea") == vehicle.description

    @pytest.mark.asyncio
    async def test_rejects_other_pages(self, marketplace_html: str, make_vehicle) -> None:
        document = SoupDocument(marketplace_html, "https://www.facebook.com/marketplace/you")

        with pytest.raises(NotOnTargetPageError, match="create-listing"):
            await FormFiller(settle_delay=0).fill(document, make_vehicle())

    @pytest.mark.asyncio
    async def test_page_without_inputs_skips_all(self, make_vehicle) -> None:
        document = SoupDocument("<html><body><p>Loading</p></body></html>", CREATE_URL)

        report = await FormFiller(settle_delay=0).fill(document, make_vehicle())

        assert report.filled == []
        assert len(report.skipped) == 6

    @pytest.mark.asyncio
    async def test_short_description_is_generated(self, marketplace_html: str, make_vehicle) -> None:
        async def describe(vehicle) -> str:
            return f"  Clean {vehicle.make}, priced to sell.  "

        document = SoupDocument(marketplace_html, CREATE_URL)
        await FormFiller(settle_delay=0, describe=describe).fill(
            document, make_vehicle(description="Nice car")
        )

        assert value_of(document, "textarea") == "Clean Honda, priced to sell."

    @pytest.mark.asyncio
    async def test_generator_failure_falls_back(self, marketplace_html: str, make_vehicle) -> None:
        async def describe(vehicle) -> str:
            raise RuntimeError("model unavailable")

        vehicle = make_vehicle(description="")
        document = SoupDocument(marketplace_html, CREATE_URL)
        await FormFiller(settle_delay=0, describe=describe).fill(document, vehicle)

        assert value_of(document, "textarea") == fallback_description(vehicle)

    @pytest.mark.asyncio
    async def test_label_lookup_is_case_insensitive(self, make_vehicle) -> None:
        html = '<label>ASKING PRICE <input id="p"></label>'
        document = SoupDocument(html, CREATE_URL)

        element = await FormFiller().resolve_field(document, ("Price",))

        assert element is not None
        assert element.get("id") == "p"

    @pytest.mark.asyncio
    async def test_settles_after_each_filled_field_only(
        self, marketplace_html: str, make_vehicle
    ) -> None:
        document = SoupDocument(marketplace_html, CREATE_URL)

        with patch(
            "inventory_relay.posting.form_filler.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            report = await FormFiller().fill(document, make_vehicle())

        assert len(report.filled) == 5
        assert [c.args[0] for c in mock_sleep.await_args_list] == [0.2] * 5
