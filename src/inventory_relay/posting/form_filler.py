"""Fill the marketplace create-listing form from a stored vehicle."""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from inventory_relay.dom.base import DomDocument, Element
from inventory_relay.errors import NotOnTargetPageError
from inventory_relay.models.pydantic_models import VehicleRead

logger = logging.getLogger(__name__)

CREATE_PAGE_PATTERN = re.compile(r"facebook\.com/marketplace/create/")

# Descriptions shorter than this get a generated one instead.
MIN_DESCRIPTION_LENGTH = 30

DescriptionGenerator = Callable[[VehicleRead], Awaitable[str]]


@dataclass(frozen=True)
class FormField:
    """A logical form field and the visible labels it may carry, in order."""

    key: str
    labels: tuple[str, ...]


FORM_FIELDS: tuple[FormField, ...] = (
    FormField("title", ("Title", "Listing title", "Headline")),
    FormField("price", ("Price",)),
    FormField("mileage", ("Mileage",)),
    FormField("vin", ("VIN", "Vehicle Identification Number")),
    FormField("description", ("Description", "Details")),
    FormField("location", ("Location", "City")),
)


@dataclass
class FillReport:
    """Which fields were written and which had no matching input."""

    filled: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def listing_title(vehicle: VehicleRead) -> str:
    parts = (vehicle.year, vehicle.make, vehicle.model, vehicle.trim)
    return " ".join(str(part) for part in parts if part)


def fallback_description(vehicle: VehicleRead) -> str:
    """Template description used when none is stored."""
    lines = [f"{listing_title(vehicle)} for sale."]
    if vehicle.mileage is not None:
        lines.append(f"{vehicle.mileage:,} miles.")
    if vehicle.exterior_color.value != "Unknown":
        lines.append(
            f"{vehicle.exterior_color.value} exterior, {vehicle.interior_color.value} interior."
        )
    if vehicle.vin:
        lines.append(f"VIN: {vehicle.vin}")
    lines.append("Message for details and to schedule a test drive.")
    return " ".join(lines)


def field_value(vehicle: VehicleRead, key: str) -> str:
    """Render a vehicle attribute as form text (price in whole units)."""
    if key == "title":
        return listing_title(vehicle)
    if key == "price":
        return str(vehicle.price // 100) if vehicle.price is not None else ""
    if key == "mileage":
        return str(vehicle.mileage) if vehicle.mileage is not None else ""
    value = getattr(vehicle, key)
    return str(value) if value is not None else ""


class FormFiller:
    """Locates inputs by placeholder or label text and writes values into them.

    Fields that cannot be located are skipped. Image upload is left to the
    user.
    """

    def __init__(
        self,
        settle_delay: float = 0.2,
        describe: DescriptionGenerator | None = None,
    ) -> None:
        self._settle_delay = settle_delay
        self._describe = describe

    @staticmethod
    def is_target_page(url: str) -> bool:
        return CREATE_PAGE_PATTERN.search(url or "") is not None

    async def resolve_field(self, document: DomDocument, labels: tuple[str, ...]) -> Element | None:
        """Find the input for the first label that resolves.

        For each label: an input or textarea whose placeholder contains it,
        else a <label> containing the text, followed to its ``for`` target
        or its nested input.
        """
        for label in labels:
            element = await document.query_first(
                [f'input[placeholder*="{label}"]', f'textarea[placeholder*="{label}"]']
            )
            if element is not None:
                return element

            label_element = await self._find_label(document, label)
            if label_element is None:
                continue

            target_id = await document.read_attribute(label_element, "for")
            if target_id:
                element = await document.get_by_id(target_id)
                if element is not None:
                    return element

            element = await document.query_first(["input, textarea"], within=label_element)
            if element is not None:
                return element
        return None

    async def _find_label(self, document: DomDocument, text: str) -> Element | None:
        needle = text.lower()
        for label_element in await document.query_all("label"):
            if needle in (await document.read_text(label_element)).lower():
                return label_element
        return None

    async def _description(self, vehicle: VehicleRead) -> str:
        if len(vehicle.description.strip()) >= MIN_DESCRIPTION_LENGTH:
            return vehicle.description
        if self._describe is not None:
            try:
                generated = await self._describe(vehicle)
            except Exception:
                logger.exception("Description generation failed for vehicle %d", vehicle.id)
            else:
                if generated.strip():
                    return generated.strip()
        return fallback_description(vehicle)

    async def fill(self, document: DomDocument, vehicle: VehicleRead) -> FillReport:
        """Populate every locatable form field for ``vehicle``.

        Raises:
            NotOnTargetPageError: If the document is not the create-listing page.
        """
        if not self.is_target_page(document.url):
            raise NotOnTargetPageError(
                f"Not on the marketplace create-listing page: {document.url or '<blank>'}"
            )

        report = FillReport()
        for form_field in FORM_FIELDS:
            element = await self.resolve_field(document, form_field.labels)
            if element is None:
                logger.info("No input found for %s, skipping", form_field.key)
                report.skipped.append(form_field.key)
                continue

            if form_field.key == "description":
                value = await self._description(vehicle)
            else:
                value = field_value(vehicle, form_field.key)
            await document.set_value(element, value)
            report.filled.append(form_field.key)
            await asyncio.sleep(self._settle_delay)

        if vehicle.images:
            logger.info(
                "Vehicle %d has %d images; attach them manually before publishing",
                vehicle.id,
                len(vehicle.images),
            )
        return report
