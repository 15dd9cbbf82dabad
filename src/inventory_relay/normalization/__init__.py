"""Pure normalization of scraped text into canonical vehicle fields."""

from inventory_relay.normalization.colors import (
    INTERIOR_COLOR,
    process_vehicle_colors,
    standardize_exterior_color,
    standardize_interior_color,
)
from inventory_relay.normalization.numbers import to_int, to_minor_units, to_number
from inventory_relay.normalization.titles import TitleParts, parse_title
from inventory_relay.normalization.vin import (
    VinDecoder,
    decode_vin,
    extract_vin,
    is_valid_vin,
    map_decoded_value,
)

__all__ = [
    "INTERIOR_COLOR",
    "TitleParts",
    "VinDecoder",
    "decode_vin",
    "extract_vin",
    "is_valid_vin",
    "map_decoded_value",
    "parse_title",
    "process_vehicle_colors",
    "standardize_exterior_color",
    "standardize_interior_color",
    "to_int",
    "to_minor_units",
    "to_number",
]
