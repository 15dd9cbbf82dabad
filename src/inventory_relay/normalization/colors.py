"""Color standardization to the marketplace color vocabulary."""

from inventory_relay.models.pydantic_models import StandardColor

# Scanned in order; the first keyword contained in the input wins.
# None entries are finish qualifiers that defer to a base color.
COLOR_KEYWORD_MAP: dict[str, StandardColor | None] = {
    "silver": StandardColor.SILVER,
    "gray": StandardColor.GRAY,
    "grey": StandardColor.GRAY,
    "blue": StandardColor.BLUE,
    "black": StandardColor.BLACK,
    "white": StandardColor.WHITE,
    "pearl": StandardColor.WHITE,
    "red": StandardColor.RED,
    "green": StandardColor.GREEN,
    "gold": StandardColor.GOLD,
    "brown": StandardColor.BROWN,
    "beige": StandardColor.BEIGE,
    "tan": StandardColor.TAN,
    "charcoal": StandardColor.CHARCOAL,
    "burgundy": StandardColor.BURGUNDY,
    "orange": StandardColor.ORANGE,
    "yellow": StandardColor.YELLOW,
    "pink": StandardColor.PINK,
    "purple": StandardColor.PURPLE,
    "cream": StandardColor.OFF_WHITE,
    "ivory": StandardColor.OFF_WHITE,
    "champagne": StandardColor.BEIGE,
    "bronze": StandardColor.BROWN,
    "copper": StandardColor.BROWN,
    "maroon": StandardColor.BURGUNDY,
    "wine": StandardColor.BURGUNDY,
    "crimson": StandardColor.RED,
    "ruby": StandardColor.RED,
    "azure": StandardColor.BLUE,
    "navy": StandardColor.BLUE,
    "teal": StandardColor.GREEN,
    "lime": StandardColor.GREEN,
    "olive": StandardColor.GREEN,
    "forest": StandardColor.GREEN,
    "slate": StandardColor.GRAY,
    "gunmetal": StandardColor.CHARCOAL,
    "graphite": StandardColor.CHARCOAL,
    "platinum": StandardColor.SILVER,
    "titanium": StandardColor.SILVER,
    "aluminum": StandardColor.SILVER,
    "metallic": None,
    "clearcoat": None,
    "mica": None,
    "pearlcoat": StandardColor.WHITE,
}

PRIORITY_KEYWORDS = ("black", "white", "silver", "gray", "blue", "red", "green")

# Business rule: every listing is posted with a black interior.
INTERIOR_COLOR = StandardColor.BLACK


def standardize_exterior_color(raw_color: str | None) -> StandardColor:
    """Map a free-text exterior color onto the marketplace vocabulary.

    Args:
        raw_color: Color as scraped, e.g. "Pearl White Metallic".

    Returns:
        The matching StandardColor, or StandardColor.UNKNOWN.

    Examples:
        >>> standardize_exterior_color("Pearl White Metallic")
        <StandardColor.WHITE: 'White'>
        >>> standardize_exterior_color("Midnight Navy")
        <StandardColor.BLUE: 'Blue'>
    """
    if not raw_color:
        return StandardColor.UNKNOWN

    normalized = raw_color.lower().strip()

    for keyword, color in COLOR_KEYWORD_MAP.items():
        if color is not None and keyword in normalized:
            return color

    for keyword in PRIORITY_KEYWORDS:
        if keyword in normalized:
            color = COLOR_KEYWORD_MAP.get(keyword)
            if color is not None:
                return color

    return StandardColor.UNKNOWN


def standardize_interior_color(raw_color: str | None = None) -> StandardColor:
    """Return the fixed interior color; the input is intentionally ignored."""
    return INTERIOR_COLOR


def process_vehicle_colors(
    exterior: str | None, interior: str | None = None
) -> tuple[StandardColor, StandardColor]:
    """Standardize an (exterior, interior) color pair."""
    return standardize_exterior_color(exterior), standardize_interior_color(interior)
