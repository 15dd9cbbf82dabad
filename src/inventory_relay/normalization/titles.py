"""Heuristic parsing of listing titles into year, make and model."""

import re
from typing import NamedTuple

YEAR_MIN = 1981
YEAR_MAX = 2099

_LEADING_INT_RE = re.compile(r"^\d+")


class TitleParts(NamedTuple):
    """Year, make and model parsed from a listing title."""

    year: int
    make: str
    model: str


def parse_title(title: str | None) -> TitleParts | None:
    """Split "2021 Honda Accord LX" into (2021, "Honda", "Accord LX").

    The first token must start with an integer in [1981, 2099]; the second
    token is the make and the remainder is the model. Returns None when any
    of the three cannot be populated.
    """
    if not title:
        return None

    parts = title.split()
    if len(parts) < 3:
        return None

    match = _LEADING_INT_RE.match(parts[0])
    if match is None:
        return None

    year = int(match.group(0))
    if not YEAR_MIN <= year <= YEAR_MAX:
        return None

    return TitleParts(year=year, make=parts[1], model=" ".join(parts[2:]))
