"""Numeric parsing for scraped price and mileage text."""

import re

_NON_NUMERIC_RE = re.compile(r"[^\d.]")


def to_number(value: str | float | int | None) -> float | None:
    """Parse a number out of free text.

    Every character that is not a digit or a decimal point is removed before
    parsing, so currency symbols, thousands separators and unit suffixes are
    tolerated.

    Examples:
        >>> to_number("$24,995")
        24995.0
        >>> to_number("32,150 mi")
        32150.0
        >>> to_number("N/A") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    digits = _NON_NUMERIC_RE.sub("", str(value))
    if not digits:
        return None
    try:
        return float(digits)
    except ValueError:
        return None


def to_int(value: str | float | int | None) -> int | None:
    """Parse a whole number (e.g. mileage) out of free text."""
    number = to_number(value)
    return int(number) if number is not None else None


def to_minor_units(value: str | float | int | None) -> int | None:
    """Parse a currency amount in whole units and return it in cents."""
    number = to_number(value)
    return int(round(number * 100)) if number is not None else None
