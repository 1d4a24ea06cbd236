"""
Input validation for the dialogue.

Each parser either returns a normalised value or raises InvalidInput
carrying the message to show the user.
"""

import re
from typing import Optional

from .calculator import round2
from .devices import DeviceType

MIN_DEVICE_COUNT = 1
MAX_DEVICE_COUNT = 50
MIN_QUANTITY = 1
MAX_QUANTITY = 100
MIN_WATTAGE = 1
MAX_WATTAGE = 50000
MIN_HOURS = 1 / 60
MAX_HOURS = 24.0

AUTO_WATTAGE_TOKENS = {"auto", "default"}

# Tried in order, first match wins
_HOURS_AND_MINUTES = re.compile(r"^(\d+(?:\.\d+)?)\s*h\s*(\d+)?\s*m(?:in)?$", re.IGNORECASE)
_MINUTES_ONLY = re.compile(r"^(\d+(?:\.\d+)?)\s*m(?:in)?$", re.IGNORECASE)
_HOURS_ONLY = re.compile(r"^(\d+(?:\.\d+)?|\.\d+)\s*h?$", re.IGNORECASE)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class InvalidInput(ValueError):
    """Raised when a dialogue answer fails validation."""


def _parse_leading_int(text: str) -> Optional[int]:
    """Parse the leading integer of text ("3 devices" -> 3)."""
    match = _LEADING_INT.match(text)
    if not match:
        return None
    return int(match.group(1))


def parse_device_count(text: str) -> int:
    count = _parse_leading_int(text)
    if count is None or not MIN_DEVICE_COUNT <= count <= MAX_DEVICE_COUNT:
        raise InvalidInput(
            f"Please enter a valid number between {MIN_DEVICE_COUNT} and {MAX_DEVICE_COUNT}."
        )
    return count


def parse_quantity(text: str) -> int:
    quantity = _parse_leading_int(text)
    if quantity is None or not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
        raise InvalidInput(f"Please enter a valid quantity ({MIN_QUANTITY}–{MAX_QUANTITY}).")
    return quantity


def parse_wattage(text: str, device_type: DeviceType) -> int:
    """Parse a wattage answer.

    "auto" and "default" resolve to the device type's default wattage.
    """
    if text.strip().lower() in AUTO_WATTAGE_TOKENS:
        return device_type.default_wattage

    wattage = _parse_leading_int(text)
    if wattage is None or not MIN_WATTAGE <= wattage <= MAX_WATTAGE:
        raise InvalidInput(
            f"Please enter a valid wattage ({MIN_WATTAGE}–{MAX_WATTAGE}) or type `auto`."
        )
    return wattage


def parse_duration(text: str) -> float:
    """Parse a daily usage duration into hours.

    Accepts "2", "0.5", "2h", "30m", "45min", "1h30m" and "1h 30min".
    The result is bounded to one minute .. 24 hours and rounded to
    2 decimal places.

    Raises:
        InvalidInput: If the text is not a duration or is out of range
    """
    value = text.strip().lower()
    hours: Optional[float] = None

    match = _HOURS_AND_MINUTES.match(value)
    if match:
        hours = float(match.group(1))
        if match.group(2):
            hours += float(match.group(2)) / 60
    else:
        match = _MINUTES_ONLY.match(value)
        if match:
            hours = float(match.group(1)) / 60
        else:
            match = _HOURS_ONLY.match(value)
            if match:
                hours = float(match.group(1))

    if hours is None or hours < MIN_HOURS or hours > MAX_HOURS:
        raise InvalidInput(
            "⚠️ Please enter a valid duration.\n"
            "Examples: `2` (hours), `30m` (minutes), `1h30m` (mixed)\n"
            "Range: 1 minute to 24 hours."
        )
    return round2(hours)
