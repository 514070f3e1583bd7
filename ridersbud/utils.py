"""Shared utilities used across the booking core."""

import math
import re
import uuid
from datetime import datetime


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("555-0101-111")
        '5550101111'
        >>> normalize_phone("+63 (917) 123-4567")
        '+639171234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def new_id(prefix: str) -> str:
    """Return a collision-resistant record id such as ``b-3f9a1c0d2e4b``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def parse_hhmm(value: str) -> datetime:
    """Parse an ``HH:MM`` clock time onto a fixed reference date."""
    return datetime.strptime(value.strip(), "%H:%M")


def format_slot_label(moment: datetime) -> str:
    """Format a slot start as a 12-hour label, e.g. ``09:00 AM``."""
    return moment.strftime("%I:%M %p")


SLOT_LABEL_FORMATS = ("%I:%M %p", "%I:%M%p", "%H:%M")


def normalize_slot_label(value: str) -> str:
    """Canonical slot label for user-typed times.

    Examples:
        >>> normalize_slot_label("9:00 am")
        '09:00 AM'
        >>> normalize_slot_label("14:30")
        '02:30 PM'

    Raises:
        ValueError: If ``value`` is not a recognizable clock time.
    """
    text = " ".join(value.split())
    for fmt in SLOT_LABEL_FORMATS:
        try:
            return format_slot_label(datetime.strptime(text, fmt))
        except ValueError:
            continue
    raise ValueError(f"Not a valid slot time: {value!r}")


EARTH_RADIUS_KM = 6371.0
# Average city driving speed used for arrival estimates.
AVERAGE_SPEED_KMH = 40.0


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance between two points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def eta_minutes(distance: float) -> int:
    """Whole minutes to cover ``distance`` km, never less than one."""
    return max(1, math.ceil(distance / AVERAGE_SPEED_KMH * 60))
