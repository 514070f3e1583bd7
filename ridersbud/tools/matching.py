"""
Mechanic matching and ranking for the booking screen.

Narrows the full roster to the mechanics who can take a service on a given
date, applies the customer's filters, and sorts the result.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, TypedDict

from ridersbud.config import settings as app_config
from ridersbud.schemas.booking_schema import ON_JOB_STATUSES, Booking
from ridersbud.schemas.catalog_schema import Service
from ridersbud.schemas.database_schema import Settings
from ridersbud.schemas.mechanic_schema import Mechanic, MechanicStatus
from ridersbud.tools.availability import SlotBoundaryPolicy, TimeSlot, slot_board
from ridersbud.utils import parse_hhmm

logger = logging.getLogger(__name__)

ALL_SPECIALIZATIONS = "all"
MIN_SERVICE_WORD_LENGTH = 3


@dataclass(frozen=True)
class MatchFilters:
    """Customer-chosen filters from the mechanic picker."""

    specialization: str = ALL_SPECIALIZATIONS
    search: str = ""
    available_now: bool = False
    sort: str = app_config.booking.default_sort


class MechanicCard(TypedDict):
    """One ranked mechanic with the slots shown for the chosen date."""

    mechanic: Mechanic
    slots: list[TimeSlot]


def matches_service(mechanic: Mechanic, service: Service) -> bool:
    """
    Loose keyword match between a service and a mechanic's tags.

    True if any tag contains (case-insensitively) a service-name word of
    at least three characters, or contains the service category.
    """
    words = [w for w in service.name.lower().split() if len(w) >= MIN_SERVICE_WORD_LENGTH]
    category = service.category.lower()
    for raw in mechanic.specializations:
        tag = raw.lower()
        if any(word in tag for word in words):
            return True
        if category in tag:
            return True
    return False


def is_available_now(mechanic: Mechanic, bookings: Iterable[Booking], now: datetime) -> bool:
    """Within today's working window and not currently out on a job."""
    schedule = mechanic.schedule_for(now.date())
    if schedule is None or not schedule.is_available:
        return False
    clock = parse_hhmm(now.strftime("%H:%M"))
    if clock < parse_hhmm(schedule.start_time) or clock > parse_hhmm(schedule.end_time):
        return False
    return not any(
        b.mechanic_id == mechanic.id and b.status in ON_JOB_STATUSES for b in bookings
    )


def _sort_key(sort: str):
    if sort == "rating":
        return lambda m: -m.rating
    if sort == "jobs":
        return lambda m: -m.reviews
    if sort == "name":
        return lambda m: m.name.casefold()
    raise ValueError(f"Unknown sort option: {sort!r}")


def rank_mechanics(
    mechanics: Sequence[Mechanic],
    service: Optional[Service],
    day: date,
    filters: Optional[MatchFilters] = None,
    bookings: Sequence[Booking] = (),
    now: Optional[datetime] = None,
    preselected_id: Optional[str] = None,
) -> list[Mechanic]:
    """
    Return the mechanics who can be offered for ``service`` on ``day``.

    Args:
        mechanics: Full roster; not modified.
        service: Requested service, or None to skip the specialization match.
        day: Calendar date of the appointment.
        filters: Dropdown, search, "available now", and sort choices.
        bookings: Existing bookings, consulted by the "available now" filter.
        now: Current local time; defaults to ``datetime.now()``.
        preselected_id: Mechanic chosen before opening the picker (e.g. from
            their profile). If they pass the filters they are listed first.

    Returns:
        A new list, stably sorted by the chosen key.
    """
    filters = filters or MatchFilters()
    now = now or datetime.now()
    is_today = day == now.date()
    search = filters.search.strip().lower()

    def keep(mechanic: Mechanic) -> bool:
        if mechanic.status != MechanicStatus.ACTIVE:
            return False
        if mechanic.is_on_time_off(day):
            return False
        schedule = mechanic.schedule_for(day)
        if schedule is None or not schedule.is_available:
            return False
        if service is not None and not matches_service(mechanic, service):
            return False
        if (
            filters.specialization != ALL_SPECIALIZATIONS
            and filters.specialization not in mechanic.specializations
        ):
            return False
        if filters.available_now and is_today and not is_available_now(mechanic, bookings, now):
            return False
        if search and search not in mechanic.name.lower():
            return False
        return True

    ranked = sorted((m for m in mechanics if keep(m)), key=_sort_key(filters.sort))
    if preselected_id is not None:
        ranked.sort(key=lambda m: m.id != preselected_id)
    logger.debug(
        "Matched %d of %d mechanics for %s on %s",
        len(ranked), len(mechanics), service.name if service else "any service", day,
    )
    return ranked


def list_specializations(mechanics: Iterable[Mechanic]) -> list[str]:
    """Dropdown options: ``"all"`` followed by every active mechanic's tags, sorted."""
    tags = {
        tag
        for m in mechanics if m.status == MechanicStatus.ACTIVE
        for tag in m.specializations
    }
    return [ALL_SPECIALIZATIONS, *sorted(tags)]


def build_availability_board(
    mechanics: Sequence[Mechanic],
    service: Optional[Service],
    day: date,
    settings: Settings,
    bookings: Sequence[Booking],
    filters: Optional[MatchFilters] = None,
    now: Optional[datetime] = None,
    policy: Optional[SlotBoundaryPolicy] = None,
    preselected_id: Optional[str] = None,
) -> list[MechanicCard]:
    """Ranked mechanics paired with their slot boards for ``day``."""
    ranked = rank_mechanics(mechanics, service, day, filters, bookings, now, preselected_id)
    return [
        {"mechanic": m, "slots": slot_board(m, settings, day, bookings, policy)}
        for m in ranked
    ]
