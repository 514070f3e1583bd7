"""
Mechanic availability and time-slot resolution.

Turns a mechanic's weekly schedule, time off, and the business settings
into the discrete slot labels a customer can pick for one calendar date.
Everything here is a pure function of its inputs.
"""

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional, TypedDict

from ridersbud.config import settings as app_config
from ridersbud.schemas.booking_schema import Booking
from ridersbud.schemas.database_schema import Settings
from ridersbud.schemas.mechanic_schema import Mechanic
from ridersbud.utils import format_slot_label, parse_hhmm

logger = logging.getLogger(__name__)


class SlotBoundaryPolicy(str, Enum):
    """
    How the last slot of a working window is treated.

    FULL_FIT: a slot is offered only if it ends at or before closing time.
    START_BEFORE_CLOSE: a slot is offered if it starts before closing time,
    even when its duration runs past it.
    """
    FULL_FIT = "full_fit"
    START_BEFORE_CLOSE = "start_before_close"


class TimeSlot(TypedDict):
    """A generated slot and whether an active booking already holds it."""

    label: str
    booked: bool


def default_policy() -> SlotBoundaryPolicy:
    return SlotBoundaryPolicy(app_config.booking.slot_boundary_policy)


def compute_slots_for_day(
    mechanic: Mechanic,
    settings: Settings,
    day: date,
    policy: Optional[SlotBoundaryPolicy] = None,
    clamp_to_business_hours: Optional[bool] = None,
) -> list[str]:
    """
    Return every slot label the mechanic works on ``day``, booked or not.

    Slots start at the mechanic's own start time and step by the slot
    duration in ``settings``. With ``clamp_to_business_hours`` (default from
    ``CLAMP_TO_BUSINESS_HOURS``) the window is first narrowed to the business
    hours in ``settings``. Days off (weekly or time off) and empty windows
    produce an empty list.
    """
    policy = policy or default_policy()
    if clamp_to_business_hours is None:
        clamp_to_business_hours = app_config.booking.clamp_to_business_hours
    schedule = mechanic.schedule_for(day)
    if schedule is None or not schedule.is_available:
        return []
    if mechanic.is_on_time_off(day):
        return []

    start = parse_hhmm(schedule.start_time)
    end = parse_hhmm(schedule.end_time)
    if clamp_to_business_hours:
        start = max(start, parse_hhmm(settings.booking_start_time))
        end = min(end, parse_hhmm(settings.booking_end_time))
    if start >= end:
        logger.warning(
            "Empty working window for mechanic %s on %s (%s-%s, clamped=%s)",
            mechanic.id, day, schedule.start_time, schedule.end_time,
            clamp_to_business_hours,
        )
        return []

    step = timedelta(minutes=settings.booking_slot_duration)
    slots = []
    current = start
    while current < end:
        if policy == SlotBoundaryPolicy.FULL_FIT and current + step > end:
            break
        slots.append(format_slot_label(current))
        current += step
    return slots


def booked_slots(mechanic_id: str, day: date, bookings: Iterable[Booking]) -> set[str]:
    """Time labels held by the mechanic's active bookings on ``day``."""
    return {
        b.time for b in bookings
        if b.holds_slot(mechanic_id, day, b.time)
    }


def slot_board(
    mechanic: Mechanic,
    settings: Settings,
    day: date,
    bookings: Iterable[Booking],
    policy: Optional[SlotBoundaryPolicy] = None,
) -> list[TimeSlot]:
    """All generated slots for the day, with booked ones flagged instead of removed."""
    taken = booked_slots(mechanic.id, day, bookings)
    return [
        {"label": label, "booked": label in taken}
        for label in compute_slots_for_day(mechanic, settings, day, policy)
    ]


def selectable_slots(
    mechanic: Mechanic,
    settings: Settings,
    day: date,
    bookings: Iterable[Booking],
    policy: Optional[SlotBoundaryPolicy] = None,
) -> list[str]:
    """Slot labels a customer can still pick."""
    return [
        slot["label"]
        for slot in slot_board(mechanic, settings, day, bookings, policy)
        if not slot["booked"]
    ]
