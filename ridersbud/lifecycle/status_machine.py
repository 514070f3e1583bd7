"""
Booking status lifecycle.

A booking moves forward through:

    Upcoming -> Booking Confirmed -> Mechanic Assigned -> En Route
             -> In Progress -> Completed

Intermediate steps may be skipped (accepting a job goes straight from
Upcoming to En Route). Before a mechanic is on the way, a booking may move
to Reschedule Requested; from there it returns to any pre-dispatch status.
Cancelled is reachable from every non-terminal status. Completed and
Cancelled are terminal.

Usage:
    booking = apply_status(booking, BookingStatus.EN_ROUTE)
    booking = apply_status(booking, BookingStatus.CANCELLED, reason="Customer request")
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ridersbud.schemas.booking_schema import Booking, BookingStatus, StatusHistoryEntry

logger = logging.getLogger(__name__)

FORWARD_ORDER: list[BookingStatus] = [
    BookingStatus.UPCOMING,
    BookingStatus.BOOKING_CONFIRMED,
    BookingStatus.MECHANIC_ASSIGNED,
    BookingStatus.EN_ROUTE,
    BookingStatus.IN_PROGRESS,
    BookingStatus.COMPLETED,
]

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# Statuses a reschedule can be requested from, and returned to.
RESCHEDULABLE_STATUSES: list[BookingStatus] = [
    BookingStatus.UPCOMING,
    BookingStatus.BOOKING_CONFIRMED,
    BookingStatus.MECHANIC_ASSIGNED,
]


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus


class InvalidTransitionError(Exception):
    """Raised when a status change is not valid from the current status."""


class CancellationReasonRequired(ValueError):
    """Raised when a booking is cancelled without a reason."""


def _build_transitions() -> list[Transition]:
    transitions = []
    for i, current in enumerate(FORWARD_ORDER):
        if current in TERMINAL_STATUSES:
            continue
        for later in FORWARD_ORDER[i + 1:]:
            transitions.append(Transition(current, later))
        if current in RESCHEDULABLE_STATUSES:
            transitions.append(Transition(current, BookingStatus.RESCHEDULE_REQUESTED))
        transitions.append(Transition(current, BookingStatus.CANCELLED))
    for previous in RESCHEDULABLE_STATUSES:
        transitions.append(Transition(BookingStatus.RESCHEDULE_REQUESTED, previous))
    transitions.append(Transition(BookingStatus.RESCHEDULE_REQUESTED, BookingStatus.CANCELLED))
    return transitions


TRANSITIONS: list[Transition] = _build_transitions()


def valid_targets(status: BookingStatus) -> list[BookingStatus]:
    """Return all statuses reachable in one step from ``status``."""
    return [t.to_status for t in TRANSITIONS if t.from_status == status]


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def apply_status(
    booking: Booking,
    new_status: BookingStatus,
    reason: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Booking:
    """
    Move a booking to ``new_status`` and record it in the status history.

    Setting the status the booking already has is a no-op and returns the
    same object. Otherwise a new Booking is returned; the input is not
    modified.

    Raises:
        CancellationReasonRequired: Cancelling without a non-empty reason.
        InvalidTransitionError: If the move is not part of the lifecycle.
    """
    new_status = BookingStatus(new_status)
    if new_status == booking.status:
        return booking

    if Transition(booking.status, new_status) not in TRANSITIONS:
        valid = [s.value for s in valid_targets(booking.status)]
        raise InvalidTransitionError(
            f"Booking {booking.id} cannot move from '{booking.status.value}' "
            f"to '{new_status.value}'. Valid targets: {valid}"
        )

    update: dict = {
        "status": new_status,
        "status_history": [
            *booking.status_history,
            StatusHistoryEntry(status=new_status, timestamp=at or datetime.now(timezone.utc)),
        ],
    }
    if new_status == BookingStatus.CANCELLED:
        if not reason or not reason.strip():
            raise CancellationReasonRequired(
                f"A cancellation reason is required to cancel booking {booking.id}."
            )
        update["cancellation_reason"] = reason.strip()

    logger.debug(
        "Booking %s status: %s -> %s", booking.id, booking.status.value, new_status.value,
    )
    return booking.model_copy(update=update)
