"""
Booking creation from the customer booking flow.

Validates the customer's selections, builds a new Upcoming booking, and
hands it to the store, which refuses the write if the slot was taken in
the meantime.
"""

import logging
from datetime import date
from typing import Optional

from ridersbud.schemas.booking_schema import Booking, BookingStatus
from ridersbud.schemas.catalog_schema import Service
from ridersbud.schemas.customer_schema import Vehicle
from ridersbud.schemas.mechanic_schema import Mechanic
from ridersbud.storage.database import DatabaseStore
from ridersbud.utils import new_id

logger = logging.getLogger(__name__)


class BookingValidationError(ValueError):
    """Raised when required booking information is missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Cannot create booking - missing required fields: {', '.join(missing)}."
        )


def new_booking(
    customer_name: str,
    service: Optional[Service],
    vehicle: Optional[Vehicle],
    mechanic: Optional[Mechanic],
    day: Optional[date],
    time_label: str,
    notes: str = "",
) -> Booking:
    """Build (but do not store) an Upcoming booking from the customer's choices."""
    missing = [
        field_name
        for field_name, value in [
            ("customer", customer_name and customer_name.strip()),
            ("service", service),
            ("vehicle", vehicle),
            ("mechanic", mechanic),
            ("date", day),
            ("time", time_label and time_label.strip()),
        ]
        if not value
    ]
    if missing:
        raise BookingValidationError(missing)

    return Booking(
        id=new_id("b"),
        customer_name=customer_name.strip(),
        service=service,
        mechanic=mechanic,
        date=day,
        time=time_label.strip(),
        status=BookingStatus.UPCOMING,
        vehicle=vehicle,
        status_history=[],
        before_images=[],
        after_images=[],
        notes=notes,
    )


def create_booking(
    store: DatabaseStore,
    customer_name: str,
    service: Optional[Service],
    vehicle: Optional[Vehicle],
    mechanic: Optional[Mechanic],
    day: Optional[date],
    time_label: str,
    notes: str = "",
) -> Booking:
    """
    Create and persist a booking.

    Raises:
        BookingValidationError: If a required selection is missing.
        SlotUnavailableError: If the time is not a slot the mechanic offers,
            or it is already held.
    """
    booking = new_booking(customer_name, service, vehicle, mechanic, day, time_label, notes)
    return store.add_booking(booking)


def booking_summary(booking: Booking) -> str:
    """One-line confirmation text for a booking."""
    who = booking.mechanic.name if booking.mechanic else "To be assigned"
    return (
        f"Booking {booking.id}: {booking.service.name} on {booking.date.isoformat()} "
        f"at {booking.time} with {who} ({booking.status.value})."
    )


def update_booking_status(
    store: DatabaseStore, booking_id: str, status: BookingStatus, reason: Optional[str] = None
) -> Booking:
    """Move a stored booking along its lifecycle."""
    booking = store.update_booking_status(booking_id, status, reason=reason)
    logger.info("Booking %s is now %s", booking.id, booking.status.value)
    return booking


def cancel_booking(store: DatabaseStore, booking_id: str, reason: str) -> Booking:
    """Cancel a booking, freeing its slot. A reason is required."""
    return update_booking_status(store, booking_id, BookingStatus.CANCELLED, reason=reason)


def accept_job(store: DatabaseStore, booking_id: str, mechanic: Mechanic) -> Booking:
    """Assign ``mechanic`` to a booking and mark them en route."""
    booking = store.accept_job_request(booking_id, mechanic)
    logger.info("Mechanic %s accepted booking %s", mechanic.id, booking.id)
    return booking


def request_reschedule(
    store: DatabaseStore, booking_id: str, new_date: date, new_time: str, reason: str = ""
) -> Booking:
    """Ask to move a booking; the mechanic or an admin answers later."""
    return store.request_reschedule(booking_id, new_date, new_time, reason)


def respond_to_reschedule(store: DatabaseStore, booking_id: str, accepted: bool) -> Booking:
    booking = store.respond_to_reschedule(booking_id, accepted)
    logger.info("Booking %s is now %s", booking.id, booking.status.value)
    return booking


def mark_paid(store: DatabaseStore, booking_id: str) -> Booking:
    return store.mark_booking_as_paid(booking_id)
