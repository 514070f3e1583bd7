"""
Best-effort booking notifications.

``BookingNotifier`` subscribes to a store and turns booking creation and
status changes into short messages for a sink. The default sink writes to
the log; a desktop or push integration can pass its own callable. Sink
failures are logged and never reach the store.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ridersbud.config import settings as app_config
from ridersbud.schemas.booking_schema import BookingStatus
from ridersbud.schemas.database_schema import Database
from ridersbud.storage.database import (
    BOOKING_CREATED,
    BOOKING_STATUS_CHANGED,
    ChangeEvent,
    DatabaseStore,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    booking_id: str


Sink = Callable[[Notification], None]


def log_sink(notification: Notification) -> None:
    logger.info("Notification: %s - %s", notification.title, notification.body)


class BookingNotifier:
    """Store listener that emits booking notifications."""

    def __init__(self, sink: Sink = log_sink, enabled: Optional[bool] = None) -> None:
        self.sink = sink
        self.enabled = app_config.notifications.booking_updates if enabled is None else enabled
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, store: DatabaseStore) -> "BookingNotifier":
        self._unsubscribe = store.subscribe(self)
        return self

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def build(self, db: Database, event: ChangeEvent) -> Optional[Notification]:
        """Turn a store event into a notification, or None if it is not about bookings."""
        if event.kind not in (BOOKING_CREATED, BOOKING_STATUS_CHANGED):
            return None
        booking = next((b for b in db.bookings if b.id == event.record_id), None)
        if booking is None:
            return None
        if event.kind == BOOKING_CREATED:
            return Notification(
                title="Booking Confirmed!",
                body=(
                    f"Your appointment for {booking.service.name} on "
                    f"{booking.date.isoformat()} at {booking.time} is set."
                ),
                booking_id=booking.id,
            )
        body = f"{booking.service.name} is now {booking.status.value}."
        if booking.status == BookingStatus.CANCELLED and booking.cancellation_reason:
            body += f" Reason: {booking.cancellation_reason}"
        return Notification(title="Booking Update", body=body, booking_id=booking.id)

    def __call__(self, db: Database, event: ChangeEvent) -> None:
        if not self.enabled:
            return
        notification = self.build(db, event)
        if notification is None:
            return
        try:
            self.sink(notification)
        except Exception:
            logger.exception("Notification sink failed for booking %s", notification.booking_id)
