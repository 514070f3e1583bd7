"""Booking, order, and status history models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from ridersbud.schemas.base_schema import StoredModel
from ridersbud.schemas.catalog_schema import CartItem, Service
from ridersbud.schemas.customer_schema import Vehicle
from ridersbud.schemas.mechanic_schema import Mechanic


class BookingStatus(str, Enum):
    """All possible states in a booking lifecycle."""
    UPCOMING = "Upcoming"
    BOOKING_CONFIRMED = "Booking Confirmed"
    MECHANIC_ASSIGNED = "Mechanic Assigned"
    EN_ROUTE = "En Route"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    RESCHEDULE_REQUESTED = "Reschedule Requested"


# Statuses that hold a mechanic's time slot.
SLOT_HOLDING_STATUSES = frozenset({
    BookingStatus.UPCOMING,
    BookingStatus.EN_ROUTE,
    BookingStatus.IN_PROGRESS,
})

# Statuses during which a mechanic is out on a job.
ON_JOB_STATUSES = frozenset({BookingStatus.EN_ROUTE, BookingStatus.IN_PROGRESS})


class StatusHistoryEntry(StoredModel):
    status: BookingStatus
    timestamp: datetime


class GeoPoint(StoredModel):
    lat: float
    lng: float


class RescheduleDetails(StoredModel):
    """A customer's pending request to move a booking."""
    new_date: date
    new_time: str
    reason: str = ""


class Booking(StoredModel):
    """A scheduled appointment for a service, optionally with a mechanic."""
    id: str
    customer_name: str
    service: Service
    mechanic: Optional[Mechanic] = None
    date: date
    time: str
    status: BookingStatus = BookingStatus.UPCOMING
    vehicle: Vehicle
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)
    before_images: list[str] = Field(default_factory=list)
    after_images: list[str] = Field(default_factory=list)
    notes: str = ""
    cancellation_reason: Optional[str] = None
    is_reviewed: bool = False
    is_paid: bool = False
    location: Optional[GeoPoint] = None
    # Minutes until the mechanic arrives; only set while en route.
    eta: Optional[int] = Field(default=None, ge=1)
    reschedule_details: Optional[RescheduleDetails] = None

    @property
    def mechanic_id(self) -> Optional[str]:
        return self.mechanic.id if self.mechanic else None

    def holds_slot(self, mechanic_id: str, day: date, time_label: str) -> bool:
        """True when this booking occupies ``(mechanic_id, day, time_label)``."""
        return (
            self.status in SLOT_HOLDING_STATUSES
            and self.mechanic_id == mechanic_id
            and self.date == day
            and self.time == time_label
        )


class OrderStatus(str, Enum):
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderStatusEntry(StoredModel):
    status: OrderStatus
    timestamp: datetime


class Order(StoredModel):
    """Parts store order."""
    id: str
    customer_name: str
    items: list[CartItem] = Field(default_factory=list)
    total: float = Field(ge=0)
    payment_method: str
    date: datetime
    status: OrderStatus = OrderStatus.PROCESSING
    status_history: list[OrderStatusEntry] = Field(default_factory=list)
