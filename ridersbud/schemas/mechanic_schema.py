"""Mechanic profile, weekly schedule, and time-off models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from ridersbud.schemas.base_schema import HHMM_PATTERN, StoredModel

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class MechanicStatus(str, Enum):
    """Only ACTIVE mechanics are offered to customers."""
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"


class DayAvailability(StoredModel):
    """Working window for one weekday."""
    is_available: bool = False
    start_time: str = Field(default="09:00", pattern=HHMM_PATTERN)
    end_time: str = Field(default="17:00", pattern=HHMM_PATTERN)


class WeeklyAvailability(StoredModel):
    """Recurring weekly schedule, one entry per weekday."""
    monday: DayAvailability = Field(default_factory=DayAvailability)
    tuesday: DayAvailability = Field(default_factory=DayAvailability)
    wednesday: DayAvailability = Field(default_factory=DayAvailability)
    thursday: DayAvailability = Field(default_factory=DayAvailability)
    friday: DayAvailability = Field(default_factory=DayAvailability)
    saturday: DayAvailability = Field(default_factory=DayAvailability)
    sunday: DayAvailability = Field(default_factory=DayAvailability)

    def for_date(self, day: date) -> DayAvailability:
        return getattr(self, WEEKDAYS[day.weekday()])


class UnavailableDateRange(StoredModel):
    """Closed interval of calendar dates the mechanic is off."""
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_order(self) -> "UnavailableDateRange":
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class Review(StoredModel):
    id: str
    customer_name: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    date: datetime


class PayoutDetails(StoredModel):
    method: str
    account_name: str
    account_number: str
    bank_name: Optional[str] = None
    wallet_name: Optional[str] = None


class Insurance(StoredModel):
    type: str
    provider: str
    policy_number: str


class Mechanic(StoredModel):
    """A service provider who can be booked for a time slot."""
    id: str
    name: str
    email: str = ""
    phone: str = ""
    bio: str = ""
    rating: float = 0.0
    reviews: int = 0
    specializations: list[str] = Field(default_factory=list)
    status: MechanicStatus = MechanicStatus.PENDING
    image_url: str = ""
    lat: float = 0.0
    lng: float = 0.0
    registration_date: Optional[date] = None
    birthday: Optional[date] = None
    base_price: Optional[float] = None
    payout_details: Optional[PayoutDetails] = None
    portfolio_images: list[str] = Field(default_factory=list)
    availability: Optional[WeeklyAvailability] = None
    unavailable_dates: list[UnavailableDateRange] = Field(default_factory=list)
    reviews_list: list[Review] = Field(default_factory=list)
    insurances: list[Insurance] = Field(default_factory=list)

    def schedule_for(self, day: date) -> Optional[DayAvailability]:
        """Return the weekly entry for ``day``, or None without a schedule."""
        if self.availability is None:
            return None
        return self.availability.for_date(day)

    def is_on_time_off(self, day: date) -> bool:
        return any(r.covers(day) for r in self.unavailable_dates)
