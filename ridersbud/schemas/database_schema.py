"""Global settings record and the whole persisted database document."""

from pydantic import Field, model_validator

from ridersbud.schemas.admin_schema import AdminUser, Role, Task
from ridersbud.schemas.base_schema import HHMM_PATTERN, StoredModel
from ridersbud.schemas.booking_schema import Booking, Order
from ridersbud.schemas.catalog_schema import Banner, FAQCategory, Part, Service
from ridersbud.schemas.customer_schema import Customer
from ridersbud.schemas.mechanic_schema import Mechanic


class Settings(StoredModel):
    """Process-wide business settings stored alongside the data."""
    app_name: str = "RidersBUD"
    contact_email: str = "support@ridersbud.com"
    contact_phone: str = "1-800-RIDERSBUD"
    address: str = ""
    booking_start_time: str = Field(default="09:00", pattern=HHMM_PATTERN)
    booking_end_time: str = Field(default="17:00", pattern=HHMM_PATTERN)
    booking_slot_duration: int = Field(default=120, gt=0, le=24 * 60)
    max_bookings_per_slot: int = Field(default=2, ge=1)
    email_on_new_booking: bool = True
    email_on_cancellation: bool = False
    app_logo_url: str = ""
    app_tagline: str = ""
    virtual_mechanic_name: str = "RiderAI"
    admin_panel_title: str = "RidersBUD Admin"
    service_categories: list[str] = Field(default_factory=list)
    part_categories: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_business_hours(self) -> "Settings":
        if self.booking_start_time >= self.booking_end_time:
            raise ValueError(
                "booking_start_time must be before booking_end_time, got "
                f"{self.booking_start_time}-{self.booking_end_time}"
            )
        return self


class Database(StoredModel):
    """
    The entire persisted state, serialized wholesale on every change.

    Collections absent from an older document default to empty lists.
    """
    services: list[Service] = Field(default_factory=list)
    parts: list[Part] = Field(default_factory=list)
    mechanics: list[Mechanic] = Field(default_factory=list)
    bookings: list[Booking] = Field(default_factory=list)
    customers: list[Customer] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)
    banners: list[Banner] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)
    faqs: list[FAQCategory] = Field(default_factory=list)
    admin_users: list[AdminUser] = Field(default_factory=list)
    roles: list[Role] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "Database":
        return cls.model_validate_json(raw)
