"""Shared test fixtures and helpers."""

from datetime import date
from typing import Optional

import pytest

from ridersbud.schemas.booking_schema import Booking, BookingStatus
from ridersbud.schemas.catalog_schema import Service
from ridersbud.schemas.customer_schema import Vehicle
from ridersbud.schemas.database_schema import Database, Settings
from ridersbud.schemas.mechanic_schema import (
    DayAvailability,
    Mechanic,
    MechanicStatus,
    UnavailableDateRange,
    WeeklyAvailability,
)
from ridersbud.storage.backends import MemoryStorage
from ridersbud.storage.database import DatabaseStore

MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)
SATURDAY = date(2024, 6, 8)


def make_week(
    monday: tuple[bool, str, str] = (True, "09:00", "11:00"),
    others: tuple[bool, str, str] = (False, "09:00", "17:00"),
) -> WeeklyAvailability:
    """Weekly schedule with Monday set explicitly and every other day alike."""
    def day(spec: tuple[bool, str, str]) -> DayAvailability:
        return DayAvailability(is_available=spec[0], start_time=spec[1], end_time=spec[2])

    return WeeklyAvailability(
        monday=day(monday),
        tuesday=day(others),
        wednesday=day(others),
        thursday=day(others),
        friday=day(others),
        saturday=day(others),
        sunday=day(others),
    )


def make_mechanic(
    mechanic_id: str = "m1",
    name: str = "Ricardo Reyes",
    specializations: Optional[list[str]] = None,
    status: MechanicStatus = MechanicStatus.ACTIVE,
    rating: float = 4.5,
    reviews: int = 10,
    availability: Optional[WeeklyAvailability] = None,
    time_off: Optional[list[tuple[date, date]]] = None,
) -> Mechanic:
    return Mechanic(
        id=mechanic_id,
        name=name,
        specializations=specializations if specializations is not None else ["Oil Change"],
        status=status,
        rating=rating,
        reviews=reviews,
        availability=availability if availability is not None else make_week(),
        unavailable_dates=[
            UnavailableDateRange(start_date=start, end_date=end)
            for start, end in (time_off or [])
        ],
    )


def make_service(
    service_id: str = "1", name: str = "Change Oil", category: str = "Maintenance",
    price: float = 2500,
) -> Service:
    return Service(id=service_id, name=name, category=category, price=price)


def make_vehicle(plate: str = "ABC 1234") -> Vehicle:
    return Vehicle(make="Mitsubishi", model="Montero", year=2023, plate_number=plate,
                   is_primary=True)


def make_booking(
    booking_id: str = "b1",
    mechanic: Optional[Mechanic] = None,
    day: date = MONDAY,
    time: str = "09:00 AM",
    status: BookingStatus = BookingStatus.UPCOMING,
) -> Booking:
    return Booking(
        id=booking_id,
        customer_name="Juan Dela Cruz",
        service=make_service(),
        mechanic=mechanic,
        date=day,
        time=time,
        status=status,
        vehicle=make_vehicle(),
    )


def make_hourly_settings() -> Settings:
    return Settings(
        booking_start_time="08:00", booking_end_time="18:00", booking_slot_duration=60,
    )


@pytest.fixture
def hourly_settings():
    return make_hourly_settings()


@pytest.fixture
def mechanic():
    return make_mechanic()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    """Store with no records and hourly slots, backed by in-memory storage."""
    storage.set_item("test_db", Database(settings=make_hourly_settings()).to_json())
    return DatabaseStore(storage, key="test_db", seed_on_empty=False)


@pytest.fixture
def seeded_store(storage):
    return DatabaseStore(storage, key="test_db", seed_on_empty=True)
