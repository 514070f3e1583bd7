"""Tests for the booking flow: creation, slot checks, job acceptance, and rescheduling."""

import pytest

from ridersbud.schemas.booking_schema import BookingStatus
from ridersbud.storage.backends import MemoryStorage
from ridersbud.storage.database import (
    BusinessRuleError,
    DatabaseStore,
    RecordNotFoundError,
    SlotUnavailableError,
)
from ridersbud.tools.availability import selectable_slots
from ridersbud.tools.booking import (
    BookingValidationError,
    accept_job,
    booking_summary,
    cancel_booking,
    create_booking,
    mark_paid,
    new_booking,
    request_reschedule,
    respond_to_reschedule,
    update_booking_status,
)
from tests.conftest import MONDAY, TUESDAY, make_mechanic, make_service, make_vehicle, make_week


def _book(store, mechanic, time_label="09:00 AM", customer="Juan Dela Cruz"):
    return create_booking(
        store, customer, make_service(), make_vehicle(), mechanic, MONDAY, time_label,
    )


class TestNewBooking:
    def test_builds_upcoming_booking(self, mechanic):
        booking = new_booking(
            " Juan Dela Cruz ", make_service(), make_vehicle(), mechanic, MONDAY, "09:00 AM",
            notes="Gate code 1234",
        )
        assert booking.id.startswith("b")
        assert booking.customer_name == "Juan Dela Cruz"
        assert booking.status == BookingStatus.UPCOMING
        assert booking.status_history == []
        assert booking.before_images == [] and booking.after_images == []
        assert booking.notes == "Gate code 1234"

    def test_ids_are_unique(self, mechanic):
        first = new_booking("Juan", make_service(), make_vehicle(), mechanic, MONDAY, "09:00 AM")
        second = new_booking("Juan", make_service(), make_vehicle(), mechanic, MONDAY, "09:00 AM")
        assert first.id != second.id

    def test_missing_fields_listed(self):
        with pytest.raises(BookingValidationError) as exc_info:
            new_booking("Juan", make_service(), None, None, MONDAY, " ")
        assert exc_info.value.missing == ["vehicle", "mechanic", "time"]
        assert "missing required fields: vehicle, mechanic, time" in str(exc_info.value)

    def test_missing_everything(self):
        with pytest.raises(BookingValidationError) as exc_info:
            new_booking("", None, None, None, None, "")
        assert exc_info.value.missing == [
            "customer", "service", "vehicle", "mechanic", "date", "time",
        ]


class TestCreateBooking:
    def test_persists_booking(self, store, mechanic):
        booking = _book(store, mechanic)
        assert store.get_booking(booking.id) == booking
        assert store.slot_holder("m1", MONDAY, "09:00 AM") == booking

    def test_validation_error_writes_nothing(self, store, mechanic):
        with pytest.raises(BookingValidationError):
            create_booking(store, "Juan", None, make_vehicle(), mechanic, MONDAY, "09:00 AM")
        assert store.db.bookings == []

    def test_slot_removed_from_selection(self, store, mechanic, hourly_settings):
        _book(store, mechanic)
        assert selectable_slots(mechanic, hourly_settings, MONDAY, store.db.bookings) == [
            "10:00 AM",
        ]

    def test_double_booking_rejected(self, store, mechanic):
        _book(store, mechanic)
        with pytest.raises(SlotUnavailableError, match="already booked"):
            _book(store, mechanic, customer="Alex Rider")
        assert len(store.db.bookings) == 1

    def test_other_mechanic_same_slot_allowed(self, store, mechanic):
        _book(store, mechanic)
        _book(store, make_mechanic("m2", "Jane Smith"))
        assert len(store.db.bookings) == 2

    def test_cancelled_booking_frees_slot(self, store, mechanic, hourly_settings):
        first = _book(store, mechanic)
        cancel_booking(store, first.id, "Schedule conflict")
        assert selectable_slots(mechanic, hourly_settings, MONDAY, store.db.bookings) == [
            "09:00 AM", "10:00 AM",
        ]
        second = _book(store, mechanic, customer="Alex Rider")
        assert store.slot_holder("m1", MONDAY, "09:00 AM") == second

    def test_time_label_normalized(self, store, mechanic):
        booking = _book(store, mechanic, time_label=" 9:00 am ")
        assert booking.time == "09:00 AM"
        assert store.slot_holder("m1", MONDAY, "09:00 AM") == booking

    @pytest.mark.parametrize("spelling", ["9:00 am", "09:00AM", "9:00 AM", "09:00"])
    def test_other_spelling_of_held_slot_rejected(self, store, mechanic, spelling):
        _book(store, mechanic)
        with pytest.raises(SlotUnavailableError, match="already booked"):
            _book(store, mechanic, time_label=spelling, customer="Alex Rider")
        assert len(store.db.bookings) == 1

    def test_slot_never_offered_rejected(self, store):
        on_leave = make_mechanic(time_off=[(MONDAY, MONDAY)])
        with pytest.raises(SlotUnavailableError, match="not an offered slot"):
            _book(store, on_leave, time_label="03:00 AM")
        assert store.db.bookings == []

    @pytest.mark.parametrize("time_label", ["08:00 AM", "11:00 AM", "09:30 AM"])
    def test_time_outside_working_slots_rejected(self, store, mechanic, time_label):
        with pytest.raises(SlotUnavailableError, match="not an offered slot"):
            _book(store, mechanic, time_label=time_label)

    def test_unreadable_time_rejected(self, store, mechanic):
        with pytest.raises(SlotUnavailableError, match="Not a valid slot time"):
            _book(store, mechanic, time_label="after lunch")

    def test_stored_schedule_wins_over_snapshot(self, store):
        stored = store.add_mechanic(name="Ricardo Reyes", availability=make_week())
        stale = stored.model_copy(update={
            "availability": make_week(monday=(True, "06:00", "08:00")),
        })
        with pytest.raises(SlotUnavailableError):
            _book(store, stale, time_label="06:00 AM")
        assert _book(store, stale).time == "09:00 AM"

    def test_summary(self, store, mechanic):
        booking = _book(store, mechanic)
        assert booking_summary(booking) == (
            f"Booking {booking.id}: Change Oil on 2024-06-03 at 09:00 AM "
            "with Ricardo Reyes (Upcoming)."
        )


class TestTwoWriters:
    """Two stores sharing one storage behave like two open browser tabs."""

    @pytest.fixture
    def shared(self):
        return MemoryStorage()

    @pytest.fixture
    def tab_a(self, shared):
        return DatabaseStore(shared, key="shared_db", seed_on_empty=False)

    @pytest.fixture
    def tab_b(self, shared):
        return DatabaseStore(shared, key="shared_db", seed_on_empty=False)

    def test_second_writer_sees_taken_slot(self, tab_a, tab_b, mechanic):
        tab_b.load()
        _book(tab_a, mechanic)
        with pytest.raises(SlotUnavailableError):
            _book(tab_b, mechanic, customer="Alex Rider")
        assert len(tab_b.db.bookings) == 1

    def test_sync_adopts_other_writer(self, tab_a, tab_b, mechanic):
        tab_b.load()
        booking = _book(tab_a, mechanic)
        assert tab_b.sync() is True
        assert tab_b.get_booking(booking.id) == booking
        assert tab_b.sync() is False


class TestAcceptJobRequest:
    def test_assigns_mechanic_and_goes_en_route(self, store, mechanic):
        unassigned = create_booking(
            store, "Alex Rider", make_service(), make_vehicle(), mechanic, MONDAY, "10:00 AM",
        )
        update_booking_status(store, unassigned.id, BookingStatus.BOOKING_CONFIRMED)
        other = make_mechanic("m2", "Jane Smith")
        accepted = accept_job(store, unassigned.id, other)
        assert accepted.mechanic_id == "m2"
        assert accepted.status == BookingStatus.EN_ROUTE
        assert [h.status for h in accepted.status_history] == [
            BookingStatus.BOOKING_CONFIRMED, BookingStatus.EN_ROUTE,
        ]

    def test_rejects_when_mechanic_slot_taken(self, store, mechanic):
        _book(store, mechanic, time_label="10:00 AM")
        pending = create_booking(
            store, "Alex Rider", make_service(), make_vehicle(),
            make_mechanic("m2", "Jane Smith"), MONDAY, "10:00 AM",
        )
        with pytest.raises(SlotUnavailableError):
            store.accept_job_request(pending.id, mechanic)

    def test_unknown_booking(self, store, mechanic):
        with pytest.raises(RecordNotFoundError):
            store.accept_job_request("nope", mechanic)

    def test_rejects_mechanic_not_working_that_slot(self, store, mechanic):
        pending = _book(store, mechanic, time_label="10:00 AM")
        early = make_mechanic(
            "m2", "Jane Smith", availability=make_week(monday=(True, "06:00", "09:00")),
        )
        with pytest.raises(SlotUnavailableError, match="not an offered slot"):
            accept_job(store, pending.id, early)
        assert store.get_booking(pending.id).mechanic_id == "m1"


class TestCancellationHistory:
    def test_repeat_cancel_keeps_single_entry(self, store, mechanic):
        booking = _book(store, mechanic)
        cancel_booking(store, booking.id, "Customer request")
        again = cancel_booking(store, booking.id, "Customer request")
        assert again.status == BookingStatus.CANCELLED
        assert [h.status for h in again.status_history] == [BookingStatus.CANCELLED]


class TestReschedule:
    @pytest.fixture
    def booking(self, store, mechanic):
        first = _book(store, mechanic)
        return update_booking_status(store, first.id, BookingStatus.BOOKING_CONFIRMED)

    def test_request_records_details(self, store, booking):
        requested = request_reschedule(store, booking.id, MONDAY, "10:00 am", " Car not ready ")
        assert requested.status == BookingStatus.RESCHEDULE_REQUESTED
        assert requested.reschedule_details.new_time == "10:00 AM"
        assert requested.reschedule_details.reason == "Car not ready"
        assert store.get_booking(booking.id).reschedule_details == requested.reschedule_details

    def test_accept_moves_booking(self, store, booking):
        request_reschedule(store, booking.id, MONDAY, "10:00 AM")
        accepted = respond_to_reschedule(store, booking.id, accepted=True)
        assert accepted.status == BookingStatus.BOOKING_CONFIRMED
        assert (accepted.date, accepted.time) == (MONDAY, "10:00 AM")
        assert accepted.reschedule_details is None
        assert [h.status for h in accepted.status_history] == [
            BookingStatus.BOOKING_CONFIRMED,
            BookingStatus.RESCHEDULE_REQUESTED,
            BookingStatus.BOOKING_CONFIRMED,
        ]

    def test_accept_refuses_taken_slot(self, store, mechanic, booking):
        request_reschedule(store, booking.id, MONDAY, "10:00 AM")
        _book(store, mechanic, time_label="10:00 AM", customer="Alex Rider")
        with pytest.raises(SlotUnavailableError, match="already booked"):
            respond_to_reschedule(store, booking.id, accepted=True)
        assert store.get_booking(booking.id).status == BookingStatus.RESCHEDULE_REQUESTED

    def test_accept_refuses_day_off(self, store, booking):
        request_reschedule(store, booking.id, TUESDAY, "09:00 AM")
        with pytest.raises(SlotUnavailableError, match="not an offered slot"):
            respond_to_reschedule(store, booking.id, accepted=True)

    def test_reject_restores_previous_status(self, store, booking):
        request_reschedule(store, booking.id, MONDAY, "10:00 AM")
        rejected = respond_to_reschedule(store, booking.id, accepted=False)
        assert rejected.status == BookingStatus.BOOKING_CONFIRMED
        assert (rejected.date, rejected.time) == (MONDAY, "09:00 AM")
        assert rejected.reschedule_details is None

    def test_reject_without_history_confirms(self, store, mechanic):
        booking = _book(store, mechanic)
        request_reschedule(store, booking.id, MONDAY, "10:00 AM")
        rejected = respond_to_reschedule(store, booking.id, accepted=False)
        assert rejected.status == BookingStatus.BOOKING_CONFIRMED

    def test_respond_without_request(self, store, booking):
        with pytest.raises(BusinessRuleError, match="no pending reschedule"):
            respond_to_reschedule(store, booking.id, accepted=True)

    def test_unreadable_time_rejected(self, store, booking):
        with pytest.raises(SlotUnavailableError):
            request_reschedule(store, booking.id, MONDAY, "soon")
        assert store.get_booking(booking.id).status == BookingStatus.BOOKING_CONFIRMED


class TestPayment:
    def test_mark_paid(self, store, mechanic):
        booking = _book(store, mechanic)
        assert not booking.is_paid
        assert mark_paid(store, booking.id).is_paid
        assert store.get_booking(booking.id).is_paid
