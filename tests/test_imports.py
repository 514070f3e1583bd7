"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_booking_schema(self):
        from ridersbud.schemas.booking_schema import SLOT_HOLDING_STATUSES, BookingStatus
        assert BookingStatus.EN_ROUTE == "En Route"
        assert BookingStatus.CANCELLED not in SLOT_HOLDING_STATUSES

    def test_import_database_schema(self):
        from ridersbud.schemas.database_schema import Database, Settings
        assert Database().settings == Settings()

    def test_import_mechanic_schema(self):
        from ridersbud.schemas.mechanic_schema import WEEKDAYS, MechanicStatus
        assert len(WEEKDAYS) == 7
        assert MechanicStatus.ACTIVE == "Active"


class TestPackageReExports:
    def test_lifecycle_package(self):
        from ridersbud.lifecycle import __all__ as exported
        assert "apply_status" in exported

    def test_storage_package(self):
        from ridersbud.storage import DatabaseStore, MemoryStorage
        store = DatabaseStore(MemoryStorage(), key="imports", seed_on_empty=False)
        assert store.db.bookings == []


class TestToolImports:
    def test_import_availability(self):
        from ridersbud.tools.availability import compute_slots_for_day, slot_board
        assert callable(compute_slots_for_day)
        assert callable(slot_board)

    def test_import_matching(self):
        from ridersbud.tools.matching import ALL_SPECIALIZATIONS, rank_mechanics
        assert ALL_SPECIALIZATIONS == "all"
        assert callable(rank_mechanics)

    def test_import_booking(self):
        from ridersbud.tools.booking import create_booking, new_booking
        assert callable(create_booking)
        assert callable(new_booking)

    def test_import_notifications(self):
        from ridersbud.tools.notifications import BookingNotifier
        assert BookingNotifier(enabled=False).enabled is False


class TestConfigImport:
    def test_import_config(self):
        from ridersbud.config import settings
        assert settings.storage.key
        assert settings.booking.slot_boundary_policy in ("full_fit", "start_before_close")


class TestCliImport:
    def test_parser_lists_commands(self):
        from ridersbud.cli import COMMANDS, build_parser
        assert set(COMMANDS) == {"services", "slots", "mechanics", "book", "status", "cancel"}
        assert build_parser().prog == "ridersbud"
