"""
Command-line front end for the booking core.

Usage:
    python -m ridersbud.cli services
    python -m ridersbud.cli slots --mechanic m1 --date 2024-06-03
    python -m ridersbud.cli mechanics --service 1 --date 2024-06-03 --sort name
    python -m ridersbud.cli book --customer juan@email.com --service 1 \\
        --mechanic m1 --date 2024-06-03 --time "09:00 AM"
    python -m ridersbud.cli status b-3f9a1c0d2e4b "En Route"
    python -m ridersbud.cli cancel b-3f9a1c0d2e4b --reason "Customer request"
    python -m ridersbud.cli reschedule b-3f9a1c0d2e4b --date 2024-06-04 --time "10:00 AM"
    python -m ridersbud.cli respond b-3f9a1c0d2e4b accept
    python -m ridersbud.cli pay b-3f9a1c0d2e4b
"""

import argparse
import logging
import sys
from datetime import date, datetime
from typing import Optional, Sequence

from ridersbud.config import SORT_OPTIONS
from ridersbud.config import settings as app_config
from ridersbud.lifecycle.status_machine import CancellationReasonRequired, InvalidTransitionError
from ridersbud.logging_context import set_request_id
from ridersbud.schemas.booking_schema import BookingStatus
from ridersbud.storage.backends import FileStorage
from ridersbud.storage.database import DatabaseStore, RecordNotFoundError, StoreError
from ridersbud.tools.availability import slot_board
from ridersbud.tools.booking import (
    BookingValidationError,
    booking_summary,
    cancel_booking,
    create_booking,
    mark_paid,
    request_reschedule,
    respond_to_reschedule,
    update_booking_status,
)
from ridersbud.tools.customer import lookup_customer
from ridersbud.tools.matching import MatchFilters, build_availability_board
from ridersbud.tools.notifications import BookingNotifier
from ridersbud.tools.services import find_service, services_by_category
from ridersbud.utils import new_id

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ridersbud",
        description="Book mobile mechanics and manage booking status.",
    )
    parser.add_argument(
        "--storage-dir",
        default=app_config.storage.directory,
        help="Directory holding the database document (default: %(default)s).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("services", help="List bookable services by category.")

    slots = sub.add_parser("slots", help="Show a mechanic's slots for a date.")
    slots.add_argument("--mechanic", required=True, help="Mechanic id.")
    slots.add_argument("--date", required=True, type=_parse_date)

    mechanics = sub.add_parser("mechanics", help="List mechanics available for a service.")
    mechanics.add_argument("--service", required=True, help="Service id or name.")
    mechanics.add_argument("--date", required=True, type=_parse_date)
    mechanics.add_argument("--specialization", default="all")
    mechanics.add_argument("--search", default="")
    mechanics.add_argument("--available-now", action="store_true")
    mechanics.add_argument("--sort", choices=SORT_OPTIONS, default=app_config.booking.default_sort)
    mechanics.add_argument("--preselect", default=None, help="Mechanic id to list first.")

    book = sub.add_parser("book", help="Book a mechanic's time slot.")
    book.add_argument("--customer", required=True, help="Customer email, phone, or id.")
    book.add_argument("--service", required=True, help="Service id or name.")
    book.add_argument("--mechanic", required=True, help="Mechanic id.")
    book.add_argument("--date", required=True, type=_parse_date)
    book.add_argument("--time", required=True, help='Slot label, e.g. "09:00 AM".')
    book.add_argument("--vehicle", default=None, help="Plate number (default: primary vehicle).")
    book.add_argument("--notes", default="")

    status = sub.add_parser("status", help="Change a booking's status.")
    status.add_argument("booking_id")
    status.add_argument("status", choices=[s.value for s in BookingStatus])
    status.add_argument("--reason", default=None, help="Required when cancelling.")

    cancel = sub.add_parser("cancel", help="Cancel a booking.")
    cancel.add_argument("booking_id")
    cancel.add_argument("--reason", required=True)

    reschedule = sub.add_parser("reschedule", help="Request a new date and time for a booking.")
    reschedule.add_argument("booking_id")
    reschedule.add_argument("--date", required=True, type=_parse_date)
    reschedule.add_argument("--time", required=True)
    reschedule.add_argument("--reason", default="")

    respond = sub.add_parser("respond", help="Accept or reject a reschedule request.")
    respond.add_argument("booking_id")
    respond.add_argument("answer", choices=["accept", "reject"])

    pay = sub.add_parser("pay", help="Mark a booking as paid.")
    pay.add_argument("booking_id")

    return parser


def _cmd_services(store: DatabaseStore, args: argparse.Namespace) -> None:
    for category, services in services_by_category(store.db.services).items():
        print(category)
        for service in services:
            print(f"  [{service.id}] {service.name} - {service.price_label}")


def _cmd_slots(store: DatabaseStore, args: argparse.Namespace) -> None:
    mechanic = store.get_mechanic(args.mechanic)
    board = slot_board(mechanic, store.db.settings, args.date, store.db.bookings)
    if not board:
        print(f"No available slots for {mechanic.name} on {args.date.isoformat()}.")
        return
    for slot in board:
        print(f"{slot['label']}{'  (booked)' if slot['booked'] else ''}")


def _resolve_service(store: DatabaseStore, query: str):
    service = find_service(store.db.services, query)
    if service is None:
        raise RecordNotFoundError(f"No service matches {query!r}.")
    return service


def _cmd_mechanics(store: DatabaseStore, args: argparse.Namespace) -> None:
    service = _resolve_service(store, args.service)
    filters = MatchFilters(
        specialization=args.specialization,
        search=args.search,
        available_now=args.available_now,
        sort=args.sort,
    )
    cards = build_availability_board(
        store.db.mechanics, service, args.date, store.db.settings, store.db.bookings, filters,
        preselected_id=args.preselect,
    )
    if not cards:
        print(f"No mechanics available for {service.name} on {args.date.isoformat()}.")
        return
    for card in cards:
        mechanic = card["mechanic"]
        print(f"{mechanic.name} [{mechanic.id}] {mechanic.rating:.1f} ({mechanic.reviews} jobs)")
        labels = [f"{s['label']}{'*' if s['booked'] else ''}" for s in card["slots"]]
        print(f"  {', '.join(labels) if labels else 'No available slots for this day.'}")


def _cmd_book(store: DatabaseStore, args: argparse.Namespace) -> None:
    customer = lookup_customer(store.db.customers, args.customer)
    if customer is None:
        raise RecordNotFoundError(f"No customer matches {args.customer!r}.")
    vehicle = (
        customer.find_vehicle(args.vehicle) if args.vehicle else customer.primary_vehicle()
    )
    booking = create_booking(
        store,
        customer_name=customer.name,
        service=_resolve_service(store, args.service),
        vehicle=vehicle,
        mechanic=store.get_mechanic(args.mechanic),
        day=args.date,
        time_label=args.time,
        notes=args.notes,
    )
    print(booking_summary(booking))


def _cmd_status(store: DatabaseStore, args: argparse.Namespace) -> None:
    booking = update_booking_status(
        store, args.booking_id, BookingStatus(args.status), args.reason,
    )
    print(booking_summary(booking))


def _cmd_cancel(store: DatabaseStore, args: argparse.Namespace) -> None:
    booking = cancel_booking(store, args.booking_id, args.reason)
    print(booking_summary(booking))


def _cmd_reschedule(store: DatabaseStore, args: argparse.Namespace) -> None:
    booking = request_reschedule(store, args.booking_id, args.date, args.time, args.reason)
    details = booking.reschedule_details
    print(booking_summary(booking))
    print(f"  Requested: {details.new_date.isoformat()} at {details.new_time}")


def _cmd_respond(store: DatabaseStore, args: argparse.Namespace) -> None:
    booking = respond_to_reschedule(store, args.booking_id, args.answer == "accept")
    print(booking_summary(booking))


def _cmd_pay(store: DatabaseStore, args: argparse.Namespace) -> None:
    booking = mark_paid(store, args.booking_id)
    print(f"{booking_summary(booking)} Paid.")


COMMANDS = {
    "services": _cmd_services,
    "slots": _cmd_slots,
    "mechanics": _cmd_mechanics,
    "book": _cmd_book,
    "status": _cmd_status,
    "cancel": _cmd_cancel,
    "reschedule": _cmd_reschedule,
    "respond": _cmd_respond,
    "pay": _cmd_pay,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    set_request_id(new_id("REQ"))

    store = DatabaseStore(FileStorage(args.storage_dir))
    BookingNotifier().attach(store)
    try:
        COMMANDS[args.command](store, args)
    except (
        StoreError,
        BookingValidationError,
        InvalidTransitionError,
        CancellationReasonRequired,
    ) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        sys.stderr.write(f"error: {exc}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
