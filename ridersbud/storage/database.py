"""
Database store: one JSON document under one storage key.

Every mutation reads the current snapshot, builds a new one (copy-on-write),
saves the whole document, and then notifies subscribers. Nothing here is a
global; callers hold a ``DatabaseStore`` and pass it where it is needed.

Several stores may point at the same storage (two browser tabs, two CLI
processes). ``sync()`` pulls in whatever another writer saved and replaces
the local snapshot wholesale: last writer wins, with no merge. Booking
writes are the exception: they sync first and refuse a slot the mechanic
does not offer or that an active booking already holds. A narrow window
remains between that check and the save when two processes write at the
same moment.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from ridersbud.config import settings as app_config
from ridersbud.lifecycle.status_machine import apply_status
from ridersbud.logging_context import get_request_logger
from ridersbud.schemas.admin_schema import AdminUser, Role, Task
from ridersbud.schemas.booking_schema import (
    SLOT_HOLDING_STATUSES,
    Booking,
    BookingStatus,
    GeoPoint,
    Order,
    OrderStatus,
    OrderStatusEntry,
    RescheduleDetails,
)
from ridersbud.schemas.catalog_schema import Banner, CartItem, Part, Service
from ridersbud.schemas.customer_schema import Customer
from ridersbud.schemas.database_schema import Database, Settings
from ridersbud.schemas.mechanic_schema import (
    Mechanic,
    MechanicStatus,
    Review,
    UnavailableDateRange,
    WeeklyAvailability,
)
from ridersbud.storage.backends import StorageBackend
from ridersbud.storage.seed import get_seed_data
from ridersbud.tools.availability import compute_slots_for_day
from ridersbud.utils import (
    distance_km,
    eta_minutes,
    new_id,
    normalize_phone,
    normalize_slot_label,
)

logger = get_request_logger(__name__)

BOOKING_CREATED = "booking_created"
BOOKING_STATUS_CHANGED = "booking_status_changed"
EXTERNAL_SYNC = "external_sync"

# Closer than this to the customer, the mechanic has arrived.
ARRIVAL_RADIUS_KM = 0.1


class StoreError(Exception):
    """Base class for business-rule failures raised by the store."""


class RecordNotFoundError(StoreError):
    """Raised when an id does not match any record in a collection."""


class BusinessRuleError(StoreError):
    """Raised when a change would break a rule such as a role still in use."""


class SlotUnavailableError(StoreError):
    """Raised when a slot is not offered by the mechanic or is already held."""


@dataclass(frozen=True)
class ChangeEvent:
    """What changed in the last commit."""
    kind: str
    collection: Optional[str] = None
    record_id: Optional[str] = None
    previous_status: Optional[str] = None


Listener = Callable[[Database, ChangeEvent], None]


class DatabaseStore:
    """
    Explicit store for the database document with change subscriptions.

    Args:
        backend: Where the JSON document is read from and written to.
        key: Storage key of the document.
        seed_on_empty: Start from seed data when nothing is stored yet.
    """

    def __init__(
        self,
        backend: StorageBackend,
        key: Optional[str] = None,
        seed_on_empty: Optional[bool] = None,
    ) -> None:
        self._backend = backend
        self._key = key or app_config.storage.key
        self._seed_on_empty = (
            app_config.storage.seed_on_empty if seed_on_empty is None else seed_on_empty
        )
        self._db: Optional[Database] = None
        self._last_raw: Optional[str] = None
        self._listeners: list[Listener] = []

    # --- Lifecycle ---

    @property
    def db(self) -> Database:
        """Current snapshot; loads the document on first access."""
        if self._db is None:
            self.load()
        assert self._db is not None
        return self._db

    def _read(self) -> Optional[str]:
        try:
            return self._backend.get_item(self._key)
        except (OSError, ValueError):
            logger.exception("Failed to read storage key '%s'", self._key)
            return None

    def load(self) -> Database:
        """Read the stored document, falling back to seed data."""
        raw = self._read()
        if raw is not None:
            try:
                self._db = Database.from_json(raw)
                self._last_raw = raw
                logger.info("Loaded database from storage key '%s'", self._key)
                return self._db
            except ValidationError:
                logger.exception(
                    "Stored database under '%s' is unreadable, falling back to seed data",
                    self._key,
                )
        if self._seed_on_empty:
            logger.info("Initializing database from seed data")
            self._db = get_seed_data()
        else:
            self._db = Database()
        self._save(self._db)
        return self._db

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sync(self) -> bool:
        """
        Adopt the stored document if another writer changed it.

        Returns True when the local snapshot was replaced.
        """
        raw = self._read()
        if raw is None or raw == self._last_raw:
            return False
        try:
            incoming = Database.from_json(raw)
        except ValidationError:
            logger.exception("Failed to sync database from storage key '%s'", self._key)
            return False
        logger.info("Change from another writer detected; replacing local state")
        self._db = incoming
        self._last_raw = raw
        self._notify(ChangeEvent(EXTERNAL_SYNC))
        return True

    def _save(self, db: Database) -> None:
        raw = db.to_json()
        try:
            self._backend.set_item(self._key, raw)
        except (OSError, ValueError):
            logger.exception("Failed to save database to storage key '%s'", self._key)
            return
        self._last_raw = raw

    def _notify(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.db, event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event.kind)

    def _commit(self, db: Database, event: ChangeEvent) -> None:
        self._db = db
        self._save(db)
        logger.debug("Committed %s (%s %s)", event.kind, event.collection, event.record_id)
        self._notify(event)

    # --- Generic collection helpers ---

    def _find(self, collection: str, record_id: str) -> Any:
        for record in getattr(self.db, collection):
            if record.id == record_id:
                return record
        raise RecordNotFoundError(f"No record '{record_id}' in {collection}.")

    def _add(self, collection: str, record: Any) -> Any:
        items = [*getattr(self.db, collection), record]
        self._commit(
            self.db.model_copy(update={collection: items}),
            ChangeEvent(f"{collection}_added", collection, record.id),
        )
        return record

    def _replace(self, collection: str, record: Any, kind: Optional[str] = None,
                 previous_status: Optional[str] = None) -> Any:
        self._find(collection, record.id)
        items = [record if r.id == record.id else r for r in getattr(self.db, collection)]
        self._commit(
            self.db.model_copy(update={collection: items}),
            ChangeEvent(kind or f"{collection}_updated", collection, record.id, previous_status),
        )
        return record

    def _delete(self, collection: str, record_ids: Iterable[str]) -> None:
        ids = set(record_ids)
        items = [r for r in getattr(self.db, collection) if r.id not in ids]
        self._commit(
            self.db.model_copy(update={collection: items}),
            ChangeEvent(f"{collection}_deleted", collection, ",".join(sorted(ids))),
        )

    # --- Services and parts ---

    def add_service(self, **fields: Any) -> Service:
        return self._add("services", Service(id=new_id("s"), **fields))

    def update_service(self, service: Service) -> Service:
        return self._replace("services", service)

    def delete_service(self, service_id: str) -> None:
        self._delete("services", [service_id])

    def get_service(self, service_id: str) -> Service:
        return self._find("services", service_id)

    def add_part(self, **fields: Any) -> Part:
        return self._add("parts", Part(id=new_id("p"), **fields))

    def update_part(self, part: Part) -> Part:
        return self._replace("parts", part)

    def delete_part(self, part_id: str) -> None:
        self._delete("parts", [part_id])

    # --- Mechanics ---

    def add_mechanic(self, **fields: Any) -> Mechanic:
        """Register a mechanic. New registrations wait in PENDING for an admin."""
        fields.setdefault("status", MechanicStatus.PENDING)
        fields.setdefault("registration_date", date.today())
        return self._add("mechanics", Mechanic(id=new_id("m"), **fields))

    def get_mechanic(self, mechanic_id: str) -> Mechanic:
        return self._find("mechanics", mechanic_id)

    def update_mechanic(self, mechanic: Mechanic) -> Mechanic:
        return self._replace("mechanics", mechanic)

    def delete_mechanic(self, mechanic_id: str) -> None:
        self._delete("mechanics", [mechanic_id])

    def update_mechanic_status(self, mechanic_id: str, status: MechanicStatus) -> Mechanic:
        mechanic = self.get_mechanic(mechanic_id)
        return self._replace(
            "mechanics", mechanic.model_copy(update={"status": MechanicStatus(status)}),
        )

    def set_weekly_availability(
        self, mechanic_id: str, availability: WeeklyAvailability
    ) -> Mechanic:
        mechanic = self.get_mechanic(mechanic_id)
        return self._replace(
            "mechanics", mechanic.model_copy(update={"availability": availability}),
        )

    def set_time_off(
        self, mechanic_id: str, ranges: list[UnavailableDateRange]
    ) -> Mechanic:
        mechanic = self.get_mechanic(mechanic_id)
        ordered = sorted(ranges, key=lambda r: (r.start_date, r.end_date))
        return self._replace(
            "mechanics", mechanic.model_copy(update={"unavailable_dates": ordered}),
        )

    def add_review_to_mechanic(
        self, mechanic_id: str, booking_id: str, rating: int, comment: str, customer_name: str
    ) -> Mechanic:
        """Add a review, recompute the average rating, and mark the booking reviewed."""
        mechanic = self.get_mechanic(mechanic_id)
        booking = self.get_booking(booking_id)
        review = Review(
            id=new_id("r"), customer_name=customer_name, rating=rating,
            comment=comment, date=datetime.now(timezone.utc),
        )
        reviews = [review, *mechanic.reviews_list]
        updated = mechanic.model_copy(update={
            "reviews_list": reviews,
            "rating": sum(r.rating for r in reviews) / len(reviews),
            "reviews": len(reviews),
        })
        mechanics = [updated if m.id == mechanic_id else m for m in self.db.mechanics]
        bookings = [
            b.model_copy(update={"is_reviewed": True}) if b.id == booking.id else b
            for b in self.db.bookings
        ]
        self._commit(
            self.db.model_copy(update={"mechanics": mechanics, "bookings": bookings}),
            ChangeEvent("review_added", "mechanics", mechanic_id),
        )
        return updated

    # --- Bookings ---

    def get_booking(self, booking_id: str) -> Booking:
        return self._find("bookings", booking_id)

    def slot_holder(self, mechanic_id: str, day: date, time_label: str) -> Optional[Booking]:
        """The active booking holding ``(mechanic_id, day, time_label)``, if any."""
        for booking in self.db.bookings:
            if booking.holds_slot(mechanic_id, day, time_label):
                return booking
        return None

    def _reserve(self, mechanic_id: Optional[str], day: date, time_label: str,
                 ignore_id: Optional[str] = None) -> None:
        if mechanic_id is None:
            return
        holder = self.slot_holder(mechanic_id, day, time_label)
        if holder is not None and holder.id != ignore_id:
            raise SlotUnavailableError(
                f"{time_label} on {day.isoformat()} is already booked for mechanic "
                f"{mechanic_id} (booking {holder.id})."
            )

    def _claim_slot(self, mechanic: Optional[Mechanic], day: date, time_label: str,
                    ignore_id: Optional[str] = None) -> str:
        """
        Check a requested slot and return its canonical label.

        The label is normalized (``9:00 am`` becomes ``09:00 AM``), must be one
        the mechanic's current schedule offers on ``day``, and must not be held
        by another active booking.

        Raises:
            SlotUnavailableError: If the label is unreadable, not offered, or taken.
        """
        try:
            label = normalize_slot_label(time_label)
        except ValueError as exc:
            raise SlotUnavailableError(str(exc)) from exc
        if mechanic is None:
            return label
        current = next((m for m in self.db.mechanics if m.id == mechanic.id), mechanic)
        if label not in compute_slots_for_day(current, self.db.settings, day):
            raise SlotUnavailableError(
                f"{label} on {day.isoformat()} is not an offered slot for mechanic "
                f"{mechanic.id}."
            )
        self._reserve(mechanic.id, day, label, ignore_id)
        return label

    def add_booking(self, booking: Booking) -> Booking:
        """Append a booking after checking its slot is offered and still free."""
        self.sync()
        if booking.status in SLOT_HOLDING_STATUSES:
            label = self._claim_slot(booking.mechanic, booking.date, booking.time)
            if label != booking.time:
                booking = booking.model_copy(update={"time": label})
        items = [*self.db.bookings, booking]
        self._commit(
            self.db.model_copy(update={"bookings": items}),
            ChangeEvent(BOOKING_CREATED, "bookings", booking.id),
        )
        logger.info(
            "Booking %s created for %s on %s at %s",
            booking.id, booking.customer_name, booking.date, booking.time,
        )
        return booking

    def update_booking_status(
        self, booking_id: str, status: BookingStatus, reason: Optional[str] = None
    ) -> Booking:
        """Move a booking to ``status``; same-status updates change nothing."""
        booking = self.get_booking(booking_id)
        updated = apply_status(booking, status, reason=reason)
        if updated is booking:
            return booking
        return self._replace(
            "bookings", updated, BOOKING_STATUS_CHANGED, booking.status.value,
        )

    def cancel_booking(self, booking_id: str, reason: str) -> Booking:
        return self.update_booking_status(booking_id, BookingStatus.CANCELLED, reason=reason)

    def accept_job_request(self, booking_id: str, mechanic: Mechanic) -> Booking:
        """Assign a mechanic to a booking and mark them en route."""
        self.sync()
        booking = self.get_booking(booking_id)
        label = self._claim_slot(mechanic, booking.date, booking.time, ignore_id=booking.id)
        assigned = booking.model_copy(update={"mechanic": mechanic, "time": label})
        updated = apply_status(assigned, BookingStatus.EN_ROUTE)
        return self._replace(
            "bookings", updated, BOOKING_STATUS_CHANGED, booking.status.value,
        )

    def mark_booking_as_paid(self, booking_id: str) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.is_paid:
            return booking
        return self._replace("bookings", booking.model_copy(update={"is_paid": True}))

    def request_reschedule(
        self, booking_id: str, new_date: date, new_time: str, reason: str = ""
    ) -> Booking:
        """
        Ask to move a booking to another date and time.

        The booking moves to Reschedule Requested and holds no slot while the
        request is pending.
        """
        booking = self.get_booking(booking_id)
        try:
            label = normalize_slot_label(new_time)
        except ValueError as exc:
            raise SlotUnavailableError(str(exc)) from exc
        updated = apply_status(booking, BookingStatus.RESCHEDULE_REQUESTED)
        updated = updated.model_copy(update={"reschedule_details": RescheduleDetails(
            new_date=new_date, new_time=label, reason=reason.strip(),
        )})
        logger.info("Reschedule of %s to %s %s requested", booking_id, new_date, label)
        return self._replace(
            "bookings", updated, BOOKING_STATUS_CHANGED, booking.status.value,
        )

    def respond_to_reschedule(self, booking_id: str, accepted: bool) -> Booking:
        """
        Accept or reject a pending reschedule request.

        Accepting confirms the booking at the requested date and time, which
        must be a free slot the mechanic offers. Rejecting returns the booking
        to the status it had before the request. Either way the request is
        cleared.
        """
        self.sync()
        booking = self.get_booking(booking_id)
        details = booking.reschedule_details
        if booking.status != BookingStatus.RESCHEDULE_REQUESTED or details is None:
            raise BusinessRuleError(f"Booking {booking_id} has no pending reschedule request.")
        if accepted:
            label = self._claim_slot(
                booking.mechanic, details.new_date, details.new_time, ignore_id=booking.id,
            )
            updated = apply_status(booking, BookingStatus.BOOKING_CONFIRMED)
            updated = updated.model_copy(update={
                "date": details.new_date, "time": label, "reschedule_details": None,
            })
        else:
            previous = next(
                (h.status for h in reversed(booking.status_history)
                 if h.status != BookingStatus.RESCHEDULE_REQUESTED),
                BookingStatus.BOOKING_CONFIRMED,
            )
            updated = apply_status(booking, previous)
            updated = updated.model_copy(update={"reschedule_details": None})
        logger.info(
            "Reschedule of %s %s", booking_id, "accepted" if accepted else "rejected",
        )
        return self._replace(
            "bookings", updated, BOOKING_STATUS_CHANGED, booking.status.value,
        )

    def set_booking_location(self, booking_id: str, lat: float, lng: float) -> Booking:
        """Record where the customer wants the mechanic to come."""
        booking = self.get_booking(booking_id)
        return self._replace(
            "bookings", booking.model_copy(update={"location": GeoPoint(lat=lat, lng=lng)}),
        )

    def update_mechanic_location(self, mechanic_id: str, lat: float, lng: float) -> Mechanic:
        """
        Move a mechanic and refresh the ETA of their en-route bookings.

        Bookings without a location keep their ETA. Within
        ``ARRIVAL_RADIUS_KM`` of the customer the mechanic has arrived and the
        ETA is cleared.
        """
        mechanic = self.get_mechanic(mechanic_id)
        moved = mechanic.model_copy(update={"lat": lat, "lng": lng})
        mechanics = [moved if m.id == mechanic_id else m for m in self.db.mechanics]
        bookings = []
        for booking in self.db.bookings:
            if (booking.status == BookingStatus.EN_ROUTE
                    and booking.mechanic_id == mechanic_id and booking.location):
                distance = distance_km(lat, lng, booking.location.lat, booking.location.lng)
                eta = None if distance < ARRIVAL_RADIUS_KM else eta_minutes(distance)
                booking = booking.model_copy(update={"eta": eta, "mechanic": moved})
            bookings.append(booking)
        self._commit(
            self.db.model_copy(update={"mechanics": mechanics, "bookings": bookings}),
            ChangeEvent("mechanics_updated", "mechanics", mechanic_id),
        )
        return moved

    def update_booking_notes(self, booking_id: str, notes: str) -> Booking:
        booking = self.get_booking(booking_id)
        return self._replace("bookings", booking.model_copy(update={"notes": notes}))

    def update_booking_images(
        self, booking_id: str, before_images: list[str], after_images: list[str]
    ) -> Booking:
        booking = self.get_booking(booking_id)
        return self._replace("bookings", booking.model_copy(update={
            "before_images": list(before_images),
            "after_images": list(after_images),
        }))

    # --- Customers ---

    def add_customer(self, **fields: Any) -> Customer:
        if fields.get("phone"):
            fields["phone"] = normalize_phone(fields["phone"])
        email = fields.get("email", "").strip().lower()
        if any(c.email.lower() == email for c in self.db.customers):
            raise BusinessRuleError(f"An account with email {email} already exists.")
        return self._add("customers", Customer(id=new_id("c"), **fields))

    def get_customer(self, customer_id: str) -> Customer:
        return self._find("customers", customer_id)

    def update_customer(self, customer: Customer) -> Customer:
        return self._replace("customers", customer)

    def delete_customer(self, customer_id: str) -> None:
        self._delete("customers", [customer_id])

    def delete_vehicle_from_customer(self, customer_id: str, plate_number: str) -> Customer:
        customer = self.get_customer(customer_id)
        vehicles = [v for v in customer.vehicles if v.plate_number != plate_number]
        return self._replace("customers", customer.model_copy(update={"vehicles": vehicles}))

    # --- Orders ---

    def add_order(
        self, customer_name: str, items: list[CartItem], total: float, payment_method: str
    ) -> Order:
        now = datetime.now(timezone.utc)
        order = Order(
            id=new_id("o"), customer_name=customer_name, items=items, total=total,
            payment_method=payment_method, date=now,
            status_history=[OrderStatusEntry(status=OrderStatus.PROCESSING, timestamp=now)],
        )
        return self._add("orders", order)

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        order: Order = self._find("orders", order_id)
        status = OrderStatus(status)
        if status == order.status:
            return order
        entry = OrderStatusEntry(status=status, timestamp=datetime.now(timezone.utc))
        return self._replace("orders", order.model_copy(update={
            "status": status,
            "status_history": [*order.status_history, entry],
        }))

    # --- Settings ---

    def update_settings(self, **changes: Any) -> Settings:
        """Merge ``changes`` into the settings record, validating the result."""
        merged = Settings.model_validate({**self.db.settings.model_dump(), **changes})
        self._commit(
            self.db.model_copy(update={"settings": merged}),
            ChangeEvent("settings_updated", "settings"),
        )
        return merged

    # --- Banners ---

    def add_banner(self, **fields: Any) -> Banner:
        return self._add("banners", Banner(id=new_id("banner"), **fields))

    def update_banner(self, banner: Banner) -> Banner:
        return self._replace("banners", banner)

    def delete_banner(self, banner_id: str) -> None:
        self._delete("banners", [banner_id])

    # --- Admin users and roles ---

    def add_admin_user(self, **fields: Any) -> AdminUser:
        if not any(r.name == fields.get("role") for r in self.db.roles):
            raise BusinessRuleError(f"Unknown role: {fields.get('role')!r}")
        return self._add("admin_users", AdminUser(id=new_id("au"), **fields))

    def update_admin_user(self, user: AdminUser) -> AdminUser:
        return self._replace("admin_users", user)

    def delete_admin_user(self, user_id: str) -> None:
        self._delete("admin_users", [user_id])

    def add_role(self, name: str, description: str = "",
                 default_permissions: Optional[dict] = None) -> Role:
        if any(r.name.lower() == name.lower() for r in self.db.roles):
            raise BusinessRuleError("A role with this name already exists.")
        role = Role(
            name=name, description=description, is_editable=True,
            default_permissions=default_permissions or {},
        )
        self._commit(
            self.db.model_copy(update={"roles": [*self.db.roles, role]}),
            ChangeEvent("roles_added", "roles", name),
        )
        return role

    def update_role(self, role: Role) -> Role:
        if not any(r.name == role.name for r in self.db.roles):
            raise RecordNotFoundError(f"No role named '{role.name}'.")
        roles = [role if r.name == role.name else r for r in self.db.roles]
        self._commit(
            self.db.model_copy(update={"roles": roles}),
            ChangeEvent("roles_updated", "roles", role.name),
        )
        return role

    def delete_role(self, role_name: str) -> None:
        if any(u.role == role_name for u in self.db.admin_users):
            raise BusinessRuleError(
                "Cannot delete role. It is currently assigned to one or more users."
            )
        roles = [r for r in self.db.roles if r.name != role_name]
        self._commit(
            self.db.model_copy(update={"roles": roles}),
            ChangeEvent("roles_deleted", "roles", role_name),
        )

    # --- Tasks ---

    def add_task(self, **fields: Any) -> Task:
        return self._add("tasks", Task(id=new_id("task"), **fields))

    def update_task(self, task: Task) -> Task:
        return self._replace("tasks", task)

    def delete_task(self, task_id: str) -> None:
        self._delete("tasks", [task_id])

    def delete_tasks(self, task_ids: Iterable[str]) -> None:
        self._delete("tasks", task_ids)

    def set_tasks_complete(self, task_ids: Iterable[str], is_complete: bool) -> None:
        ids = set(task_ids)
        tasks = [
            t.model_copy(update={"is_complete": is_complete}) if t.id in ids else t
            for t in self.db.tasks
        ]
        self._commit(
            self.db.model_copy(update={"tasks": tasks}),
            ChangeEvent("tasks_updated", "tasks", ",".join(sorted(ids))),
        )
