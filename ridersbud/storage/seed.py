"""
Seed document used when no stored database exists yet.

Booking dates and the vacation range are relative to ``today`` so a fresh
install always has upcoming work to show.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ridersbud.schemas.admin_schema import ADMIN_MODULES
from ridersbud.schemas.database_schema import Database

WEEKDAY_ONLY = {
    **{d: {"is_available": True, "start_time": "09:00", "end_time": "17:00"}
       for d in ("monday", "tuesday", "wednesday", "thursday", "friday")},
    "saturday": {"is_available": False, "start_time": "09:00", "end_time": "17:00"},
    "sunday": {"is_available": False, "start_time": "09:00", "end_time": "17:00"},
}

SIX_DAY = {
    **{d: {"is_available": True, "start_time": "08:00", "end_time": "18:00"}
       for d in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")},
    "sunday": {"is_available": False, "start_time": "08:00", "end_time": "18:00"},
}

SERVICES = [
    {"id": "1", "name": "Change Oil", "price": 2500, "estimated_time": "45 mins",
     "category": "Maintenance",
     "description": "Full synthetic oil change with filter replacement."},
    {"id": "2", "name": "Battery", "price": 4000, "estimated_time": "30 mins",
     "category": "Repair",
     "description": "Battery health check, terminal cleaning, and replacement if necessary."},
    {"id": "6", "name": "Towing", "price": 3500, "estimated_time": "N/A",
     "category": "Emergency",
     "description": "Towing to a safe location or one of our partner shops."},
    {"id": "3", "name": "Diagnostics", "price": 1200, "estimated_time": "1 hour",
     "category": "Diagnostics",
     "description": "OBD-II diagnostic scan for engine and electronic issues."},
    {"id": "4", "name": "Body Repair", "price": 0, "estimated_time": "Quote Required",
     "category": "Repair",
     "description": "Dents, scratches, and collision damage. Request a quote for pricing."},
    {"id": "5", "name": "Aircon", "price": 1800, "estimated_time": "1.5 hours",
     "category": "Maintenance",
     "description": "Air conditioning check, freon recharge, and leak detection."},
]

PARTS = [
    {"id": "p1", "name": "Synthetic Engine Oil", "price": 1750.0, "category": "Engine",
     "sku": "SYN-5W30-5QT", "stock": 50},
    {"id": "p2", "name": "Ceramic Brake Pads", "price": 2999.0, "sales_price": 2499.0,
     "category": "Brakes", "sku": "CER-PAD-F78", "stock": 25},
    {"id": "p3", "name": "Engine Air Filter", "price": 999.0, "category": "Engine",
     "sku": "AIR-FIL-H21", "stock": 0},
    {"id": "p4", "name": "Wiper Blades (Set of 2)", "price": 1250.0, "category": "Exterior",
     "sku": "WPR-BLD-22", "stock": 100},
]

ROLES = [
    {"name": "Super Admin", "is_editable": False,
     "description": "Has unrestricted access to all admin features and settings.",
     "default_permissions": {m: ("view" if m in ("dashboard", "analytics") else "edit")
                             for m in ADMIN_MODULES}},
    {"name": "Content Manager", "is_editable": True,
     "description": "Manages the catalog and marketing, but not core settings or users.",
     "default_permissions": {
         "dashboard": "view", "analytics": "view", "bookings": "view", "catalog": "edit",
         "mechanics": "view", "customers": "view", "marketing": "edit", "users": "none",
         "settings": "none", "orders": "view",
     }},
    {"name": "Viewer", "is_editable": True,
     "description": "Read-only access to most of the admin panel.",
     "default_permissions": {
         m: ("none" if m in ("users", "settings") else "view") for m in ADMIN_MODULES
     }},
]

FAQS = [
    {"category": "General", "items": [
        {"question": "What is RidersBUD?",
         "answer": "RidersBUD connects vehicle owners with professional mobile mechanics "
                   "and sells parts and tools online."},
    ]},
    {"category": "Booking & Services", "items": [
        {"question": "Can I choose a specific mechanic?",
         "answer": "Yes. After selecting a service and date you can browse available "
                   "mechanics, compare ratings, and pick a time slot."},
        {"question": "What if the service I need isn't listed?",
         "answer": "Book a Diagnostics service and the mechanic will quote the repair."},
    ]},
]

PRIMARY_VEHICLE = {
    "make": "Mitsubishi", "model": "Montero", "year": 2023, "plate_number": "ABC 1234",
    "is_primary": True, "vin": "JN1AZ01Z000123456", "mileage": 15000,
}


def _mechanics(today: date) -> list[dict]:
    vacation_start = today + timedelta(days=15)
    return [
        {"id": "m1", "name": "Ricardo Reyes", "email": "ricardo@ridersbud.com",
         "phone": "555-0101-111", "rating": 4.9, "reviews": 120,
         "bio": "ASE certified, 15 years on Japanese vehicles.",
         "specializations": ["Oil Change", "Engine Diagnostics", "Mitsubishi Expert"],
         "status": "Active", "lat": 14.5547, "lng": 121.0244,
         "registration_date": "2022-01-15", "availability": WEEKDAY_ONLY,
         "unavailable_dates": [{"start_date": vacation_start,
                                "end_date": vacation_start + timedelta(days=5),
                                "reason": "Vacation"}]},
        {"id": "m2", "name": "Jane Smith", "email": "jane@ridersbud.com",
         "phone": "555-0102-222", "rating": 4.8, "reviews": 97,
         "bio": "European brake systems and suspension tuning.",
         "specializations": ["Brake Systems", "Honda Pro", "Suspension"],
         "status": "Active", "lat": 14.5995, "lng": 120.9842,
         "registration_date": "2022-03-10", "availability": SIX_DAY},
        {"id": "m3", "name": "Carlos Rivera", "email": "carlos@ridersbud.com",
         "phone": "555-0103-333", "rating": 4.7, "reviews": 150,
         "bio": "Roadside rescue and battery specialist.",
         "specializations": ["Towing", "Battery Replacement", "Emergency Repair"],
         "status": "Active", "lat": 14.6760, "lng": 121.0437,
         "registration_date": "2021-11-05", "availability": SIX_DAY},
        {"id": "m4", "name": "Mike Brown", "email": "mike@ridersbud.com",
         "phone": "555-0104-444", "rating": 4.6, "reviews": 88,
         "bio": "Air conditioning and general maintenance.",
         "specializations": ["Aircon Service", "General Maintenance"],
         "status": "Active", "lat": 14.5176, "lng": 121.0509,
         "registration_date": "2023-02-20", "availability": WEEKDAY_ONLY},
        {"id": "m5", "name": "Sarah Wilson", "email": "sarah@ridersbud.com",
         "phone": "555-0105-555", "rating": 4.5, "reviews": 40,
         "specializations": ["Body Repair", "Paint"],
         "status": "Inactive", "registration_date": "2023-06-01",
         "availability": WEEKDAY_ONLY},
        {"id": "m6", "name": "Leo Santos", "email": "leo@ridersbud.com",
         "phone": "555-0106-666", "rating": 0.0, "reviews": 0,
         "specializations": ["Diagnostics"], "status": "Pending",
         "registration_date": "2024-05-01"},
    ]


def get_seed_data(today: Optional[date] = None) -> Database:
    """Build the initial database document."""
    today = today or date.today()
    now = datetime.now(timezone.utc)
    mechanics = _mechanics(today)
    services = {s["id"]: s for s in SERVICES}

    bookings = [
        {"id": "b1", "customer_name": "Juan Dela Cruz", "service": services["1"],
         "mechanic": mechanics[0], "date": today + timedelta(days=1), "time": "11:00 AM",
         "status": "En Route", "vehicle": PRIMARY_VEHICLE,
         "status_history": [
             {"status": "Booking Confirmed", "timestamp": now - timedelta(days=1)},
             {"status": "Mechanic Assigned", "timestamp": now},
             {"status": "En Route", "timestamp": now},
         ]},
        {"id": "b2", "customer_name": "Juan Dela Cruz", "service": services["2"],
         "mechanic": mechanics[1], "date": today - timedelta(days=30), "time": "01:00 PM",
         "status": "Completed", "vehicle": PRIMARY_VEHICLE},
        {"id": "b3", "customer_name": "Juan Dela Cruz", "service": services["6"],
         "mechanic": mechanics[2], "date": today - timedelta(days=14), "time": "03:00 PM",
         "status": "Cancelled", "cancellation_reason": "Vehicle started on its own",
         "vehicle": PRIMARY_VEHICLE},
        {"id": "b4", "customer_name": "Alex Rider", "service": services["1"],
         "date": today + timedelta(days=2), "time": "10:00 AM", "status": "Upcoming",
         "vehicle": {"make": "Honda", "model": "Civic", "year": 2022,
                     "plate_number": "XYZ 789", "is_primary": True}},
    ]

    return Database.model_validate({
        "services": SERVICES,
        "parts": PARTS,
        "mechanics": mechanics,
        "bookings": bookings,
        "customers": [
            {"id": "c1", "name": "Juan Dela Cruz", "email": "juan@email.com",
             "phone": "555-0201-111", "vehicles": [PRIMARY_VEHICLE],
             "favorite_mechanic_ids": ["m1"]},
        ],
        "orders": [
            {"id": "o1", "customer_name": "Juan Dela Cruz",
             "items": [{**PARTS[0], "quantity": 1}], "total": 1750.0,
             "payment_method": "GCash", "date": now - timedelta(days=3),
             "status": "Shipped",
             "status_history": [
                 {"status": "Processing", "timestamp": now - timedelta(days=3)},
                 {"status": "Shipped", "timestamp": now - timedelta(days=2)},
             ]},
        ],
        "banners": [
            {"id": "banner1", "name": "Rainy Season Check", "link": "/booking/1",
             "category": "Booking", "start_date": today, "end_date": today + timedelta(days=90)},
        ],
        "settings": {
            "app_name": "RidersBUD",
            "address": "123 Auto Lane, Car City, 12345",
            "booking_start_time": "08:00",
            "booking_end_time": "18:00",
            "booking_slot_duration": 60,
            "app_tagline": "Trusted Car Care Wherever You Are",
            "service_categories": ["Maintenance", "Repair", "Emergency", "Diagnostics"],
            "part_categories": ["Engine", "Brakes", "Exterior"],
        },
        "faqs": FAQS,
        "admin_users": [
            {"id": "admin1", "email": "admin@ridersbud.com", "role": "Super Admin",
             "permissions": ROLES[0]["default_permissions"]},
        ],
        "roles": ROLES,
        "tasks": [
            {"id": "task1", "mechanic_id": "m1", "title": "Restock oil filters",
             "due_date": today + timedelta(days=3), "priority": "High"},
        ],
    })
