"""Customer lookup for the booking flow."""

import logging
from typing import Iterable, Optional

from ridersbud.schemas.customer_schema import Customer
from ridersbud.utils import normalize_phone

logger = logging.getLogger(__name__)


def lookup_customer(customers: Iterable[Customer], contact: str) -> Optional[Customer]:
    """Find a customer by email, phone number, or id. Returns None if not found."""
    needle = contact.strip()
    if not needle:
        return None
    phone = normalize_phone(needle)
    for customer in customers:
        if customer.id == needle or customer.email.lower() == needle.lower():
            return customer
        if phone and normalize_phone(customer.phone) == phone:
            logger.debug("Customer found by phone: %s", customer.name)
            return customer
    return None
