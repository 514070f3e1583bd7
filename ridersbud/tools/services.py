"""Service catalog lookups."""

import logging
from typing import Iterable, Optional

from ridersbud.schemas.catalog_schema import Service

logger = logging.getLogger(__name__)


def find_service(services: Iterable[Service], query: str) -> Optional[Service]:
    """Match a service by id, then exact name, then partial name. None if no match."""
    normalized = query.lower().strip()
    if not normalized:
        return None
    services = list(services)
    for service in services:
        if service.id == query.strip():
            return service
    for service in services:
        if service.name.lower() == normalized:
            return service
    for service in services:
        if normalized in service.name.lower():
            return service
    logger.debug("No service matches %r", query)
    return None


def services_by_category(services: Iterable[Service]) -> dict[str, list[Service]]:
    """Group services by category, keeping catalog order within each group."""
    grouped: dict[str, list[Service]] = {}
    for service in services:
        grouped.setdefault(service.category or "Other", []).append(service)
    return grouped
