"""
Greedy staff auto-assignment.
"""

from __future__ import annotations

import logging
from datetime import date, time

from .availability import AvailabilityService
from .protocols import SalonCatalogProtocol

logger = logging.getLogger(__name__)


class StaffAutoAssigner:
    """
    Picks the first qualified staff member who is free at a requested time.

    No load balancing or preference ranking: staff are tried in the order the
    catalog lists them.
    """

    def __init__(
        self,
        catalog: SalonCatalogProtocol,
        availability: AvailabilityService,
    ) -> None:
        self._catalog = catalog
        self._availability = availability

    async def find_staff(self, service_id: str, day: date, start: time) -> str | None:
        """
        Return the id of the first free qualified staff member, or None if
        nobody qualifies or everybody is busy.
        """
        qualified = await self._catalog.get_qualified_staff(service_id)
        if not qualified:
            logger.info("No staff qualified for service %s", service_id)
            return None

        for staff_id in qualified:
            if await self._availability.is_slot_available(day, start, service_id, staff_id):
                logger.info(
                    "Assigned staff %s to service %s on %s at %s",
                    staff_id, service_id, day.isoformat(), start.strftime("%H:%M"),
                )
                return staff_id

        logger.info(
            "None of %d qualified staff is free for service %s on %s at %s",
            len(qualified), service_id, day.isoformat(), start.strftime("%H:%M"),
        )
        return None
