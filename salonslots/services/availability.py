"""
Availability service.

Composes the working-hours resolver, the slot generator and the conflict
detector. Business settings, services and appointments are re-read on every
call; nothing is cached between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Callable, List, Tuple

import pendulum
from pendulum import DateTime

from ..domain.conflicts import candidate_range, has_conflict, mark_conflicts
from ..domain.exceptions import ConfigurationMissing
from ..domain.models import BusinessSettings, DayHours, Service, TimeSlot
from ..domain.slot_generator import generate_slots
from ..domain.working_hours import resolve_working_hours
from .protocols import AppointmentStoreProtocol, SalonCatalogProtocol

logger = logging.getLogger(__name__)

Clock = Callable[[], DateTime]


@dataclass(frozen=True)
class _RequestContext:
    """Configuration resolved once per availability request."""
    settings: BusinessSettings
    service: Service
    hours: DayHours

    @property
    def buffer_after(self) -> int:
        return self.service.effective_buffer(self.settings)

    @property
    def buffer_before(self) -> int:
        return self.settings.buffer_before


class AvailabilityService:
    """
    Computes bookable slots for a date and service, optionally for one staff member.
    """

    def __init__(
        self,
        catalog: SalonCatalogProtocol,
        store: AppointmentStoreProtocol,
        clock: Clock | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._clock = clock or (lambda: pendulum.now("UTC"))

    async def get_available_slots(
        self,
        day: date,
        service_id: str,
        staff_id: str | None = None,
    ) -> List[TimeSlot]:
        """
        Return every candidate slot of the day, bookable and blocked alike.

        Without ``staff_id`` no conflict filtering happens; the caller must
        resolve a staff member before booking. Closed days and missing
        configuration yield an empty list.
        """
        context = await self._load_context(day, service_id)
        if context is None:
            return []

        slots = generate_slots(
            context.hours,
            context.service.duration_minutes,
            context.buffer_after,
            context.settings.slot_granularity,
        )

        if staff_id is not None and slots:
            appointments = await self._fetch_day_appointments(staff_id, day, context)
            mark_conflicts(
                slots,
                day=day,
                staff_id=staff_id,
                appointments=appointments,
                duration_minutes=context.service.duration_minutes,
                timezone=context.settings.timezone,
                buffer_before=context.buffer_before,
                buffer_after=context.buffer_after,
            )

        self._apply_notice(slots, day, context.settings)

        logger.debug(
            "%d/%d slots available on %s for service %s (staff %s)",
            sum(1 for slot in slots if slot.available),
            len(slots),
            day.isoformat(),
            service_id,
            staff_id or "-",
        )
        return slots

    async def is_slot_available(
        self,
        day: date,
        start: time,
        service_id: str,
        staff_id: str,
    ) -> bool:
        """
        Single-slot form: check whether ``staff_id`` can take a booking that
        starts at ``start`` on ``day``.

        The start must be one of the generated candidate times for the day.
        """
        context = await self._load_context(day, service_id)
        if context is None:
            return False

        candidates = generate_slots(
            context.hours,
            context.service.duration_minutes,
            context.buffer_after,
            context.settings.slot_granularity,
        )
        slot = next(
            (s for s in candidates if s.hour == start.hour and s.minute == start.minute),
            None,
        )
        if slot is None:
            logger.debug("%s is not a valid start on %s", start.strftime("%H:%M"), day.isoformat())
            return False

        if self._too_soon(slot, day, context.settings):
            return False

        appointments = await self._fetch_day_appointments(staff_id, day, context)
        candidate = candidate_range(
            day,
            slot,
            context.service.duration_minutes,
            context.settings.timezone,
            buffer_before=context.buffer_before,
            buffer_after=context.buffer_after,
        )
        return not has_conflict(
            candidate,
            [appt for appt in appointments if appt.staff_id == staff_id],
            buffer_before=context.buffer_before,
        )

    async def opening_hours_for_week(self, start_day: date) -> List[Tuple[date, DayHours]]:
        """Resolved opening hours for seven consecutive days."""
        settings = await self._business_settings()
        days = [start_day + timedelta(days=offset) for offset in range(7)]

        if settings is None:
            return [(day, DayHours.closed()) for day in days]

        return [(day, resolve_working_hours(day, settings.working_hours)) for day in days]

    async def _business_settings(self) -> BusinessSettings | None:
        try:
            return await self._catalog.get_business_settings()
        except ConfigurationMissing as e:
            logger.warning("Ignoring unusable business settings: %s", e)
            return None

    async def _load_context(self, day: date, service_id: str) -> _RequestContext | None:
        settings = await self._business_settings()
        if settings is None:
            logger.info("No business settings configured; reporting %s as closed", day.isoformat())
            return None

        hours = resolve_working_hours(day, settings.working_hours)
        if not hours.open:
            logger.info("Salon is closed on %s", day.isoformat())
            return None

        try:
            service = await self._catalog.get_service(service_id)
        except ConfigurationMissing as e:
            logger.warning("Ignoring unusable service %s: %s", service_id, e)
            service = None
        if service is None:
            logger.info("Unknown service %s; no slots on %s", service_id, day.isoformat())
            return None

        return _RequestContext(settings=settings, service=service, hours=hours)

    async def _fetch_day_appointments(self, staff_id: str, day: date, context: _RequestContext):
        day_start = pendulum.datetime(day.year, day.month, day.day, tz=context.settings.timezone)
        span_start = day_start.subtract(minutes=context.buffer_before)
        span_end = day_start.add(days=1)

        return await self._store.get_appointments(
            staff_id,
            span_start.in_timezone("UTC"),
            span_end.in_timezone("UTC"),
        )

    def _too_soon(self, slot: TimeSlot, day: date, settings: BusinessSettings) -> bool:
        if settings.min_appointment_notice <= 0:
            return False
        earliest = self._clock().add(minutes=settings.min_appointment_notice)
        return slot.start_on(day, settings.timezone) < earliest

    def _apply_notice(self, slots: List[TimeSlot], day: date, settings: BusinessSettings) -> None:
        for slot in slots:
            if slot.available and self._too_soon(slot, day, settings):
                slot.available = False
