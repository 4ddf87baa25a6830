"""
Booking submission and appointment status transitions.

Availability is checked against a read snapshot before the insert, so two
concurrent requests may both pass the check. The appointment store is the
final arbiter and raises OverlapDetected for the loser.
"""

from __future__ import annotations

import logging
import secrets
from datetime import date, time
from typing import Dict, FrozenSet

import pendulum
from pydantic import BaseModel, field_validator

from ..domain.exceptions import (
    AppointmentNotFound,
    ConfigurationMissing,
    InvalidStatusTransition,
    NoQualifiedStaff,
    NoStaffAvailable,
    OverlapDetected,
    SlotUnavailable,
)
from ..domain.models import Appointment, AppointmentStatus
from ..domain.working_hours import parse_hhmm
from .availability import AvailabilityService
from .protocols import AppointmentStoreProtocol, NotifierProtocol, SalonCatalogProtocol
from .staff_assigner import StaffAutoAssigner

logger = logging.getLogger(__name__)

CONFIRMATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_CODE_LENGTH = 8

_ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.CANCELLED: frozenset(),
}


def generate_confirmation_code(length: int = CONFIRMATION_CODE_LENGTH) -> str:
    """Random booking reference without look-alike characters (0/O, 1/I)."""
    return "".join(secrets.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(length))


class BookingRequest(BaseModel):
    """Client input collected by the booking wizard."""
    service_id: str
    appointment_date: date
    appointment_time: str
    staff_id: str | None = None
    client_name: str
    client_email: str
    client_phone: str = ""
    notes: str | None = None

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Ensure the start time is a zero-padded HH:MM string."""
        parse_hhmm(value)
        return value

    def start_time(self) -> time:
        return parse_hhmm(self.appointment_time)


class BookingService:
    """
    Creates appointments for requested slots and moves them through
    pending -> confirmed -> cancelled.
    """

    def __init__(
        self,
        catalog: SalonCatalogProtocol,
        store: AppointmentStoreProtocol,
        availability: AvailabilityService,
        assigner: StaffAutoAssigner | None = None,
        notifier: NotifierProtocol | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._availability = availability
        self._assigner = assigner or StaffAutoAssigner(catalog, availability)
        self._notifier = notifier

    async def book(self, request: BookingRequest) -> Appointment:
        """
        Create a pending appointment for the requested slot.

        Raises:
            ConfigurationMissing: If settings or the service are not configured
            NoQualifiedStaff: If nobody can perform the service
            NoStaffAvailable: If every qualified staff member is busy
            SlotUnavailable: If the chosen staff member is not free at that time
            OverlapDetected: If the slot was taken between check and insert
        """
        settings = await self._catalog.get_business_settings()
        if settings is None:
            raise ConfigurationMissing("Business settings are not configured")

        service = await self._catalog.get_service(request.service_id)
        if service is None:
            raise ConfigurationMissing(f"Unknown service: {request.service_id}")

        day = request.appointment_date
        start = request.start_time()
        staff_id = request.staff_id

        if staff_id is None:
            staff_id = await self._assigner.find_staff(request.service_id, day, start)
            if staff_id is None:
                if not await self._catalog.get_qualified_staff(request.service_id):
                    raise NoQualifiedStaff(f"No staff performs service {request.service_id}")
                raise NoStaffAvailable(
                    f"Nobody is free on {day.isoformat()} at {request.appointment_time}, "
                    "please choose a different time"
                )
        elif not await self._availability.is_slot_available(
            day, start, request.service_id, staff_id
        ):
            raise SlotUnavailable(
                f"{day.isoformat()} {request.appointment_time} is not available for staff {staff_id}"
            )

        local_start = pendulum.datetime(
            day.year, day.month, day.day,
            start.hour, start.minute,
            tz=settings.timezone,
        )
        appointment = Appointment(
            staff_id=staff_id,
            service_id=service.id,
            start_time=local_start.in_timezone("UTC"),
            end_time=local_start.add(
                minutes=service.duration_minutes + service.effective_buffer(settings)
            ).in_timezone("UTC"),
            status=AppointmentStatus.PENDING,
            confirmation_code=generate_confirmation_code(),
            client_name=request.client_name,
            client_email=request.client_email,
            client_phone=request.client_phone,
            notes=request.notes,
        )

        try:
            created = await self._store.insert_appointment(appointment)
        except OverlapDetected:
            logger.warning(
                "Slot %s %s for staff %s was taken concurrently",
                day.isoformat(), request.appointment_time, staff_id,
            )
            raise

        logger.info(
            "Booked appointment %s (%s) for staff %s at %s",
            created.id, created.confirmation_code, staff_id, local_start.to_datetime_string(),
        )
        await self._notify("booking_created", created)
        return created

    async def confirm(self, appointment_id: str) -> Appointment:
        """Move a pending appointment to confirmed."""
        return await self._transition(appointment_id, AppointmentStatus.CONFIRMED, "booking_confirmed")

    async def cancel(self, appointment_id: str) -> Appointment:
        """Cancel a pending or confirmed appointment. Records are never deleted."""
        return await self._transition(appointment_id, AppointmentStatus.CANCELLED, "booking_cancelled")

    async def _transition(
        self,
        appointment_id: str,
        target: AppointmentStatus,
        event: str,
    ) -> Appointment:
        appointment = await self._store.get_appointment(appointment_id)
        if appointment is None:
            raise AppointmentNotFound(f"Appointment {appointment_id} does not exist")

        if target not in _ALLOWED_TRANSITIONS[appointment.status]:
            raise InvalidStatusTransition(
                f"Appointment {appointment_id} cannot go from "
                f"{appointment.status.value} to {target.value}"
            )

        updated = await self._store.update_status(appointment_id, target)
        logger.info("Appointment %s is now %s", appointment_id, target.value)
        await self._notify(event, updated)
        return updated

    async def _notify(self, event: str, appointment: Appointment) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify(event, appointment)
        except Exception:
            # Delivery problems must not undo a stored booking.
            logger.warning("Notification %s for appointment %s failed", event, appointment.id, exc_info=True)
