"""
Protocols describing the data-access behaviour needed by the services.
"""

from __future__ import annotations

from typing import List, Protocol

from pendulum import DateTime

from ..domain.models import Appointment, AppointmentStatus, BusinessSettings, Service


class SalonCatalogProtocol(Protocol):
    """Read-only salon configuration: hours, services and staff qualifications."""

    async def get_business_settings(self) -> BusinessSettings | None:
        """Return the business settings, or None if not configured."""

    async def get_service(self, service_id: str) -> Service | None:
        """Return the service, or None if unknown."""

    async def get_qualified_staff(self, service_id: str) -> List[str]:
        """Return ids of staff qualified for a service, in store order."""


class AppointmentStoreProtocol(Protocol):
    """Durable appointment storage."""

    async def get_appointments(
        self,
        staff_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[Appointment]:
        """Return pending/confirmed appointments of a staff member overlapping [start, end)."""

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        """Return a single appointment, or None if unknown."""

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        """
        Persist a new appointment.

        Must raise OverlapDetected if the interval overlaps a pending or
        confirmed appointment of the same staff member.
        """

    async def update_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
    ) -> Appointment:
        """Change the status of an appointment and return the updated record."""


class NotifierProtocol(Protocol):
    """One-shot notification sink for booking events."""

    async def notify(self, event: str, appointment: Appointment) -> None:
        """Deliver a notification about an appointment."""
