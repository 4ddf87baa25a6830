"""
In-process salon catalog and appointment store.

Used by the CLI demo mode and the test-suite. Inserts are serialized with an
asyncio lock so the overlap check and the write happen as one step.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence

import pendulum
from pendulum import DateTime

from ..config import SalonConfig
from ..domain.conflicts import blocking_appointments, overlaps
from ..domain.exceptions import AppointmentNotFound, OverlapDetected, StoreError
from ..domain.models import Appointment, AppointmentStatus, BusinessSettings, Service

logger = logging.getLogger(__name__)

DEFAULT_MOCK_DATA = Path(__file__).parent / "mock_salon_data.json"


class InMemorySalonStore:
    """
    Keeps business settings, services, qualifications and appointments in
    memory. Implements both the catalog and the appointment store protocols.
    """

    def __init__(
        self,
        settings: BusinessSettings | None = None,
        services: Iterable[Service] = (),
        qualifications: Mapping[str, Sequence[str]] | None = None,
        appointments: Iterable[Appointment] = (),
    ):
        """
        Initialize the store.

        Args:
            settings: Business settings, or None to simulate missing configuration
            services: Bookable services
            qualifications: Mapping of service id -> ordered staff ids
            appointments: Existing appointments to seed the store with
        """
        self._settings = settings
        self._services: Dict[str, Service] = {service.id: service for service in services}
        self._qualifications: Dict[str, List[str]] = {
            service_id: list(staff_ids)
            for service_id, staff_ids in (qualifications or {}).items()
        }
        self._appointments: Dict[str, Appointment] = {}
        self._lock = asyncio.Lock()

        for appointment in appointments:
            stored = appointment if appointment.id else replace(appointment, id=uuid.uuid4().hex)
            self._appointments[stored.id] = stored

    @classmethod
    def from_config(cls, config: SalonConfig, mock_data: Path | None = None) -> "InMemorySalonStore":
        """
        Build a store from the YAML configuration, optionally seeded with
        appointments from a JSON file.
        """
        qualifications: Dict[str, List[str]] = {}
        for member in config.staff:
            for service_id in member.services:
                qualifications.setdefault(service_id, []).append(member.id)

        appointments = load_appointments(mock_data) if mock_data else []

        return cls(
            settings=config.business.to_business_settings(),
            services=[service.to_domain() for service in config.services],
            qualifications=qualifications,
            appointments=appointments,
        )

    async def get_business_settings(self) -> BusinessSettings | None:
        return self._settings

    async def get_service(self, service_id: str) -> Service | None:
        return self._services.get(service_id)

    async def get_qualified_staff(self, service_id: str) -> List[str]:
        return list(self._qualifications.get(service_id, []))

    async def get_appointments(
        self,
        staff_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[Appointment]:
        matches = [
            replace(appt)
            for appt in blocking_appointments(self._appointments.values(), staff_id=staff_id)
            if overlaps(start, end, appt)
        ]
        return sorted(matches, key=lambda appt: appt.start_time)

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        appointment = self._appointments.get(appointment_id)
        return replace(appointment) if appointment else None

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        async with self._lock:
            if appointment.blocks_time:
                self._ensure_no_overlap(appointment)

            stored = replace(appointment, id=appointment.id or uuid.uuid4().hex)
            if stored.id in self._appointments:
                raise StoreError(f"Appointment {stored.id} already exists")

            self._appointments[stored.id] = stored
            logger.debug("Stored appointment %s for staff %s", stored.id, stored.staff_id)
            return replace(stored)

    async def update_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
    ) -> Appointment:
        async with self._lock:
            current = self._appointments.get(appointment_id)
            if current is None:
                raise AppointmentNotFound(f"Appointment {appointment_id} does not exist")

            updated = replace(current, status=AppointmentStatus(status))
            if updated.blocks_time and not current.blocks_time:
                self._ensure_no_overlap(updated)

            self._appointments[appointment_id] = updated
            return replace(updated)

    def _ensure_no_overlap(self, appointment: Appointment) -> None:
        buffer_before = self._settings.buffer_before if self._settings else 0
        occupied_from = appointment.start_time.subtract(minutes=buffer_before)

        for existing in blocking_appointments(self._appointments.values(), staff_id=appointment.staff_id):
            if existing.id == appointment.id:
                continue
            if overlaps(occupied_from, appointment.end_time, existing, buffer_before=buffer_before):
                raise OverlapDetected(appointment.staff_id, appointment.start_time, appointment.end_time)


def load_appointments(data_file: Path) -> List[Appointment]:
    """
    Load appointments from a JSON list of objects with ``staffId``,
    ``start``, ``end`` and optional ``id``, ``serviceId``, ``status``.

    Raises:
        StoreError: If the file cannot be read or an entry is malformed
    """
    try:
        with open(data_file, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise StoreError(f"Could not read appointments from {data_file}: {e}") from e

    appointments: List[Appointment] = []
    for entry in raw:
        try:
            appointments.append(
                Appointment(
                    id=entry.get("id"),
                    staff_id=entry["staffId"],
                    service_id=entry.get("serviceId"),
                    start_time=pendulum.parse(entry["start"]),
                    end_time=pendulum.parse(entry["end"]),
                    status=AppointmentStatus(entry.get("status", "confirmed")),
                    client_name=entry.get("clientName", ""),
                )
            )
        except (KeyError, ValueError) as e:
            raise StoreError(f"Invalid appointment entry {entry!r}: {e}") from e

    return appointments
