"""
Supabase (PostgREST) client for salon configuration and appointments.
"""

import asyncio
import logging
from typing import Any, Dict, List, Sequence, Tuple

import pendulum
import requests
from pendulum import DateTime
from pydantic import ValidationError

from ..config import BusinessSettingsConfig, SupabaseConfig
from ..domain.exceptions import (
    AppointmentNotFound,
    ConfigurationMissing,
    OverlapDetected,
    StoreError,
)
from ..domain.models import Appointment, AppointmentStatus, BusinessSettings, Service

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE raised by an EXCLUDE constraint
EXCLUSION_VIOLATION = "23P01"

BLOCKING_STATUSES = "in.(pending,confirmed)"

Params = Sequence[Tuple[str, str]]


class SupabaseSalonStore:
    """
    Talks to the Supabase REST endpoint (``/rest/v1``).

    Implements both the catalog and the appointment store protocols. Blocking
    HTTP calls run in a worker thread so callers can await them.

    The ``appointments`` table must carry the exclusion constraint from
    ``sql/appointments_no_overlap.sql``; it is what rejects concurrent
    double bookings.
    """

    def __init__(self, url: str, api_key: str, timeout: int = 30, timezone: str = "Europe/Berlin"):
        """
        Initialize the REST client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            api_key: Service or anon key
            timeout: Request timeout in seconds
            timezone: Salon timezone used when the settings row has none
        """
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.timezone = timezone
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    @classmethod
    def from_config(cls, config: SupabaseConfig, timezone: str = "Europe/Berlin") -> "SupabaseSalonStore":
        return cls(url=config.url, api_key=config.api_key, timeout=config.timeout, timezone=timezone)

    async def get_business_settings(self) -> BusinessSettings | None:
        rows = await self._call("GET", "business_settings", params=[("select", "*"), ("limit", "1")])
        if not rows:
            return None
        return self._parse_settings(rows[0])

    async def get_service(self, service_id: str) -> Service | None:
        rows = await self._call(
            "GET",
            "services",
            params=[("select", "id,name,duration,buffer_minutes"), ("id", f"eq.{service_id}")],
        )
        if not rows:
            return None

        row = rows[0]
        try:
            return Service(
                id=str(row["id"]),
                name=row.get("name") or "",
                duration_minutes=int(row["duration"]),
                buffer_minutes=row.get("buffer_minutes"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationMissing(f"Unusable service row for {service_id}: {e}") from e

    async def get_qualified_staff(self, service_id: str) -> List[str]:
        rows = await self._call(
            "GET",
            "staff_services",
            params=[("select", "staff_id"), ("service_id", f"eq.{service_id}")],
        )
        return [str(row["staff_id"]) for row in rows]

    async def get_appointments(
        self,
        staff_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[Appointment]:
        rows = await self._call(
            "GET",
            "appointments",
            params=[
                ("select", "*"),
                ("staff_id", f"eq.{staff_id}"),
                ("status", BLOCKING_STATUSES),
                ("start_time", f"lt.{end.in_timezone('UTC').to_iso8601_string()}"),
                ("end_time", f"gt.{start.in_timezone('UTC').to_iso8601_string()}"),
                ("order", "start_time"),
            ],
        )
        return [self._parse_appointment(row) for row in rows]

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        rows = await self._call(
            "GET",
            "appointments",
            params=[("select", "*"), ("id", f"eq.{appointment_id}")],
        )
        return self._parse_appointment(rows[0]) if rows else None

    async def insert_appointment(self, appointment: Appointment) -> Appointment:
        try:
            rows = await self._call("POST", "appointments", payload=self._serialize(appointment))
        except _ConflictResponse as e:
            raise OverlapDetected(appointment.staff_id, appointment.start_time, appointment.end_time) from e

        if not rows:
            raise StoreError("Supabase returned no row for the inserted appointment")
        return self._parse_appointment(rows[0])

    async def update_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
    ) -> Appointment:
        current = await self.get_appointment(appointment_id)
        if current is None:
            raise AppointmentNotFound(f"Appointment {appointment_id} does not exist")

        try:
            rows = await self._call(
                "PATCH",
                "appointments",
                params=[("id", f"eq.{appointment_id}")],
                payload={"status": AppointmentStatus(status).value},
            )
        except _ConflictResponse as e:
            raise OverlapDetected(current.staff_id, current.start_time, current.end_time) from e

        if not rows:
            raise AppointmentNotFound(f"Appointment {appointment_id} does not exist")
        return self._parse_appointment(rows[0])

    async def _call(
        self,
        method: str,
        table: str,
        params: Params | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._request, method, table, params, payload)

    def _request(
        self,
        method: str,
        table: str,
        params: Params | None,
        payload: Dict[str, Any] | None,
    ) -> List[Dict[str, Any]]:
        """
        Perform one REST call and return the decoded row list.

        Raises:
            _ConflictResponse: On an exclusion or uniqueness violation
            StoreError: On any other transport or HTTP failure
        """
        url = f"{self.base_url}/{table}"

        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                params=list(params or []),
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("%s %s failed: %s", method, table, e)
            raise StoreError(f"Failed to reach Supabase: {e}") from e

        if response.status_code == 409 or self._error_code(response) == EXCLUSION_VIOLATION:
            raise _ConflictResponse(response.text)

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error("%s %s returned %s: %s", method, table, response.status_code, response.text)
            raise StoreError(f"Supabase request failed: {e}") from e

        if not response.content:
            return []

        data = response.json()
        return data if isinstance(data, list) else [data]

    @staticmethod
    def _error_code(response: requests.Response) -> str | None:
        if response.ok:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("code") if isinstance(body, dict) else None

    def _parse_settings(self, row: Dict[str, Any]) -> BusinessSettings:
        """
        Parse a ``business_settings`` row into the domain model.

        Row format:
        {
            "working_hours": {"monday": {"open": true, "start": "09:00", "end": "18:00"}, ...},
            "appointment_buffer": 15,
            "min_appointment_notice": 60
        }
        """
        data = {
            key: row[key]
            for key in (
                "working_hours",
                "appointment_buffer",
                "buffer_before",
                "slot_granularity",
                "min_appointment_notice",
                "timezone",
            )
            if row.get(key) is not None
        }
        data.setdefault("timezone", self.timezone)

        try:
            return BusinessSettingsConfig(**data).to_business_settings()
        except ValidationError as e:
            raise ConfigurationMissing(f"Unusable business settings: {e}") from e

    def _parse_appointment(self, row: Dict[str, Any]) -> Appointment:
        try:
            return Appointment(
                id=str(row["id"]),
                staff_id=str(row["staff_id"]),
                service_id=row.get("service_id"),
                start_time=self._parse_datetime(row["start_time"]),
                end_time=self._parse_datetime(row["end_time"]),
                status=AppointmentStatus(row.get("status", "pending")),
                confirmation_code=row.get("confirmation_code"),
                client_name=row.get("client_name") or "",
                client_email=row.get("client_email") or "",
                client_phone=row.get("client_phone") or "",
                notes=row.get("notes"),
            )
        except (KeyError, ValueError) as e:
            raise StoreError(f"Could not parse appointment row: {e}") from e

    @staticmethod
    def _parse_datetime(value: str) -> DateTime:
        dt = pendulum.parse(value)
        if isinstance(dt, DateTime):
            return dt.in_timezone("UTC")
        raise ValueError(f"Could not parse datetime: {value}")

    @staticmethod
    def _serialize(appointment: Appointment) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "staff_id": appointment.staff_id,
            "service_id": appointment.service_id,
            "start_time": appointment.start_time.in_timezone("UTC").to_iso8601_string(),
            "end_time": appointment.end_time.in_timezone("UTC").to_iso8601_string(),
            "status": appointment.status.value,
            "confirmation_code": appointment.confirmation_code,
            "client_name": appointment.client_name,
            "client_email": appointment.client_email,
            "client_phone": appointment.client_phone,
            "notes": appointment.notes,
        }
        if appointment.id:
            payload["id"] = appointment.id
        return payload


class _ConflictResponse(Exception):
    """Internal signal for a 409 / exclusion violation response."""
