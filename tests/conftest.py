"""
Shared fixtures: a salon open Monday to Saturday with two staff members.
"""

import pendulum
import pytest

from salonslots.adapters.memory_store import InMemorySalonStore
from salonslots.domain.models import Appointment, AppointmentStatus, BusinessSettings, DaySchedule, Service

TZ = "Europe/Berlin"


def at(day: str, hhmm: str):
    """Absolute salon-local timestamp."""
    return pendulum.parse(f"{day} {hhmm}", tz=TZ)


def appointment(
    staff_id: str,
    day: str,
    start: str,
    end: str,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
) -> Appointment:
    """Build an appointment stored in UTC, as the stores keep them."""
    return Appointment(
        staff_id=staff_id,
        service_id="gel",
        start_time=at(day, start).in_timezone("UTC"),
        end_time=at(day, end).in_timezone("UTC"),
        status=status,
    )


def business_settings(**overrides) -> BusinessSettings:
    weekday = DaySchedule(open=True, start="09:00", end="18:00")
    values = dict(
        working_hours={
            "monday": weekday,
            "tuesday": weekday,
            "wednesday": weekday,
            "thursday": weekday,
            "friday": weekday,
            "saturday": DaySchedule(open=True, start="10:00", end="14:00"),
            "sunday": DaySchedule(open=False),
        },
        appointment_buffer=15,
        slot_granularity=15,
        timezone=TZ,
    )
    values.update(overrides)
    return BusinessSettings(**values)


@pytest.fixture
def make_store():
    """Factory for an in-memory store; staff 'anna' then 'sofia' perform 'gel'."""

    def _make(appointments=(), settings=None, services=None, qualifications=None):
        return InMemorySalonStore(
            settings=settings if settings is not None else business_settings(),
            services=services if services is not None else [
                Service(id="gel", duration_minutes=60, name="Gel Manicure"),
                Service(id="art", duration_minutes=90, buffer_minutes=0, name="Nail Art"),
            ],
            qualifications=qualifications if qualifications is not None else {
                "gel": ["anna", "sofia"],
                "art": ["sofia"],
            },
            appointments=appointments,
        )

    return _make
