"""
Overlap detection between candidate slots and stored appointments.

Stored appointments end after their after-buffer. The before-buffer is
not stored, so it widens both sides of every comparison.
"""

from datetime import date
from typing import Iterable, List

from pendulum import DateTime

from .models import Appointment, TimeRange, TimeSlot


def overlaps(
    slot_start: DateTime,
    slot_end: DateTime,
    appointment: Appointment,
    buffer_before: int = 0,
) -> bool:
    """
    Half-open interval test: [slot_start, slot_end) and the appointment's
    [start_time - buffer_before, end_time) overlap iff they share at least
    one instant.

    Touching intervals (one ends exactly when the other starts) do not overlap.
    """
    occupied_from = appointment.start_time.subtract(minutes=buffer_before)
    return slot_start < appointment.end_time and slot_end > occupied_from


def blocking_appointments(
    appointments: Iterable[Appointment],
    staff_id: str | None = None,
) -> List[Appointment]:
    """
    Keep only pending/confirmed appointments, optionally for one staff member.
    """
    return [
        appt for appt in appointments
        if appt.blocks_time and (staff_id is None or appt.staff_id == staff_id)
    ]


def candidate_range(
    day: date,
    slot: TimeSlot,
    duration_minutes: int,
    timezone: str,
    buffer_before: int = 0,
    buffer_after: int = 0,
) -> TimeRange:
    """
    Absolute interval a booking at ``slot`` would occupy, buffers included:
    [start - buffer_before, start + duration + buffer_after).
    """
    start = slot.start_on(day, timezone)
    return TimeRange(
        start=start.subtract(minutes=buffer_before),
        end=start.add(minutes=duration_minutes + buffer_after),
    )


def has_conflict(
    candidate: TimeRange,
    appointments: Iterable[Appointment],
    buffer_before: int = 0,
) -> bool:
    """Check a candidate interval against every blocking appointment."""
    return any(
        overlaps(candidate.start, candidate.end, appt, buffer_before=buffer_before)
        for appt in blocking_appointments(appointments)
    )


def mark_conflicts(
    slots: List[TimeSlot],
    *,
    day: date,
    staff_id: str,
    appointments: Iterable[Appointment],
    duration_minutes: int,
    timezone: str,
    buffer_before: int = 0,
    buffer_after: int = 0,
) -> List[TimeSlot]:
    """
    Mark every slot that overlaps any blocking appointment of ``staff_id``
    as unavailable and stamp all slots with the staff id.

    The slots are updated in place and returned for convenience.
    """
    relevant = blocking_appointments(appointments, staff_id=staff_id)

    for slot in slots:
        candidate = candidate_range(
            day,
            slot,
            duration_minutes,
            timezone,
            buffer_before=buffer_before,
            buffer_after=buffer_after,
        )
        if has_conflict(candidate, relevant, buffer_before=buffer_before):
            slot.available = False
        slot.staff_id = staff_id

    return slots
