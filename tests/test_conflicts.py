"""
Tests for conflict detection.
"""

from datetime import time

import pendulum

from salonslots.domain.conflicts import (
    blocking_appointments,
    candidate_range,
    has_conflict,
    mark_conflicts,
    overlaps,
)
from salonslots.domain.models import Appointment, AppointmentStatus, DayHours, TimeSlot
from salonslots.domain.slot_generator import generate_slots

TZ = "Europe/Berlin"
MONDAY = pendulum.date(2024, 11, 25)


def _at(hhmm: str):
    return pendulum.parse(f"2024-11-25 {hhmm}", tz=TZ)


def _appointment(start: str, end: str, staff_id: str = "anna", status=AppointmentStatus.CONFIRMED):
    return Appointment(staff_id=staff_id, start_time=_at(start), end_time=_at(end), status=status)


def _full_day_slots():
    return generate_slots(DayHours(open=True, start=time(9, 0), end=time(18, 0)), 60, 15, 15)


class TestOverlaps:
    """Tests for the half-open overlap test."""

    def test_partial_overlap(self):
        appt = _appointment("10:00", "11:15")

        assert overlaps(_at("09:30"), _at("10:45"), appt)
        assert overlaps(_at("11:00"), _at("12:15"), appt)

    def test_containment_both_ways(self):
        appt = _appointment("10:00", "11:15")

        assert overlaps(_at("10:15"), _at("10:30"), appt)
        assert overlaps(_at("09:00"), _at("12:00"), appt)

    def test_touching_intervals_do_not_overlap(self):
        appt = _appointment("10:00", "11:15")

        assert not overlaps(_at("08:45"), _at("10:00"), appt)
        assert not overlaps(_at("11:15"), _at("12:30"), appt)

    def test_buffer_before_widens_the_appointment(self):
        """A booking ending at 10:00 leaves no room when 15 minutes are needed before 10:00."""
        appt = _appointment("10:00", "11:15")

        assert not overlaps(_at("08:45"), _at("10:00"), appt)
        assert overlaps(_at("08:45"), _at("10:00"), appt, buffer_before=15)
        assert not overlaps(_at("08:30"), _at("09:45"), appt, buffer_before=15)

    def test_timezone_independent(self):
        """The same instants compare equal whatever zone they are expressed in."""
        appt = _appointment("10:00", "11:00")
        utc_start = _at("10:30").in_timezone("UTC")

        assert overlaps(utc_start, utc_start.add(minutes=15), appt)


class TestBlockingAppointments:
    """Tests for filtering appointments."""

    def test_cancelled_and_other_staff_are_dropped(self):
        appointments = [
            _appointment("09:00", "10:00"),
            _appointment("10:00", "11:00", status=AppointmentStatus.PENDING),
            _appointment("11:00", "12:00", status=AppointmentStatus.CANCELLED),
            _appointment("12:00", "13:00", staff_id="sofia"),
        ]

        assert len(blocking_appointments(appointments)) == 3
        assert len(blocking_appointments(appointments, staff_id="anna")) == 2


class TestCandidateRange:
    """Tests for the interval a booking would occupy."""

    def test_buffers_extend_both_ends(self):
        slot = TimeSlot(hour=11, minute=0)

        candidate = candidate_range(MONDAY, slot, 60, TZ, buffer_before=10, buffer_after=15)

        assert candidate.start == _at("10:50")
        assert candidate.end == _at("12:15")

    def test_buffer_before_detects_back_to_back_booking(self):
        appointments = [_appointment("10:00", "11:00")]
        slot = TimeSlot(hour=11, minute=0)

        assert not has_conflict(candidate_range(MONDAY, slot, 60, TZ), appointments)
        assert has_conflict(candidate_range(MONDAY, slot, 60, TZ, buffer_before=15), appointments)


class TestMarkConflicts:
    """Tests for marking slots unavailable."""

    def test_confirmed_appointment_blocks_overlapping_slots(self):
        """Any slot whose [start, start + 75) meets [10:00, 11:15) is blocked."""
        slots = mark_conflicts(
            _full_day_slots(),
            day=MONDAY,
            staff_id="anna",
            appointments=[_appointment("10:00", "11:15")],
            duration_minutes=60,
            timezone=TZ,
            buffer_after=15,
        )

        blocked = [slot.label() for slot in slots if not slot.available]
        free = [slot.label() for slot in slots if slot.available]

        assert blocked == [
            "09:00", "09:15", "09:30", "09:45", "10:00",
            "10:15", "10:30", "10:45", "11:00",
        ]
        assert free[0] == "11:15"
        assert free[-1] == "16:45"
        assert all(slot.staff_id == "anna" for slot in slots)

    def test_slot_ending_at_appointment_start_stays_free(self):
        slots = generate_slots(DayHours(open=True, start=time(8, 0), end=time(12, 0)), 60, 15, 15)

        mark_conflicts(
            slots,
            day=MONDAY,
            staff_id="anna",
            appointments=[_appointment("10:00", "11:15")],
            duration_minutes=60,
            timezone=TZ,
            buffer_after=15,
        )
        by_label = {slot.label(): slot.available for slot in slots}

        assert by_label["08:45"] is True
        assert by_label["09:00"] is False

    def test_cancelled_appointment_never_blocks(self):
        slots = mark_conflicts(
            _full_day_slots(),
            day=MONDAY,
            staff_id="anna",
            appointments=[_appointment("09:00", "18:00", status=AppointmentStatus.CANCELLED)],
            duration_minutes=60,
            timezone=TZ,
            buffer_after=15,
        )

        assert all(slot.available for slot in slots)

    def test_other_staff_appointments_are_ignored(self):
        slots = mark_conflicts(
            _full_day_slots(),
            day=MONDAY,
            staff_id="anna",
            appointments=[_appointment("09:00", "18:00", staff_id="sofia")],
            duration_minutes=60,
            timezone=TZ,
            buffer_after=15,
        )

        assert all(slot.available for slot in slots)
