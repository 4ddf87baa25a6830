"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .conflicts import blocking_appointments, candidate_range, has_conflict, mark_conflicts, overlaps
from .models import (
    Appointment,
    AppointmentStatus,
    BusinessSettings,
    DayHours,
    DaySchedule,
    Service,
    TimeRange,
    TimeSlot,
)
from .slot_generator import generate_slots
from .working_hours import parse_hhmm, resolve_working_hours

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "BusinessSettings",
    "DayHours",
    "DaySchedule",
    "Service",
    "TimeRange",
    "TimeSlot",
    "blocking_appointments",
    "candidate_range",
    "generate_slots",
    "has_conflict",
    "mark_conflicts",
    "overlaps",
    "parse_hhmm",
    "resolve_working_hours",
]
