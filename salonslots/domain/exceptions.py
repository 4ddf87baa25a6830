"""
Domain-specific exception hierarchy for salon scheduling.
"""

from pendulum import DateTime


class SalonSchedulingError(Exception):
    """Base class for all application-level errors."""

    retryable = False


class ConfigurationMissing(SalonSchedulingError):
    """Raised when business settings or a service definition cannot be used."""


class NoQualifiedStaff(SalonSchedulingError):
    """Raised when no staff member is qualified for the requested service."""


class NoStaffAvailable(SalonSchedulingError):
    """Raised when every qualified staff member is busy at the requested time."""


class SlotUnavailable(SalonSchedulingError):
    """Raised when a requested slot is outside hours, too soon or already booked."""


class OverlapDetected(SalonSchedulingError):
    """
    Raised by an appointment store when an insert would overlap an existing
    pending or confirmed appointment of the same staff member.

    Callers should ask the client to pick another slot.
    """

    retryable = True

    def __init__(self, staff_id: str, start: DateTime, end: DateTime):
        self.staff_id = staff_id
        self.start = start
        self.end = end
        super().__init__(
            f"This slot was just taken, pick another "
            f"(staff {staff_id}, {start.to_iso8601_string()} - {end.to_iso8601_string()})"
        )


class AppointmentNotFound(SalonSchedulingError):
    """Raised when an appointment id does not exist."""


class InvalidStatusTransition(SalonSchedulingError):
    """Raised when an appointment cannot move to the requested status."""


class StoreError(SalonSchedulingError):
    """Raised when salon data cannot be fetched or written."""
