"""
Domain models for opening hours, slots and appointments.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Dict, Mapping

import pendulum
from pendulum import DateTime


WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def weekday_name(day: date) -> str:
    """Return the lowercase English weekday name of a date."""
    return WEEKDAY_NAMES[day.weekday()]


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range shares at least one instant with another."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class DaySchedule:
    """
    Configured opening hours for one weekday.

    ``start`` and ``end`` are zero-padded 24h "HH:MM" strings and are ignored
    when ``open`` is false.
    """
    open: bool
    start: str = ""
    end: str = ""


@dataclass(frozen=True)
class DayHours:
    """Resolved open/closed status and window for a calendar date."""
    open: bool
    start: time | None = None
    end: time | None = None

    @classmethod
    def closed(cls) -> "DayHours":
        return cls(open=False)

    def length_minutes(self) -> int:
        """Length of the open window in minutes (0 when closed)."""
        if not self.open or self.start is None or self.end is None:
            return 0
        return minutes_of_day(self.end) - minutes_of_day(self.start)

    def to_range(self, day: date, timezone: str) -> TimeRange | None:
        """
        Anchor the window to a calendar date in the given timezone.
        Returns None if closed or empty.
        """
        if self.length_minutes() <= 0:
            return None

        start = pendulum.datetime(
            day.year, day.month, day.day,
            self.start.hour, self.start.minute,
            tz=timezone,
        )
        end = pendulum.datetime(
            day.year, day.month, day.day,
            self.end.hour, self.end.minute,
            tz=timezone,
        )
        return TimeRange(start=start, end=end)


def minutes_of_day(value: time) -> int:
    """Minutes elapsed since midnight."""
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class BusinessSettings:
    """
    Salon-wide scheduling configuration, passed explicitly to every
    availability computation.
    """
    working_hours: Mapping[str, DaySchedule]
    appointment_buffer: int = 0
    buffer_before: int = 0
    slot_granularity: int = 15
    min_appointment_notice: int = 0
    timezone: str = "Europe/Berlin"


@dataclass(frozen=True)
class Service:
    """
    A bookable salon service.

    ``buffer_minutes`` overrides the global appointment buffer when set.
    """
    id: str
    duration_minutes: int
    buffer_minutes: int | None = None
    name: str = ""

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError(f"Service {self.id} must have a positive duration")
        if self.buffer_minutes is not None and self.buffer_minutes < 0:
            raise ValueError(f"Service {self.id} must not have a negative buffer")

    def effective_buffer(self, settings: BusinessSettings) -> int:
        """Buffer in minutes that follows each booking of this service."""
        if self.buffer_minutes is None:
            return settings.appointment_buffer
        return self.buffer_minutes


@dataclass
class TimeSlot:
    """
    One candidate start time at the generation granularity.

    Only the conflict detection step flips ``available``.
    """
    hour: int
    minute: int
    available: bool = True
    staff_id: str | None = None

    def label(self) -> str:
        """Format as zero-padded HH:MM."""
        return f"{self.hour:02d}:{self.minute:02d}"

    def start_on(self, day: date, timezone: str) -> DateTime:
        """Absolute start of this slot on a given date."""
        return pendulum.datetime(day.year, day.month, day.day, self.hour, self.minute, tz=timezone)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "hour": self.hour,
            "minute": self.minute,
            "available": self.available,
        }
        if self.staff_id is not None:
            data["staffId"] = self.staff_id
        return data


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def blocks_time(self) -> bool:
        """Whether appointments in this status take part in conflict checks."""
        return self is not AppointmentStatus.CANCELLED


@dataclass
class Appointment:
    """
    A stored booking of one staff member for ``[start_time, end_time)``.

    ``end_time`` closes the whole block the staff member is busy: service
    duration plus the after-buffer.
    """
    staff_id: str
    start_time: DateTime
    end_time: DateTime
    status: AppointmentStatus = AppointmentStatus.PENDING
    id: str | None = None
    service_id: str | None = None
    confirmation_code: str | None = None
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    notes: str | None = None
    created_at: DateTime = field(default_factory=lambda: pendulum.now("UTC"))

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Appointment start {self.start_time} must be before end {self.end_time}"
            )
        self.status = AppointmentStatus(self.status)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)

    @property
    def blocks_time(self) -> bool:
        return self.status.blocks_time
