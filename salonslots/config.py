"""
Configuration management using Pydantic models loaded from YAML.
"""

import re
from pathlib import Path
from typing import Dict, List

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WEEKDAY_NAMES, BusinessSettings, DaySchedule, Service
from .domain.slot_generator import DEFAULT_GRANULARITY_MINUTES, validate_granularity

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayScheduleConfig(BaseModel):
    """
    Opening hours of one weekday.

    Start and end are ignored on closed days and may be blank there.
    """
    open: bool = False
    start: str | None = "09:00"
    end: str | None = "18:00"

    @model_validator(mode="after")
    def validate_hours(self) -> "DayScheduleConfig":
        """Ensure an open day has zero-padded HH:MM times and opens before it closes."""
        if not self.open:
            return self
        for value in (self.start, self.end):
            if value is None or not _HHMM.match(value):
                raise ValueError(f"Time must be zero-padded HH:MM, got '{value}'")
        if self.start >= self.end:
            raise ValueError(f"start {self.start} must be before end {self.end}")
        return self

    def to_domain(self) -> DaySchedule:
        return DaySchedule(open=self.open, start=self.start or "", end=self.end or "")


class BusinessSettingsConfig(BaseModel):
    """Salon-wide scheduling settings."""
    working_hours: Dict[str, DayScheduleConfig] = Field(default_factory=dict)
    appointment_buffer: int = Field(default=0, ge=0)
    buffer_before: int = Field(default=0, ge=0)
    slot_granularity: int = DEFAULT_GRANULARITY_MINUTES
    min_appointment_notice: int = Field(default=0, ge=0)
    timezone: str = "Europe/Berlin"

    @field_validator("working_hours", mode="before")
    @classmethod
    def normalize_weekdays(cls, value):
        """Lower-case weekday keys and reject unknown names."""
        if not isinstance(value, dict):
            return value
        normalized = {}
        for key, schedule in value.items():
            name = str(key).strip().lower()
            if name not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday '{key}'")
            normalized[name] = schedule
        return normalized

    @field_validator("slot_granularity")
    @classmethod
    def validate_slot_granularity(cls, value: int) -> int:
        return validate_granularity(value)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value

    def to_business_settings(self) -> BusinessSettings:
        """Build the immutable domain settings object."""
        return BusinessSettings(
            working_hours={day: schedule.to_domain() for day, schedule in self.working_hours.items()},
            appointment_buffer=self.appointment_buffer,
            buffer_before=self.buffer_before,
            slot_granularity=self.slot_granularity,
            min_appointment_notice=self.min_appointment_notice,
            timezone=self.timezone,
        )


class ServiceConfig(BaseModel):
    """A service offered by the salon."""
    id: str
    name: str = ""
    duration_minutes: int = Field(gt=0)
    buffer_minutes: int | None = Field(default=None, ge=0)
    price: float = 0.0
    category: str = ""

    def to_domain(self) -> Service:
        return Service(
            id=self.id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            buffer_minutes=self.buffer_minutes,
        )


class StaffConfig(BaseModel):
    """A staff member and the services they perform."""
    id: str
    name: str = ""
    services: List[str] = Field(default_factory=list)


class SupabaseConfig(BaseModel):
    """Connection settings for the Supabase REST API."""
    url: str
    api_key: str
    timeout: int = Field(default=30, gt=0)


class SalonConfig(BaseModel):
    """Application configuration."""
    business: BusinessSettingsConfig = Field(default_factory=BusinessSettingsConfig)
    services: List[ServiceConfig] = Field(default_factory=list)
    staff: List[StaffConfig] = Field(default_factory=list)
    supabase: SupabaseConfig | None = None
    log_level: str = "INFO"

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceConfig]) -> List[ServiceConfig]:
        """Ensure service ids are unique."""
        seen: set[str] = set()
        for service in value:
            if service.id in seen:
                raise ValueError(f"Duplicate service id detected: {service.id}")
            seen.add(service.id)
        return value

    @field_validator("staff")
    @classmethod
    def validate_staff(cls, value: List[StaffConfig]) -> List[StaffConfig]:
        """Ensure staff ids are unique."""
        seen: set[str] = set()
        for member in value:
            if member.id in seen:
                raise ValueError(f"Duplicate staff id detected: {member.id}")
            seen.add(member.id)
        return value

    @model_validator(mode="after")
    def validate_staff_services(self) -> "SalonConfig":
        """Ensure staff only reference configured services."""
        known = {service.id for service in self.services}
        for member in self.staff:
            unknown = [sid for sid in member.services if sid not in known]
            if unknown:
                raise ValueError(f"Staff {member.id} references unknown services: {unknown}")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "SalonConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            SalonConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_service(self, service_id: str) -> ServiceConfig | None:
        for service in self.services:
            if service.id == service_id:
                return service
        return None


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of salonslots/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
