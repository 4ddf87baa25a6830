"""
Service layer helpers that orchestrate stores and domain logic.
"""

from .availability import AvailabilityService
from .booking import BookingRequest, BookingService, generate_confirmation_code
from .protocols import AppointmentStoreProtocol, NotifierProtocol, SalonCatalogProtocol
from .staff_assigner import StaffAutoAssigner

__all__ = [
    "AppointmentStoreProtocol",
    "AvailabilityService",
    "BookingRequest",
    "BookingService",
    "NotifierProtocol",
    "SalonCatalogProtocol",
    "StaffAutoAssigner",
    "generate_confirmation_code",
]
