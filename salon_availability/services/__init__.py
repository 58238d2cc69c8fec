"""
Service layer helpers that orchestrate collaborators and domain logic.
"""

from .availability_service import AvailabilityService, EngineSettings
from .boundary import AvailabilityRequestHandler, parse_request
from .providers import AppointmentProvider, ScheduleProvider, ServiceCatalog

__all__ = [
    "AppointmentProvider",
    "AvailabilityRequestHandler",
    "AvailabilityService",
    "EngineSettings",
    "ScheduleProvider",
    "ServiceCatalog",
    "parse_request",
]
