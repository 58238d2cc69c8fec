"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .booking_validator import BookingValidator
from .day_aggregator import DayAvailabilityAggregator
from .models import (
    Appointment,
    AppointmentStatus,
    AvailabilityException,
    AvailabilityRuleSet,
    AvailabilitySummary,
    BreakPeriod,
    DayAvailability,
    DayStatus,
    EmployeeSchedule,
    NextAvailableResult,
    Service,
    TimeRange,
    TimeSlot,
    ValidationResult,
    WorkingHoursRule,
    WorkingWindow,
)
from .next_available import NextAvailableSearch
from .schedule_resolver import ScheduleResolver
from .slot_generator import SlotGenerator

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AvailabilityException",
    "AvailabilityRuleSet",
    "AvailabilitySummary",
    "BookingValidator",
    "BreakPeriod",
    "DayAvailability",
    "DayAvailabilityAggregator",
    "DayStatus",
    "EmployeeSchedule",
    "NextAvailableResult",
    "NextAvailableSearch",
    "ScheduleResolver",
    "Service",
    "SlotGenerator",
    "TimeRange",
    "TimeSlot",
    "ValidationResult",
    "WorkingHoursRule",
    "WorkingWindow",
]
