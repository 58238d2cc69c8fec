"""
Shared fixtures: a Monday-to-Friday 09:00-17:00 employee in Europe/Berlin,
observed from a fixed "now" one week before the week under test.
"""

from datetime import time
from typing import Callable, Iterable, Optional

import pendulum
import pytest

from salon_availability.domain.booking_validator import BookingValidator
from salon_availability.domain.day_aggregator import DayAvailabilityAggregator
from salon_availability.domain.models import (
    Appointment,
    AppointmentStatus,
    AvailabilityRuleSet,
    BreakPeriod,
    EmployeeSchedule,
    WorkingHoursRule,
)
from salon_availability.domain.next_available import NextAvailableSearch
from salon_availability.domain.schedule_resolver import ScheduleResolver
from salon_availability.domain.slot_generator import SlotGenerator

TZ = "Europe/Berlin"
EMPLOYEE = "emp-1"


@pytest.fixture
def tz() -> str:
    return TZ


@pytest.fixture
def now():
    """Monday 2024-11-18 08:00, one week before the Monday under test."""
    return pendulum.datetime(2024, 11, 18, 8, 0, tz=TZ)


@pytest.fixture
def monday():
    return pendulum.date(2024, 11, 25)


@pytest.fixture
def make_schedule() -> Callable[..., EmployeeSchedule]:
    """Build a Monday-Friday 09:00-17:00 schedule with optional overrides."""

    def _make(
        rules: Optional[AvailabilityRuleSet] = None,
        blackout_dates: Iterable = (),
        weekdays: Iterable[int] = range(5),
        start: time = time(9, 0),
        end: time = time(17, 0),
        breaks: Iterable[BreakPeriod] = (),
    ) -> EmployeeSchedule:
        return EmployeeSchedule(
            employee_id=EMPLOYEE,
            working_hours=tuple(
                WorkingHoursRule(
                    employee_id=EMPLOYEE,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                    breaks=tuple(breaks),
                )
                for day in weekdays
            ),
            rules=rules or AvailabilityRuleSet(),
            blackout_dates=frozenset(blackout_dates),
        )

    return _make


@pytest.fixture
def make_appointment() -> Callable[..., Appointment]:
    """Build an appointment from ``YYYY-MM-DD HH:mm`` strings."""
    counter = iter(range(1, 10_000))

    def _make(
        start: str,
        end: str,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        employee_id: str = EMPLOYEE,
        appointment_id: Optional[str] = None,
    ) -> Appointment:
        return Appointment(
            id=appointment_id or f"apt-{next(counter)}",
            employee_id=employee_id,
            scheduled_start=pendulum.parse(start, tz=TZ),
            scheduled_end=pendulum.parse(end, tz=TZ),
            status=status,
        )

    return _make


@pytest.fixture
def resolver(now) -> ScheduleResolver:
    return ScheduleResolver(timezone=TZ, now=now)


@pytest.fixture
def generator(resolver) -> SlotGenerator:
    return SlotGenerator(resolver)


@pytest.fixture
def aggregator(generator) -> DayAvailabilityAggregator:
    return DayAvailabilityAggregator(generator)


@pytest.fixture
def validator(generator) -> BookingValidator:
    return BookingValidator(generator, suggestion_limit=5, suggestion_days=7)


@pytest.fixture
def search(aggregator) -> NextAvailableSearch:
    return NextAvailableSearch(aggregator)
