"""
Application service for employee availability and booking validation.

The service fetches one read-only snapshot from each collaborator (schedule,
appointments, service catalog) and hands it to the pure domain engine. It
holds no state between calls, so concurrent calls for different employees or
dates never interfere. Collaborator failures propagate unchanged: computing
availability against a missing appointment set could report a booked slot
as free.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from ..domain.booking_validator import BookingValidator
from ..domain.day_aggregator import DayAvailabilityAggregator
from ..domain.models import (
    Appointment,
    AvailabilitySummary,
    DayAvailability,
    DayStatus,
    EmployeeSchedule,
    NextAvailableResult,
    Service,
    TimeSlot,
    ValidationResult,
)
from ..domain.next_available import NextAvailableSearch
from ..domain.schedule_resolver import ScheduleResolver
from ..domain.slot_generator import SlotGenerator, day_range
from .providers import AppointmentProvider, ScheduleProvider, ServiceCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Tunables shared by every engine run."""
    timezone: str = "Europe/Berlin"
    default_duration_minutes: int = 30
    horizon_days: int = 30
    suggestion_limit: int = 5
    suggestion_days: int = 7


@dataclass
class _Engine:
    resolver: ScheduleResolver
    slot_generator: SlotGenerator
    aggregator: DayAvailabilityAggregator
    validator: BookingValidator
    search: NextAvailableSearch


class AvailabilityService:
    """
    Orchestrates collaborator lookups and the availability engine.

    Dependency inversion toward protocols makes it easy to plug in the JSON
    store, the HTTP backend client or simple stubs in tests.
    """

    def __init__(
        self,
        schedule_provider: ScheduleProvider,
        appointment_provider: AppointmentProvider,
        service_catalog: Optional[ServiceCatalog] = None,
        settings: Optional[EngineSettings] = None,
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._schedule_provider = schedule_provider
        self._appointment_provider = appointment_provider
        self._service_catalog = service_catalog
        self._settings = settings or EngineSettings()
        self._clock = clock or (lambda: pendulum.now(self._settings.timezone))

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def today(self) -> date:
        return self._clock().in_timezone(self._settings.timezone).date()

    async def get_employee_availability(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
        service_id: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> List[DayAvailability]:
        """One ``DayAvailability`` per day of ``[start_date, end_date]``."""
        engine = self._build_engine()
        schedule = await self._schedule_provider.get_employee_schedule(employee_id)
        service = await self._lookup_service(service_id)
        appointments = await self._fetch_appointments(schedule, start_date, end_date)

        return engine.aggregator.get_employee_availability(
            schedule,
            start_date,
            end_date,
            duration_minutes=self._resolve_duration(duration, service, schedule),
            appointments=appointments,
            price=self._price(service),
        )

    async def get_time_slots(
        self,
        employee_id: str,
        day: date,
        service_id: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> List[TimeSlot]:
        """Every slot of ``day`` with its availability and optional price."""
        engine = self._build_engine()
        schedule = await self._schedule_provider.get_employee_schedule(employee_id)
        service = await self._lookup_service(service_id)
        appointments = await self._fetch_appointments(schedule, day, day)

        return engine.slot_generator.generate_slots(
            schedule,
            day,
            duration_minutes=self._resolve_duration(duration, service, schedule),
            appointments=appointments,
            price=self._price(service),
        )

    async def validate_booking(
        self,
        employee_id: str,
        service_id: Optional[str],
        scheduled_start: DateTime,
        scheduled_end: DateTime,
        exclude_appointment_id: Optional[str] = None,
    ) -> ValidationResult:
        """Check a proposed booking; conflicts come back with suggestions."""
        engine = self._build_engine()
        schedule = await self._schedule_provider.get_employee_schedule(employee_id)
        service = await self._lookup_service(service_id)

        first_day = scheduled_start.in_timezone(self._settings.timezone).date()
        last_day = first_day + timedelta(days=self._settings.suggestion_days)
        appointments = await self._fetch_appointments(schedule, first_day, last_day)

        result = engine.validator.validate_booking(
            schedule,
            scheduled_start,
            scheduled_end,
            appointments=appointments,
            exclude_appointment_id=exclude_appointment_id,
            price=self._price(service),
        )

        logger.debug(
            "Validated booking for %s at %s: valid=%s reason=%s",
            employee_id,
            scheduled_start,
            result.valid,
            result.reason,
        )
        return result

    async def find_next_available(
        self,
        employee_id: str,
        service_id: Optional[str] = None,
        duration: Optional[int] = None,
        horizon_days: Optional[int] = None,
    ) -> NextAvailableResult:
        """First open slot from today within the search horizon."""
        engine = self._build_engine()
        schedule = await self._schedule_provider.get_employee_schedule(employee_id)
        service = await self._lookup_service(service_id)
        return await self._find_next_available(engine, schedule, service, duration, horizon_days)

    async def get_availability_summary(
        self,
        employee_id: str,
        day: Optional[date] = None,
    ) -> AvailabilitySummary:
        """Working flag, slot counts and utilization for one day."""
        engine = self._build_engine()
        day = day or engine.resolver.today
        schedule = await self._schedule_provider.get_employee_schedule(employee_id)
        appointments = await self._fetch_appointments(schedule, day, day)

        day_availability = engine.aggregator.day_availability(
            schedule,
            day,
            duration_minutes=self._resolve_duration(None, None, schedule),
            appointments=appointments,
        )

        booked_slots = day_availability.total_slots - day_availability.available_slots
        utilization_rate = 0.0
        if day_availability.total_slots > 0:
            utilization_rate = round(booked_slots / day_availability.total_slots * 100, 2)

        next_available = None
        if day_availability.available_slots == 0:
            result = await self._find_next_available(engine, schedule, None, None, None)
            next_available = result.next_slot

        return AvailabilitySummary(
            employee_id=employee_id,
            date=day_availability.date,
            is_working=day_availability.status != DayStatus.UNAVAILABLE,
            total_slots=day_availability.total_slots,
            available_slots=day_availability.available_slots,
            booked_slots=booked_slots,
            utilization_rate=utilization_rate,
            next_available=next_available,
        )

    async def _find_next_available(
        self,
        engine: _Engine,
        schedule: EmployeeSchedule,
        service: Optional[Service],
        duration: Optional[int],
        horizon_days: Optional[int],
    ) -> NextAvailableResult:
        horizon = horizon_days or self._settings.horizon_days
        first_day = engine.resolver.today
        last_day = first_day + timedelta(days=horizon - 1)
        appointments = await self._fetch_appointments(schedule, first_day, last_day)

        return engine.search.find_next_available(
            schedule,
            duration_minutes=self._resolve_duration(duration, service, schedule),
            appointments=appointments,
            horizon_days=horizon,
            price=self._price(service),
            start_date=first_day,
        )

    def _build_engine(self) -> _Engine:
        resolver = ScheduleResolver(timezone=self._settings.timezone, now=self._clock())
        slot_generator = SlotGenerator(resolver)
        aggregator = DayAvailabilityAggregator(slot_generator)
        return _Engine(
            resolver=resolver,
            slot_generator=slot_generator,
            aggregator=aggregator,
            validator=BookingValidator(
                slot_generator,
                suggestion_limit=self._settings.suggestion_limit,
                suggestion_days=self._settings.suggestion_days,
            ),
            search=NextAvailableSearch(aggregator),
        )

    async def _lookup_service(self, service_id: Optional[str]) -> Optional[Service]:
        if not service_id or self._service_catalog is None:
            return None

        service = await self._service_catalog.get_service(service_id)
        if service is None:
            logger.warning("Service %s not found in catalog; using default duration", service_id)
        return service

    async def _fetch_appointments(
        self,
        schedule: EmployeeSchedule,
        first_day: date,
        last_day: date,
    ) -> Sequence[Appointment]:
        """Appointments for the day range, padded by the buffer on both sides."""
        tz = self._settings.timezone
        buffer_minutes = schedule.rules.buffer_minutes
        start = day_range(first_day, tz, buffer_minutes).start
        end = day_range(last_day, tz, buffer_minutes).end

        appointments = await self._appointment_provider.get_appointments(
            employee_id=schedule.employee_id,
            start_time=start,
            end_time=end,
        )
        logger.debug(
            "Fetched %d appointment(s) for %s between %s and %s",
            len(appointments),
            schedule.employee_id,
            first_day,
            last_day,
        )
        return appointments

    def _resolve_duration(
        self,
        duration: Optional[int],
        service: Optional[Service],
        schedule: EmployeeSchedule,
    ) -> int:
        """Explicit duration, then service default, then slot granularity, then config."""
        if duration is not None:
            return duration
        if service is not None and service.duration_minutes:
            return service.duration_minutes
        if schedule.rules.slot_granularity_minutes:
            return schedule.rules.slot_granularity_minutes
        return self._settings.default_duration_minutes

    @staticmethod
    def _price(service: Optional[Service]) -> Optional[float]:
        return service.base_price if service is not None else None
