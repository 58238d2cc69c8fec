"""
Validation of a proposed booking against the resolved schedule and the
existing appointments.

Validation is read-only. Two concurrent validations may both report the same
interval as free; the write path has to enforce the overlap constraint when
it commits the appointment.
"""

import math
from datetime import timedelta
from typing import List, Optional, Sequence

from pendulum import DateTime

from .intervals import contains
from .models import Appointment, EmployeeSchedule, TimeRange, TimeSlot, ValidationResult
from .slot_generator import SlotGenerator, bookings_on, occupying_appointments

OUTSIDE_WORKING_HOURS = "outside working hours"
UNAVAILABLE_ON_DATE = "Employee is unavailable on this date"
OVERLAPS_BREAK = "Time overlaps a scheduled break"
ALREADY_BOOKED = "Time slot is already booked"
DAILY_LIMIT = "Daily booking limit reached"
IN_THE_PAST = "Cannot book a time in the past"


class BookingValidator:
    """
    Checks a proposed ``[start, end)`` interval for one employee.

    When the interval collides with existing appointments the result carries
    the conflicting appointments and up to ``suggestion_limit`` alternative
    slots, closest to the requested start first (ties go to the later slot).
    Same-day alternatives come before slots on the following
    ``suggestion_days`` days.
    """

    def __init__(
        self,
        slot_generator: SlotGenerator,
        suggestion_limit: int = 5,
        suggestion_days: int = 7,
    ):
        self.slot_generator = slot_generator
        self.suggestion_limit = suggestion_limit
        self.suggestion_days = suggestion_days

    @property
    def resolver(self):
        return self.slot_generator.resolver

    def validate_booking(
        self,
        schedule: EmployeeSchedule,
        start: DateTime,
        end: DateTime,
        appointments: Sequence[Appointment] = (),
        exclude_appointment_id: Optional[str] = None,
        price: Optional[float] = None,
    ) -> ValidationResult:
        requested = TimeRange(
            start=start.in_timezone(self.resolver.timezone),
            end=end.in_timezone(self.resolver.timezone),
        )
        day = requested.start.date()
        rules = schedule.rules

        if schedule.is_blackout(day):
            return ValidationResult(valid=False, reason=UNAVAILABLE_ON_DATE)

        if self.resolver.is_beyond_advance_horizon(schedule, day):
            return ValidationResult(
                valid=False,
                reason=f"Bookings can only be made {rules.max_advance_days} days in advance",
            )

        window = self.resolver.resolve_working_window(schedule, day)
        if window is None or not contains(window.time_range, requested):
            return ValidationResult(valid=False, reason=OUTSIDE_WORKING_HOURS)

        if not any(contains(free, requested) for free in window.free_intervals()):
            return ValidationResult(valid=False, reason=OVERLAPS_BREAK)

        if requested.start < self.resolver.earliest_bookable(schedule):
            if rules.min_notice_hours:
                reason = f"Bookings require at least {rules.min_notice_hours} hour(s) advance notice"
            else:
                reason = IN_THE_PAST
            return ValidationResult(valid=False, reason=reason)

        blocking_range = requested.widen(rules.buffer_minutes) if rules.buffer_minutes else requested
        conflicts = occupying_appointments(
            appointments,
            schedule.employee_id,
            blocking_range,
            exclude_appointment_id=exclude_appointment_id,
        )

        if conflicts:
            return ValidationResult(
                valid=False,
                conflicts=conflicts,
                suggestions=self.suggest_alternatives(
                    schedule,
                    requested,
                    appointments,
                    exclude_appointment_id=exclude_appointment_id,
                    price=price,
                ),
                reason=ALREADY_BOOKED,
            )

        if rules.max_bookings_per_day is not None:
            others = [
                appointment
                for appointment in appointments
                if appointment.employee_id == schedule.employee_id
                and appointment.id != exclude_appointment_id
            ]
            if bookings_on(others, day, self.resolver.timezone) >= rules.max_bookings_per_day:
                return ValidationResult(valid=False, reason=DAILY_LIMIT)

        return ValidationResult(valid=True)

    def suggest_alternatives(
        self,
        schedule: EmployeeSchedule,
        requested: TimeRange,
        appointments: Sequence[Appointment],
        exclude_appointment_id: Optional[str] = None,
        price: Optional[float] = None,
    ) -> List[TimeSlot]:
        """Nearest open slots of the requested length, same day first."""
        # Round partial minutes up; slots are whole minutes long
        seconds = (requested.end - requested.start).total_seconds()
        duration = max(1, math.ceil(seconds / 60))
        day = requested.start.date()

        same_day = self._open_slots(schedule, day, duration, appointments, exclude_appointment_id, price)
        same_day.sort(
            key=lambda slot: (
                abs((slot.start - requested.start).total_seconds()),
                slot.start < requested.start,
            )
        )
        suggestions = same_day[: self.suggestion_limit]

        offset = 1
        while len(suggestions) < self.suggestion_limit and offset <= self.suggestion_days:
            later_day = day + timedelta(days=offset)
            remaining = self.suggestion_limit - len(suggestions)
            suggestions.extend(
                self._open_slots(
                    schedule, later_day, duration, appointments, exclude_appointment_id, price
                )[:remaining]
            )
            offset += 1

        return suggestions

    def _open_slots(
        self,
        schedule: EmployeeSchedule,
        day,
        duration: int,
        appointments: Sequence[Appointment],
        exclude_appointment_id: Optional[str],
        price: Optional[float],
    ) -> List[TimeSlot]:
        slots = self.slot_generator.generate_slots(
            schedule,
            day,
            duration_minutes=duration,
            appointments=appointments,
            price=price,
            exclude_appointment_id=exclude_appointment_id,
        )
        return [slot for slot in slots if slot.available]
