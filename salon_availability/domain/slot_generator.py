"""
Slices a working window into fixed-length bookable slots.

Slots start at the window start and advance by the slot duration, so they
never overlap each other. A trailing remainder shorter than the duration is
dropped rather than offered as a partial slot.
"""

from datetime import date
from typing import Iterable, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from .intervals import overlaps
from .models import Appointment, EmployeeSchedule, TimeRange, TimeSlot, WorkingWindow
from .schedule_resolver import ScheduleResolver

DEFAULT_DURATION_MINUTES = 30

PAST_SLOT = "Past time slot"
BREAK_TIME = "Break time"
ALREADY_BOOKED = "Already booked"
BUFFER_REQUIRED = "Buffer time required"
DAILY_LIMIT_REACHED = "Daily booking limit reached"


def occupying_appointments(
    appointments: Iterable[Appointment],
    employee_id: str,
    time_range: TimeRange,
    exclude_appointment_id: Optional[str] = None,
) -> List[Appointment]:
    """Appointments of ``employee_id`` that hold time overlapping ``time_range``."""
    return sorted(
        (
            appointment
            for appointment in appointments
            if appointment.employee_id == employee_id
            and appointment.status.occupies_time
            and appointment.id != exclude_appointment_id
            and overlaps(appointment.time_range, time_range)
        ),
        key=lambda a: a.scheduled_start,
    )


def day_range(day: date, timezone: str, padding_minutes: int = 0) -> TimeRange:
    """
    Local midnight to midnight of ``day``, widened by ``padding_minutes``.

    With a buffer, appointments just across midnight still block the first
    and last slots of the day, so they have to be part of the lookup.
    """
    start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
    return TimeRange(start=start, end=start.add(days=1)).widen(padding_minutes)


def bookings_on(appointments: Iterable[Appointment], day: date, timezone: str) -> int:
    """Count occupying appointments that start on ``day`` in ``timezone``."""
    return sum(
        1
        for appointment in appointments
        if appointment.status.occupies_time
        and appointment.scheduled_start.in_timezone(timezone).date() == day
    )


class SlotGenerator:
    """Generates annotated slots for one employee and date."""

    def __init__(self, resolver: ScheduleResolver):
        self.resolver = resolver

    def generate_slots(
        self,
        schedule: EmployeeSchedule,
        day: date,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        appointments: Sequence[Appointment] = (),
        price: Optional[float] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[TimeSlot]:
        """
        Generate every slot of ``duration_minutes`` in the day's working window.

        Args:
            schedule: Snapshot of the employee's rules
            day: Calendar date to slice
            duration_minutes: Positive slot length
            appointments: Existing appointments; any that do not belong to the
                employee, do not occupy time or miss the day are ignored
            price: Optional service price attached to every slot
            exclude_appointment_id: Appointment to ignore (re-validating an edit)

        Returns:
            Slots in ascending start order, an empty list on a day off
        """
        if not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be a positive integer, got {duration_minutes!r}")

        window = self.resolver.resolve_working_window(schedule, day)
        if window is None:
            return []

        buffer_minutes = schedule.rules.buffer_minutes
        day_appointments = occupying_appointments(
            appointments,
            schedule.employee_id,
            day_range(day, self.resolver.timezone, buffer_minutes),
            exclude_appointment_id=exclude_appointment_id,
        )
        daily_limit_reached = self._daily_limit_reached(schedule, day, day_appointments)
        earliest = self.resolver.earliest_bookable(schedule)

        slots: List[TimeSlot] = []

        for candidate in self._walk(window, duration_minutes):
            reason = self._unavailable_reason(
                candidate,
                window,
                day_appointments,
                earliest,
                buffer_minutes,
                daily_limit_reached,
            )
            slots.append(
                TimeSlot(
                    time_range=candidate,
                    available=reason is None,
                    reason=reason,
                    price=price,
                )
            )

        return slots

    def _walk(self, window: WorkingWindow, duration_minutes: int) -> List[TimeRange]:
        candidates: List[TimeRange] = []
        current = window.start

        while True:
            slot_end = current.add(minutes=duration_minutes)
            if slot_end > window.end:
                break
            candidates.append(TimeRange(start=current, end=slot_end))
            current = slot_end

        return candidates

    def _unavailable_reason(
        self,
        candidate: TimeRange,
        window: WorkingWindow,
        appointments: Sequence[Appointment],
        earliest: DateTime,
        buffer_minutes: int,
        daily_limit_reached: bool,
    ) -> Optional[str]:
        if candidate.start < earliest:
            return PAST_SLOT

        if any(overlaps(candidate, pause) for pause in window.breaks):
            return BREAK_TIME

        if any(overlaps(candidate, a.time_range) for a in appointments):
            return ALREADY_BOOKED

        if buffer_minutes > 0:
            widened = candidate.widen(buffer_minutes)
            if any(overlaps(widened, a.time_range) for a in appointments):
                return BUFFER_REQUIRED

        if daily_limit_reached:
            return DAILY_LIMIT_REACHED

        return None

    def _daily_limit_reached(
        self,
        schedule: EmployeeSchedule,
        day: date,
        appointments: Sequence[Appointment],
    ) -> bool:
        limit = schedule.rules.max_bookings_per_day
        return limit is not None and bookings_on(appointments, day, self.resolver.timezone) >= limit
