"""
Domain models for schedule resolution, slot generation and booking validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import pendulum
from pendulum import DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

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
        """Check if this range overlaps with another. Touching ranges do not."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        """Check if ``other`` lies completely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def widen(self, minutes: int) -> "TimeRange":
        """Return a copy extended by ``minutes`` on both sides."""
        return TimeRange(
            start=self.start.subtract(minutes=minutes),
            end=self.end.add(minutes=minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


def combine(day: date, wall_time: time, timezone: str) -> DateTime:
    """Anchor a wall-clock time to a calendar date in ``timezone``."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        wall_time.hour,
        wall_time.minute,
        tz=timezone,
    )


@dataclass(frozen=True)
class BreakPeriod:
    """A wall-clock pause inside a working day (e.g. lunch)."""
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Break start {self.start_time} must be before break end {self.end_time}"
            )


@dataclass(frozen=True)
class WorkingHoursRule:
    """
    Weekly working hours for one weekday.

    ``day_of_week`` follows ``date.weekday()``: 0=Monday, 6=Sunday.
    """
    employee_id: str
    day_of_week: int
    start_time: time
    end_time: time
    breaks: Tuple[BreakPeriod, ...] = ()

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )


@dataclass(frozen=True)
class AvailabilityException:
    """
    Date-range override of the weekly working hours.

    Without times the employee is off for the whole range. With times the
    working window of every covered date is replaced by ``[start_time, end_time]``.
    """
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Exception end date {self.end_date} is before start date {self.start_date}"
            )
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("Exception start_time and end_time must be given together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError(
                f"Start time {self.start_time} must be before end time {self.end_time}"
            )

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def closes_day(self) -> bool:
        return self.start_time is None


@dataclass(frozen=True)
class AvailabilityRuleSet:
    """Per-employee booking rules layered on top of the weekly hours."""
    exceptions: Tuple[AvailabilityException, ...] = ()
    min_notice_hours: int = 0
    max_advance_days: Optional[int] = None
    slot_granularity_minutes: Optional[int] = None
    buffer_minutes: int = 0
    max_bookings_per_day: Optional[int] = None

    def __post_init__(self):
        if self.min_notice_hours < 0:
            raise ValueError("min_notice_hours must not be negative")
        if self.buffer_minutes < 0:
            raise ValueError("buffer_minutes must not be negative")
        if self.max_advance_days is not None and self.max_advance_days < 0:
            raise ValueError("max_advance_days must not be negative")
        if self.slot_granularity_minutes is not None and self.slot_granularity_minutes <= 0:
            raise ValueError("slot_granularity_minutes must be greater than zero")
        if self.max_bookings_per_day is not None and self.max_bookings_per_day <= 0:
            raise ValueError("max_bookings_per_day must be greater than zero")

    def exception_for(self, day: date) -> Optional[AvailabilityException]:
        """Return the last exception covering ``day``; later entries win."""
        match = None
        for exception in self.exceptions:
            if exception.covers(day):
                match = exception
        return match


@dataclass(frozen=True)
class EmployeeSchedule:
    """
    Read-only snapshot of everything that shapes an employee's working days.

    The engine never queries a store mid-computation; callers fetch one of
    these up front and pass it in.
    """
    employee_id: str
    working_hours: Tuple[WorkingHoursRule, ...] = ()
    rules: AvailabilityRuleSet = field(default_factory=AvailabilityRuleSet)
    blackout_dates: FrozenSet[date] = frozenset()

    def rule_for_weekday(self, weekday: int) -> Optional[WorkingHoursRule]:
        for rule in self.working_hours:
            if rule.day_of_week == weekday:
                return rule
        return None

    def is_blackout(self, day: date) -> bool:
        return day in self.blackout_dates


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def occupies_time(self) -> bool:
        return self not in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


@dataclass(frozen=True)
class Appointment:
    """An existing booking as supplied by the appointment provider."""
    id: str
    employee_id: str
    scheduled_start: DateTime
    scheduled_end: DateTime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    service_id: Optional[str] = None

    def __post_init__(self):
        if self.scheduled_start >= self.scheduled_end:
            raise ValueError(
                f"Appointment {self.id}: start {self.scheduled_start} "
                f"must be before end {self.scheduled_end}"
            )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.scheduled_start, end=self.scheduled_end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "service_id": self.service_id,
            "scheduled_start": self.scheduled_start.to_iso8601_string(),
            "scheduled_end": self.scheduled_end.to_iso8601_string(),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Service:
    """Service catalog entry."""
    id: str
    name: str = ""
    duration_minutes: Optional[int] = None
    base_price: Optional[float] = None


@dataclass(frozen=True)
class WorkingWindow:
    """The resolved working interval of one date, with its breaks."""
    date: date
    time_range: TimeRange
    breaks: Tuple[TimeRange, ...] = ()

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    def free_intervals(self) -> List[TimeRange]:
        """The window with its breaks removed."""
        from .intervals import subtract

        return subtract(self.time_range, self.breaks)


class DayStatus(str, Enum):
    WORKING = "working"
    UNAVAILABLE = "unavailable"
    FULLY_BOOKED = "fully_booked"


@dataclass(frozen=True)
class TimeSlot:
    """
    A generated, fixed-length bookable slot.

    Slots are a view over the schedule and are never persisted.
    """
    time_range: TimeRange
    available: bool
    reason: Optional[str] = None
    price: Optional[float] = None

    @property
    def start(self) -> DateTime:
        return self.time_range.start

    @property
    def end(self) -> DateTime:
        return self.time_range.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.start.format("YYYY-MM-DD"),
            "start_time": self.start.format("HH:mm"),
            "end_time": self.end.format("HH:mm"),
            "available": self.available,
            "reason": self.reason,
            "price": self.price,
        }


@dataclass(frozen=True)
class DayAvailability:
    date: date
    status: DayStatus
    total_slots: int
    available_slots: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "status": self.status.value,
            "total_slots": self.total_slots,
            "available_slots": self.available_slots,
        }


@dataclass
class ValidationResult:
    valid: bool
    conflicts: List[Appointment] = field(default_factory=list)
    suggestions: List[TimeSlot] = field(default_factory=list)
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "conflicts": [appointment.to_dict() for appointment in self.conflicts],
            "suggestions": [slot.to_dict() for slot in self.suggestions],
            "reason": self.reason,
        }


@dataclass
class NextAvailableResult:
    available: bool
    next_slot: Optional[TimeSlot] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "next_slot": self.next_slot.to_dict() if self.next_slot else None,
            "reason": self.reason,
        }


@dataclass
class AvailabilitySummary:
    employee_id: str
    date: date
    is_working: bool
    total_slots: int
    available_slots: int
    booked_slots: int
    utilization_rate: float
    next_available: Optional[TimeSlot] = None

    def to_dict(self) -> Dict[str, Any]:
        next_available = None
        if self.next_available is not None:
            next_available = {
                "date": self.next_available.start.format("YYYY-MM-DD"),
                "time": self.next_available.start.format("HH:mm"),
            }
        return {
            "employee_id": self.employee_id,
            "date": self.date.isoformat(),
            "is_working": self.is_working,
            "total_slots": self.total_slots,
            "available_slots": self.available_slots,
            "booked_slots": self.booked_slots,
            "utilization_rate": self.utilization_rate,
            "next_available": next_available,
        }
