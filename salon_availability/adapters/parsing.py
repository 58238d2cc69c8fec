"""
Conversion of raw JSON records (file store or backend API) into domain models.

Malformed records raise ``ProviderError`` instead of being skipped: dropping
an appointment would make its time look free.
"""

from datetime import date, time
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import ProviderError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    AvailabilityException,
    AvailabilityRuleSet,
    BreakPeriod,
    EmployeeSchedule,
    Service,
    WorkingHoursRule,
)


def parse_time(value: Any) -> time:
    """Parse a wall-clock ``HH:MM`` value."""
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError as exc:
        raise ProviderError(f"Invalid time value: {value!r}") from exc


def parse_date(value: Any) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    try:
        parsed = pendulum.parse(str(value), exact=True)
    except ValueError as exc:
        raise ProviderError(f"Invalid date value: {value!r}") from exc
    if isinstance(parsed, DateTime):
        return parsed.date()
    if not isinstance(parsed, date):
        raise ProviderError(f"Invalid date value: {value!r}")
    return parsed


def parse_datetime(value: Any, timezone: str) -> DateTime:
    """
    Parse an ISO 8601 timestamp and convert it to ``timezone``.

    Naive timestamps are read as wall-clock time in ``timezone``.
    """
    try:
        parsed = pendulum.parse(str(value), tz=timezone)
    except ValueError as exc:
        raise ProviderError(f"Invalid datetime value: {value!r}") from exc
    if not isinstance(parsed, DateTime):
        raise ProviderError(f"Invalid datetime value: {value!r}")
    return parsed.in_timezone(timezone)


def _optional_time(value: Any) -> Optional[time]:
    return parse_time(value) if value not in (None, "") else None


def parse_schedule(employee_id: str, record: Mapping[str, Any]) -> EmployeeSchedule:
    """
    Build an ``EmployeeSchedule`` from a record of the form::

        {
            "working_hours": [{"day_of_week": 0, "start_time": "09:00",
                               "end_time": "17:00", "breaks": [...]}],
            "rules": {"min_notice_hours": 2, "exceptions": [...], ...},
            "blackout_dates": ["2024-12-24"]
        }
    """
    try:
        working_hours = tuple(
            WorkingHoursRule(
                employee_id=employee_id,
                day_of_week=int(entry["day_of_week"]),
                start_time=parse_time(entry["start_time"]),
                end_time=parse_time(entry["end_time"]),
                breaks=tuple(
                    BreakPeriod(
                        start_time=parse_time(pause["start_time"]),
                        end_time=parse_time(pause["end_time"]),
                    )
                    for pause in entry.get("breaks") or []
                ),
            )
            for entry in record.get("working_hours") or []
            if entry.get("is_active", True)
        )

        rules_record: Dict[str, Any] = record.get("rules") or {}
        exceptions = tuple(
            AvailabilityException(
                start_date=parse_date(entry["start_date"]),
                end_date=parse_date(entry.get("end_date") or entry["start_date"]),
                start_time=_optional_time(entry.get("start_time")),
                end_time=_optional_time(entry.get("end_time")),
                reason=entry.get("reason"),
            )
            for entry in rules_record.get("exceptions") or []
        )
        rules = AvailabilityRuleSet(
            exceptions=exceptions,
            min_notice_hours=int(rules_record.get("min_notice_hours") or 0),
            max_advance_days=rules_record.get("max_advance_days"),
            slot_granularity_minutes=rules_record.get("slot_granularity_minutes"),
            buffer_minutes=int(rules_record.get("buffer_minutes") or 0),
            max_bookings_per_day=rules_record.get("max_bookings_per_day"),
        )

        blackout_dates = frozenset(
            parse_date(value) for value in record.get("blackout_dates") or []
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(f"Invalid schedule data for employee {employee_id}: {exc}") from exc

    _ensure_unique_weekdays(employee_id, working_hours)

    return EmployeeSchedule(
        employee_id=employee_id,
        working_hours=working_hours,
        rules=rules,
        blackout_dates=blackout_dates,
    )


def _ensure_unique_weekdays(employee_id: str, working_hours: Iterable[WorkingHoursRule]) -> None:
    seen = set()
    for rule in working_hours:
        if rule.day_of_week in seen:
            raise ProviderError(
                f"Employee {employee_id} has more than one working-hours rule "
                f"for day {rule.day_of_week}"
            )
        seen.add(rule.day_of_week)


def parse_appointment(record: Mapping[str, Any], timezone: str) -> Appointment:
    try:
        return Appointment(
            id=str(record["id"]),
            employee_id=str(record["employee_id"]),
            service_id=record.get("service_id"),
            scheduled_start=parse_datetime(record["scheduled_start"], timezone),
            scheduled_end=parse_datetime(record["scheduled_end"], timezone),
            status=AppointmentStatus(record.get("status", AppointmentStatus.CONFIRMED.value)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(f"Invalid appointment record {record.get('id')!r}: {exc}") from exc


def parse_appointments(records: Iterable[Mapping[str, Any]], timezone: str) -> List[Appointment]:
    return [parse_appointment(record, timezone) for record in records]


def parse_service(record: Mapping[str, Any]) -> Service:
    try:
        base_price = record.get("base_price")
        duration_minutes = record.get("duration_minutes")
        if duration_minutes is not None and (
            isinstance(duration_minutes, bool)
            or not isinstance(duration_minutes, int)
            or duration_minutes <= 0
        ):
            raise ValueError(f"duration_minutes must be a positive integer, got {duration_minutes!r}")
        return Service(
            id=str(record["id"]),
            name=record.get("name", ""),
            duration_minutes=duration_minutes,
            base_price=float(base_price) if base_price is not None else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(f"Invalid service record {record.get('id')!r}: {exc}") from exc
