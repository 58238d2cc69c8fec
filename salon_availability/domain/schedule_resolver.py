"""
Resolves an employee's working window for a single calendar date.

Precedence, strongest first:
1. blackout dates
2. the advance-booking horizon
3. availability exceptions
4. the weekly working-hours rule
"""

from datetime import date, timedelta
from typing import List, Optional

import pendulum
from pendulum import DateTime

from .intervals import merge
from .models import (
    EmployeeSchedule,
    TimeRange,
    WorkingHoursRule,
    WorkingWindow,
    combine,
)


class ScheduleResolver:
    """
    Turns an ``EmployeeSchedule`` snapshot into concrete working windows.

    ``now`` pins "today" for the advance-booking horizon and the minimum
    notice period; it defaults to the current time in ``timezone``.
    """

    def __init__(self, timezone: str = "Europe/Berlin", now: Optional[DateTime] = None):
        self.timezone = timezone
        self.now = (now or pendulum.now(timezone)).in_timezone(timezone)

    @property
    def today(self) -> date:
        return self.now.date()

    def resolve_working_window(
        self,
        schedule: EmployeeSchedule,
        day: date,
    ) -> Optional[WorkingWindow]:
        """
        Return the working window for ``day`` or None when the employee is
        not bookable that day. Never raises for a day off.
        """
        if schedule.is_blackout(day):
            return None

        if self.is_beyond_advance_horizon(schedule, day):
            return None

        rule = schedule.rule_for_weekday(day.weekday())
        exception = schedule.rules.exception_for(day)

        if exception is not None:
            if exception.closes_day:
                return None
            window = TimeRange(
                start=combine(day, exception.start_time, self.timezone),
                end=combine(day, exception.end_time, self.timezone),
            )
        elif rule is not None:
            window = TimeRange(
                start=combine(day, rule.start_time, self.timezone),
                end=combine(day, rule.end_time, self.timezone),
            )
        else:
            return None

        breaks = self._breaks_within(rule, day, window) if rule is not None else []

        return WorkingWindow(date=day, time_range=window, breaks=tuple(breaks))

    def is_beyond_advance_horizon(self, schedule: EmployeeSchedule, day: date) -> bool:
        max_advance_days = schedule.rules.max_advance_days
        if max_advance_days is None:
            return False
        return day > self.today + timedelta(days=max_advance_days)

    def earliest_bookable(self, schedule: EmployeeSchedule) -> DateTime:
        """The first instant that satisfies the minimum notice period."""
        return self.now.add(hours=schedule.rules.min_notice_hours)

    def _breaks_within(
        self,
        rule: WorkingHoursRule,
        day: date,
        window: TimeRange,
    ) -> List[TimeRange]:
        """Breaks clipped to the window; overlapping or touching ones are merged."""
        breaks: List[TimeRange] = []

        for pause in rule.breaks:
            anchored = TimeRange(
                start=combine(day, pause.start_time, self.timezone),
                end=combine(day, pause.end_time, self.timezone),
            )
            clipped = window.intersect(anchored)
            if clipped is not None:
                breaks.append(clipped)

        return merge(breaks)
