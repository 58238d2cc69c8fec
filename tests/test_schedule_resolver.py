"""
Tests for working window resolution.
"""

from datetime import time

import pendulum

from salon_availability.domain.models import (
    AvailabilityException,
    AvailabilityRuleSet,
    BreakPeriod,
)
from salon_availability.domain.schedule_resolver import ScheduleResolver


def _hours(window):
    return window.start.format("HH:mm"), window.end.format("HH:mm")


class TestScheduleResolver:
    """Tests for ScheduleResolver."""

    def test_weekday_uses_weekly_rule(self, resolver, make_schedule, monday):
        window = resolver.resolve_working_window(make_schedule(), monday)

        assert window is not None
        assert window.date == monday
        assert _hours(window) == ("09:00", "17:00")
        assert window.start.timezone_name == "Europe/Berlin"
        assert window.breaks == ()

    def test_day_without_rule_is_off(self, resolver, make_schedule):
        saturday = pendulum.date(2024, 11, 30)

        assert resolver.resolve_working_window(make_schedule(), saturday) is None

    def test_blackout_date(self, resolver, make_schedule, monday):
        schedule = make_schedule(blackout_dates=[monday])

        assert resolver.resolve_working_window(schedule, monday) is None
        assert resolver.resolve_working_window(schedule, monday.add(days=1)) is not None

    def test_exception_closes_day(self, resolver, make_schedule, monday):
        rules = AvailabilityRuleSet(
            exceptions=(AvailabilityException(start_date=monday, end_date=monday.add(days=1)),)
        )
        schedule = make_schedule(rules=rules)

        assert resolver.resolve_working_window(schedule, monday) is None
        assert resolver.resolve_working_window(schedule, monday.add(days=1)) is None
        assert resolver.resolve_working_window(schedule, monday.add(days=2)) is not None

    def test_exception_replaces_hours(self, resolver, make_schedule, monday):
        rules = AvailabilityRuleSet(
            exceptions=(
                AvailabilityException(
                    start_date=monday, end_date=monday, start_time=time(10), end_time=time(14)
                ),
            )
        )

        window = resolver.resolve_working_window(make_schedule(rules=rules), monday)

        assert _hours(window) == ("10:00", "14:00")

    def test_exception_opens_day_off(self, resolver, make_schedule):
        """An exception with hours makes an otherwise free day bookable."""
        saturday = pendulum.date(2024, 11, 30)
        rules = AvailabilityRuleSet(
            exceptions=(
                AvailabilityException(
                    start_date=saturday, end_date=saturday, start_time=time(9), end_time=time(13)
                ),
            )
        )

        window = resolver.resolve_working_window(make_schedule(rules=rules), saturday)

        assert _hours(window) == ("09:00", "13:00")

    def test_blackout_beats_exception(self, resolver, make_schedule, monday):
        rules = AvailabilityRuleSet(
            exceptions=(
                AvailabilityException(
                    start_date=monday, end_date=monday, start_time=time(9), end_time=time(12)
                ),
            )
        )
        schedule = make_schedule(rules=rules, blackout_dates=[monday])

        assert resolver.resolve_working_window(schedule, monday) is None

    def test_advance_horizon(self, resolver, make_schedule):
        """With now on 2024-11-18 and a 3 day limit, the 21st is the last bookable day."""
        schedule = make_schedule(rules=AvailabilityRuleSet(max_advance_days=3))

        assert resolver.resolve_working_window(schedule, pendulum.date(2024, 11, 21)) is not None
        assert resolver.resolve_working_window(schedule, pendulum.date(2024, 11, 22)) is None
        assert resolver.is_beyond_advance_horizon(schedule, pendulum.date(2024, 11, 22))

    def test_breaks_are_anchored_and_clipped(self, resolver, make_schedule, monday):
        schedule = make_schedule(
            breaks=[
                BreakPeriod(start_time=time(12), end_time=time(12, 30)),
                BreakPeriod(start_time=time(16, 45), end_time=time(17, 30)),
                BreakPeriod(start_time=time(18), end_time=time(19)),
            ]
        )

        window = resolver.resolve_working_window(schedule, monday)

        assert [_hours(pause) for pause in window.breaks] == [
            ("12:00", "12:30"),
            ("16:45", "17:00"),
        ]
        assert [_hours(free) for free in window.free_intervals()] == [
            ("09:00", "12:00"),
            ("12:30", "16:45"),
        ]

    def test_overlapping_breaks_are_merged(self, resolver, make_schedule, monday):
        schedule = make_schedule(
            breaks=[
                BreakPeriod(start_time=time(12, 15), end_time=time(13)),
                BreakPeriod(start_time=time(12), end_time=time(12, 30)),
                BreakPeriod(start_time=time(15), end_time=time(15, 15)),
                BreakPeriod(start_time=time(15, 15), end_time=time(15, 30)),
            ]
        )

        window = resolver.resolve_working_window(schedule, monday)

        assert [_hours(pause) for pause in window.breaks] == [
            ("12:00", "13:00"),
            ("15:00", "15:30"),
        ]

    def test_earliest_bookable_applies_notice(self, resolver, make_schedule, now):
        schedule = make_schedule(rules=AvailabilityRuleSet(min_notice_hours=2))

        assert resolver.earliest_bookable(schedule) == now.add(hours=2)
        assert resolver.earliest_bookable(make_schedule()) == now

    def test_now_is_converted_to_timezone(self):
        resolver = ScheduleResolver(
            timezone="Europe/Berlin",
            now=pendulum.datetime(2024, 11, 17, 23, 30, tz="UTC"),
        )

        assert resolver.today == pendulum.date(2024, 11, 18)
