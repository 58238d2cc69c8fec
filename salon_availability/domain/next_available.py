"""
Forward search for the first open slot within a bounded horizon.

Availability is not monotonic in time (a near day can be fully booked while a
later one is open), so days are scanned in order rather than bisected.
"""

from datetime import date, timedelta
from typing import Optional, Sequence

from .day_aggregator import DayAvailabilityAggregator
from .models import Appointment, EmployeeSchedule, NextAvailableResult
from .slot_generator import DEFAULT_DURATION_MINUTES

DEFAULT_HORIZON_DAYS = 30


class NextAvailableSearch:

    def __init__(self, aggregator: DayAvailabilityAggregator):
        self.aggregator = aggregator

    def find_next_available(
        self,
        schedule: EmployeeSchedule,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        appointments: Sequence[Appointment] = (),
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        price: Optional[float] = None,
        start_date: Optional[date] = None,
    ) -> NextAvailableResult:
        """
        Scan ``horizon_days`` days starting today (or ``start_date``) and
        return the first available slot.
        """
        first_day = start_date or self.aggregator.slot_generator.resolver.today
        last_day = first_day + timedelta(days=horizon_days - 1)

        days = self.aggregator.get_employee_availability(
            schedule,
            first_day,
            last_day,
            duration_minutes=duration_minutes,
            appointments=appointments,
            price=price,
        )

        for day in days:
            if day.available_slots <= 0:
                continue

            slots = self.aggregator.slot_generator.generate_slots(
                schedule,
                day.date,
                duration_minutes=duration_minutes,
                appointments=appointments,
                price=price,
            )
            for slot in slots:
                if slot.available:
                    return NextAvailableResult(available=True, next_slot=slot)

        return NextAvailableResult(
            available=False,
            reason=f"No available slots found in the next {horizon_days} days",
        )
