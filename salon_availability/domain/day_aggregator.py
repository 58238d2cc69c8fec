"""
Per-day availability summaries over a date range.
"""

from datetime import date, timedelta
from typing import List, Optional, Sequence

from .models import Appointment, DayAvailability, DayStatus, EmployeeSchedule
from .slot_generator import DEFAULT_DURATION_MINUTES, SlotGenerator


class DayAvailabilityAggregator:
    """Produces one ``DayAvailability`` per calendar day of a range."""

    def __init__(self, slot_generator: SlotGenerator):
        self.slot_generator = slot_generator

    def get_employee_availability(
        self,
        schedule: EmployeeSchedule,
        start_date: date,
        end_date: date,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        appointments: Sequence[Appointment] = (),
        price: Optional[float] = None,
    ) -> List[DayAvailability]:
        """
        Summarise every day in ``[start_date, end_date]``, inclusive.

        The caller guarantees ``end_date >= start_date``; an inverted range
        simply yields no entries.
        """
        availability: List[DayAvailability] = []
        current = start_date

        while current <= end_date:
            availability.append(
                self.day_availability(schedule, current, duration_minutes, appointments, price)
            )
            current = current + timedelta(days=1)

        return availability

    def day_availability(
        self,
        schedule: EmployeeSchedule,
        day: date,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        appointments: Sequence[Appointment] = (),
        price: Optional[float] = None,
    ) -> DayAvailability:
        window = self.slot_generator.resolver.resolve_working_window(schedule, day)
        if window is None:
            return DayAvailability(
                date=day,
                status=DayStatus.UNAVAILABLE,
                total_slots=0,
                available_slots=0,
            )

        slots = self.slot_generator.generate_slots(
            schedule,
            day,
            duration_minutes=duration_minutes,
            appointments=appointments,
            price=price,
        )
        available_slots = sum(1 for slot in slots if slot.available)

        return DayAvailability(
            date=day,
            status=DayStatus.FULLY_BOOKED if available_slots == 0 else DayStatus.WORKING,
            total_slots=len(slots),
            available_slots=available_slots,
        )
