"""
Protocols describing the read-only collaborators the availability service needs.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from pendulum import DateTime

from ..domain.models import Appointment, EmployeeSchedule, Service


class ScheduleProvider(Protocol):
    """Working hours, availability rules and blackout dates per employee."""

    async def get_employee_schedule(self, employee_id: str) -> EmployeeSchedule:
        """Return the employee's schedule snapshot (empty when none is configured)."""


class AppointmentProvider(Protocol):
    """Existing appointments per employee."""

    async def get_appointments(
        self,
        employee_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[Appointment]:
        """Return occupying appointments overlapping ``[start_time, end_time)``."""


class ServiceCatalog(Protocol):
    """Service catalog lookups for default durations and prices."""

    async def get_service(self, service_id: str) -> Optional[Service]:
        """Return the service or None when it is unknown."""
