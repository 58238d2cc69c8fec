"""
JSON file store implementing the schedule, appointment and service protocols.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pendulum import DateTime

from ..domain.exceptions import ProviderError
from ..domain.models import Appointment, EmployeeSchedule, Service
from .parsing import parse_appointments, parse_schedule, parse_service

logger = logging.getLogger(__name__)


class JsonScheduleStore:
    """
    Serves employee schedules, appointments and the service catalog from a
    JSON document, for local use and demos without the platform backend.

    Expected layout::

        {
            "employees": {"emp-1": {"working_hours": [...], "rules": {...},
                                    "blackout_dates": [...]}},
            "appointments": [{"id": "a1", "employee_id": "emp-1",
                              "scheduled_start": "...", "scheduled_end": "...",
                              "status": "confirmed"}],
            "services": [{"id": "cut", "name": "Haircut",
                          "duration_minutes": 45, "base_price": 35.0}]
        }
    """

    def __init__(self, data_file: Path, timezone: str = "Europe/Berlin"):
        """
        Initialize the store and load the data file.

        Args:
            data_file: Path to the JSON document
            timezone: IANA timezone used for naive timestamps

        Raises:
            ProviderError: If the file is missing or not valid data
        """
        self.data_file = Path(data_file)
        self.timezone = timezone
        self.reload()

    def reload(self) -> None:
        """Re-read the data file, replacing everything held in memory."""
        if not self.data_file.exists():
            raise ProviderError(f"Schedule data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ProviderError(f"Could not read schedule data from {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise ProviderError("Schedule data file must contain a JSON object at the root level.")

        self._employees: Dict[str, Dict[str, Any]] = data.get("employees") or {}
        self._appointments = parse_appointments(data.get("appointments") or [], self.timezone)
        self._services = {
            service.id: service
            for service in (parse_service(record) for record in data.get("services") or [])
        }

        logger.debug(
            "Loaded %d employee(s), %d appointment(s), %d service(s) from %s",
            len(self._employees),
            len(self._appointments),
            len(self._services),
            self.data_file,
        )

    async def get_employee_schedule(self, employee_id: str) -> EmployeeSchedule:
        record = self._employees.get(employee_id)
        if record is None:
            logger.debug("No schedule configured for employee %s", employee_id)
            return EmployeeSchedule(employee_id=employee_id)
        return parse_schedule(employee_id, record)

    async def get_appointments(
        self,
        employee_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[Appointment]:
        return [
            appointment
            for appointment in self._appointments
            if appointment.employee_id == employee_id
            and appointment.status.occupies_time
            and appointment.scheduled_start < end_time
            and appointment.scheduled_end > start_time
        ]

    async def get_service(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    def employee_ids(self) -> List[str]:
        return sorted(self._employees)
