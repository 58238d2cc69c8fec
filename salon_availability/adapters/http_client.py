"""
HTTP client for the salon platform backend.

Implements the schedule, appointment and service catalog protocols on top of
the backend's REST API.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import DateTime

from ..domain.exceptions import ProviderError
from ..domain.models import Appointment, EmployeeSchedule, Service
from .parsing import parse_appointments, parse_schedule, parse_service

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Read-only client for schedule, appointment and service endpoints.

    Requests run in a worker thread so the async protocol methods do not block
    the event loop. Failures are raised as ``ProviderError`` and never
    replaced by empty data.
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timezone: str = "Europe/Berlin",
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the backend client.

        Args:
            base_url: Root URL of the backend API, e.g. ``https://api.example.com/v1``
            api_token: Optional bearer token
            timezone: IANA timezone used for naive timestamps
            timeout_seconds: Per-request timeout
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    async def get_employee_schedule(self, employee_id: str) -> EmployeeSchedule:
        data = await self._get(f"/employees/{employee_id}/schedule")
        if data is None:
            return EmployeeSchedule(employee_id=employee_id)
        return parse_schedule(employee_id, data)

    async def get_appointments(
        self,
        employee_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[Appointment]:
        data = await self._get(
            f"/employees/{employee_id}/appointments",
            params={
                "start": start_time.to_iso8601_string(),
                "end": end_time.to_iso8601_string(),
                "exclude_status": "cancelled,no_show",
            },
        )
        # A missing appointment list would make booked time look free
        if data is None:
            raise ProviderError(f"Appointments endpoint for employee {employee_id} was not found")

        records = data.get("data") if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise ProviderError(
                f"Backend returned an unexpected appointments payload for employee {employee_id}"
            )

        appointments = parse_appointments(records, self.timezone)
        return [appointment for appointment in appointments if appointment.status.occupies_time]

    async def get_service(self, service_id: str) -> Optional[Service]:
        data = await self._get(f"/services/{service_id}")
        if data is None:
            return None
        return parse_service(data)

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        return await asyncio.to_thread(self._get_sync, path, params)

    def _get_sync(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        Perform a GET request.

        Returns:
            Decoded JSON body, or None for 404 responses

        Raises:
            ProviderError: If the request fails or the body is not JSON
        """
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout_seconds,
            )
            if response.status_code == 404:
                logger.debug("Backend returned 404 for %s", url)
                return None
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            logger.error("Backend request to %s failed: %s", url, e)
            raise ProviderError(f"Failed to fetch {path} from backend: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Backend returned invalid JSON for {path}: {e}") from e
