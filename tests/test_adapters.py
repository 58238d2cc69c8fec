"""
Tests for the JSON file store, the backend HTTP client and record parsing.
"""

import asyncio
import json
from datetime import time

import pendulum
import pytest
import requests

from salon_availability.adapters.http_client import BackendClient
from salon_availability.adapters.json_store import JsonScheduleStore
from salon_availability.adapters.parsing import parse_appointment, parse_schedule, parse_service
from salon_availability.domain.exceptions import ProviderError
from salon_availability.domain.models import AppointmentStatus

TZ = "Europe/Berlin"

SCHEDULE_RECORD = {
    "working_hours": [
        {
            "day_of_week": 0,
            "start_time": "09:00",
            "end_time": "17:00",
            "breaks": [{"start_time": "12:00", "end_time": "12:30"}],
        },
        {"day_of_week": 1, "start_time": "10:00", "end_time": "18:00"},
        {"day_of_week": 2, "start_time": "10:00", "end_time": "18:00", "is_active": False},
    ],
    "rules": {
        "min_notice_hours": 2,
        "max_advance_days": 60,
        "buffer_minutes": 10,
        "exceptions": [
            {"start_date": "2024-12-24", "end_date": "2024-12-26", "reason": "Christmas"},
            {"start_date": "2024-12-31", "start_time": "09:00", "end_time": "13:00"},
        ],
    },
    "blackout_dates": ["2024-11-27"],
}


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(
        json.dumps(
            {
                "employees": {"emp-1": SCHEDULE_RECORD},
                "appointments": [
                    {
                        "id": "a1",
                        "employee_id": "emp-1",
                        "scheduled_start": "2024-11-25T10:00:00",
                        "scheduled_end": "2024-11-25T10:30:00",
                        "status": "confirmed",
                    },
                    {
                        "id": "a2",
                        "employee_id": "emp-1",
                        "scheduled_start": "2024-11-25T11:00:00",
                        "scheduled_end": "2024-11-25T11:30:00",
                        "status": "cancelled",
                    },
                    {
                        "id": "a3",
                        "employee_id": "emp-1",
                        "scheduled_start": "2024-11-26T10:00:00",
                        "scheduled_end": "2024-11-26T10:30:00",
                    },
                ],
                "services": [
                    {"id": "svc-cut", "name": "Haircut", "duration_minutes": 45, "base_price": 35}
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


class TestParsing:
    """Tests for record parsing."""

    def test_parse_schedule(self):
        schedule = parse_schedule("emp-1", SCHEDULE_RECORD)

        assert [rule.day_of_week for rule in schedule.working_hours] == [0, 1]
        monday = schedule.rule_for_weekday(0)
        assert monday.start_time == time(9, 0)
        assert monday.breaks[0].end_time == time(12, 30)
        assert schedule.rules.min_notice_hours == 2
        assert schedule.rules.buffer_minutes == 10
        assert len(schedule.rules.exceptions) == 2
        assert schedule.rules.exception_for(pendulum.date(2024, 12, 25)).reason == "Christmas"
        assert schedule.rules.exception_for(pendulum.date(2024, 12, 31)).end_time == time(13, 0)
        assert schedule.is_blackout(pendulum.date(2024, 11, 27))

    def test_duplicate_weekday(self):
        record = {
            "working_hours": [
                {"day_of_week": 0, "start_time": "09:00", "end_time": "12:00"},
                {"day_of_week": 0, "start_time": "13:00", "end_time": "17:00"},
            ]
        }

        with pytest.raises(ProviderError, match="more than one"):
            parse_schedule("emp-1", record)

    def test_malformed_schedule(self):
        with pytest.raises(ProviderError, match="emp-1"):
            parse_schedule("emp-1", {"working_hours": [{"day_of_week": 0, "start_time": "09:00"}]})

    def test_malformed_time(self):
        with pytest.raises(ProviderError, match="Invalid time value"):
            parse_schedule(
                "emp-1",
                {"working_hours": [{"day_of_week": 0, "start_time": "9 o'clock", "end_time": "17:00"}]},
            )

    def test_parse_appointment_in_timezone(self):
        appointment = parse_appointment(
            {
                "id": 17,
                "employee_id": "emp-1",
                "scheduled_start": "2024-11-25T08:00:00Z",
                "scheduled_end": "2024-11-25T08:30:00Z",
                "status": "pending",
            },
            TZ,
        )

        assert appointment.id == "17"
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.scheduled_start.format("HH:mm") == "09:00"
        assert appointment.scheduled_start.timezone_name == TZ

    def test_unknown_status(self):
        with pytest.raises(ProviderError):
            parse_appointment(
                {
                    "id": "a1",
                    "employee_id": "emp-1",
                    "scheduled_start": "2024-11-25T10:00:00",
                    "scheduled_end": "2024-11-25T10:30:00",
                    "status": "maybe",
                },
                TZ,
            )

    def test_parse_service(self):
        service = parse_service({"id": "svc-cut", "name": "Haircut", "duration_minutes": 45, "base_price": 35})

        assert service.duration_minutes == 45
        assert service.base_price == 35.0

    @pytest.mark.parametrize("duration", [-15, 0, "30", 2.5, True])
    def test_invalid_service_duration(self, duration):
        with pytest.raises(ProviderError, match="svc-cut"):
            parse_service({"id": "svc-cut", "duration_minutes": duration})


class TestJsonScheduleStore:
    """Tests for JsonScheduleStore."""

    def test_schedule_lookup(self, data_file):
        store = JsonScheduleStore(data_file, timezone=TZ)

        schedule = asyncio.run(store.get_employee_schedule("emp-1"))
        unknown = asyncio.run(store.get_employee_schedule("emp-404"))

        assert schedule.rule_for_weekday(1).start_time == time(10, 0)
        assert unknown.working_hours == ()
        assert store.employee_ids() == ["emp-1"]

    def test_appointments_in_range_skip_cancelled(self, data_file):
        store = JsonScheduleStore(data_file, timezone=TZ)

        appointments = asyncio.run(
            store.get_appointments(
                employee_id="emp-1",
                start_time=pendulum.datetime(2024, 11, 25, tz=TZ),
                end_time=pendulum.datetime(2024, 11, 26, tz=TZ),
            )
        )

        assert [appointment.id for appointment in appointments] == ["a1"]

    def test_service_lookup(self, data_file):
        store = JsonScheduleStore(data_file, timezone=TZ)

        service = asyncio.run(store.get_service("svc-cut"))

        assert service.duration_minutes == 45
        assert service.base_price == 35.0
        assert asyncio.run(store.get_service("svc-none")) is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProviderError, match="not found"):
            JsonScheduleStore(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ProviderError, match="Could not read"):
            JsonScheduleStore(path)

    def test_root_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ProviderError, match="JSON object"):
            JsonScheduleStore(path)

    def test_reload_picks_up_changes(self, data_file):
        store = JsonScheduleStore(data_file, timezone=TZ)
        data = json.loads(data_file.read_text(encoding="utf-8"))
        data["appointments"] = []
        data_file.write_text(json.dumps(data), encoding="utf-8")

        store.reload()
        appointments = asyncio.run(
            store.get_appointments(
                employee_id="emp-1",
                start_time=pendulum.datetime(2024, 11, 25, tz=TZ),
                end_time=pendulum.datetime(2024, 11, 27, tz=TZ),
            )
        )

        assert appointments == []


class FakeResponse:

    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
    """Records GET calls and replays canned responses keyed by path suffix."""

    def __init__(self, responses):
        self._responses = responses
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        for suffix, response in self._responses.items():
            if url.endswith(suffix):
                if isinstance(response, Exception):
                    raise response
                return response
        return FakeResponse(404)


class TestBackendClient:
    """Tests for BackendClient."""

    def test_schedule_request(self):
        session = FakeSession({"/employees/emp-1/schedule": FakeResponse(200, SCHEDULE_RECORD)})
        client = BackendClient("https://api.example.com/v1/", api_token="secret", timezone=TZ, session=session)

        schedule = asyncio.run(client.get_employee_schedule("emp-1"))

        assert schedule.rule_for_weekday(0).end_time == time(17, 0)
        call = session.calls[0]
        assert call["url"] == "https://api.example.com/v1/employees/emp-1/schedule"
        assert call["headers"]["Authorization"] == "Bearer secret"
        assert call["timeout"] == 30.0

    def test_unknown_employee(self):
        client = BackendClient("https://api.example.com", session=FakeSession({}))

        schedule = asyncio.run(client.get_employee_schedule("emp-404"))

        assert schedule.working_hours == ()

    def test_appointments_request(self):
        payload = {
            "data": [
                {
                    "id": "a1",
                    "employee_id": "emp-1",
                    "scheduled_start": "2024-11-25T09:00:00Z",
                    "scheduled_end": "2024-11-25T09:30:00Z",
                    "status": "confirmed",
                },
                {
                    "id": "a2",
                    "employee_id": "emp-1",
                    "scheduled_start": "2024-11-25T10:00:00Z",
                    "scheduled_end": "2024-11-25T10:30:00Z",
                    "status": "no_show",
                },
            ]
        }
        session = FakeSession({"/employees/emp-1/appointments": FakeResponse(200, payload)})
        client = BackendClient("https://api.example.com", timezone=TZ, session=session)

        appointments = asyncio.run(
            client.get_appointments(
                employee_id="emp-1",
                start_time=pendulum.datetime(2024, 11, 25, tz=TZ),
                end_time=pendulum.datetime(2024, 11, 26, tz=TZ),
            )
        )

        assert [appointment.id for appointment in appointments] == ["a1"]
        assert appointments[0].scheduled_start.format("HH:mm") == "10:00"
        params = session.calls[0]["params"]
        assert params["start"].startswith("2024-11-25T00:00:00")
        assert params["exclude_status"] == "cancelled,no_show"
        assert "Authorization" not in session.calls[0]["headers"]

    def test_service_request(self):
        session = FakeSession(
            {"/services/svc-cut": FakeResponse(200, {"id": "svc-cut", "duration_minutes": 45, "base_price": "35.50"})}
        )
        client = BackendClient("https://api.example.com", session=session)

        service = asyncio.run(client.get_service("svc-cut"))

        assert service.base_price == 35.5
        assert asyncio.run(client.get_service("svc-none")) is None

    def test_server_error(self):
        session = FakeSession({"/employees/emp-1/schedule": FakeResponse(503, {})})
        client = BackendClient("https://api.example.com", session=session)

        with pytest.raises(ProviderError, match="Failed to fetch"):
            asyncio.run(client.get_employee_schedule("emp-1"))

    def test_connection_error(self):
        session = FakeSession(
            {"/employees/emp-1/schedule": requests.exceptions.ConnectionError("connection refused")}
        )
        client = BackendClient("https://api.example.com", session=session)

        with pytest.raises(ProviderError, match="connection refused"):
            asyncio.run(client.get_employee_schedule("emp-1"))

    def test_invalid_json_body(self):
        session = FakeSession({"/services/svc-cut": FakeResponse(200)})
        client = BackendClient("https://api.example.com", session=session)

        with pytest.raises(ProviderError, match="invalid JSON"):
            asyncio.run(client.get_service("svc-cut"))

    def test_missing_appointments_endpoint(self):
        """A 404 must not turn into an empty, bookable day."""
        client = BackendClient("https://api.example.com", timezone=TZ, session=FakeSession({}))

        with pytest.raises(ProviderError, match="not found"):
            asyncio.run(
                client.get_appointments(
                    employee_id="emp-1",
                    start_time=pendulum.datetime(2024, 11, 25, tz=TZ),
                    end_time=pendulum.datetime(2024, 11, 26, tz=TZ),
                )
            )

    @pytest.mark.parametrize("payload", [{"data": "oops"}, {"items": []}, "oops", 42])
    def test_unexpected_appointments_payload(self, payload):
        session = FakeSession({"/employees/emp-1/appointments": FakeResponse(200, payload)})
        client = BackendClient("https://api.example.com", timezone=TZ, session=session)

        with pytest.raises(ProviderError, match="unexpected appointments payload"):
            asyncio.run(
                client.get_appointments(
                    employee_id="emp-1",
                    start_time=pendulum.datetime(2024, 11, 25, tz=TZ),
                    end_time=pendulum.datetime(2024, 11, 26, tz=TZ),
                )
            )
