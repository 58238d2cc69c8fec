"""
Request boundary for the availability operations.

Raw request parameters (strings from a CLI or an HTTP layer) are validated
with Pydantic before the engine runs. Malformed input becomes an
``InvalidRequestError``; "no availability" and booking conflicts are returned
as ordinary results.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import pendulum
from pendulum import DateTime
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ..domain.exceptions import InvalidRequestError
from .availability_service import AvailabilityService

DEFAULT_RANGE_DAYS = 30

RequestT = TypeVar("RequestT", bound=BaseModel)


class _Request(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, str_strip_whitespace=True)

    employee_id: str = Field(min_length=1)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty query parameters as absent."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class DayRangeRequest(_Request):
    start_date: dt.date
    end_date: Optional[dt.date] = None
    service_id: Optional[str] = None
    duration: Optional[PositiveInt] = None

    @model_validator(mode="after")
    def validate_range(self) -> "DayRangeRequest":
        if self.end_date is None:
            self.end_date = self.start_date + dt.timedelta(days=DEFAULT_RANGE_DAYS)
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self


class DaySlotsRequest(_Request):
    date: dt.date
    service_id: Optional[str] = None
    duration: Optional[PositiveInt] = None


class ValidateBookingRequest(_Request):
    service_id: Optional[str] = None
    scheduled_start: DateTime
    scheduled_end: DateTime
    exclude_appointment_id: Optional[str] = None

    @field_validator("scheduled_start", "scheduled_end", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any, info: ValidationInfo) -> Any:
        """Parse ISO 8601 strings; naive values are read in the configured timezone."""
        if value is None or isinstance(value, DateTime):
            return value
        timezone = (info.context or {}).get("timezone", "UTC")
        parsed = pendulum.parse(str(value), tz=timezone)
        if not isinstance(parsed, DateTime):
            raise ValueError("Invalid date format. Use ISO 8601 format")
        return parsed

    @model_validator(mode="after")
    def validate_order(self) -> "ValidateBookingRequest":
        if self.scheduled_end <= self.scheduled_start:
            raise ValueError("End time must be after start time")
        return self


class NextAvailableRequest(_Request):
    service_id: Optional[str] = None
    duration: Optional[PositiveInt] = None


class SummaryRequest(_Request):
    date: Optional[dt.date] = None


def parse_request(
    model: Type[RequestT],
    data: Mapping[str, Any],
    timezone: str = "UTC",
) -> RequestT:
    """
    Validate raw request data into ``model``.

    Raises:
        InvalidRequestError: If any parameter is missing or malformed
    """
    try:
        return model.model_validate(dict(data), context={"timezone": timezone})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidRequestError(problems) from exc


class AvailabilityRequestHandler:
    """
    Validates raw requests and shapes engine results into plain dictionaries.

    This is the surface an HTTP controller or the CLI talks to.
    """

    def __init__(self, service: AvailabilityService):
        self._service = service

    @property
    def timezone(self) -> str:
        return self._service.settings.timezone

    async def get_employee_availability(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        data = dict(params)
        if not data.get("start_date"):
            data["start_date"] = self._service.today()

        request = parse_request(DayRangeRequest, data, self.timezone)
        days = await self._service.get_employee_availability(
            request.employee_id,
            request.start_date,
            request.end_date,
            service_id=request.service_id,
            duration=request.duration,
        )
        return {"data": [day.to_dict() for day in days]}

    async def get_time_slots(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        request = parse_request(DaySlotsRequest, params, self.timezone)
        slots = await self._service.get_time_slots(
            request.employee_id,
            request.date,
            service_id=request.service_id,
            duration=request.duration,
        )

        if slots:
            duration = slots[0].time_range.duration_minutes()
        else:
            duration = request.duration or self._service.settings.default_duration_minutes

        return {
            "data": [slot.to_dict() for slot in slots],
            "meta": {
                "date": request.date.isoformat(),
                "employee_id": request.employee_id,
                "service_id": request.service_id,
                "duration": duration,
                "total_slots": len(slots),
                "available_slots": sum(1 for slot in slots if slot.available),
            },
        }

    async def validate_booking(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        request = parse_request(ValidateBookingRequest, params, self.timezone)
        result = await self._service.validate_booking(
            request.employee_id,
            request.service_id,
            request.scheduled_start,
            request.scheduled_end,
            exclude_appointment_id=request.exclude_appointment_id,
        )
        return result.to_dict()

    async def get_next_available(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        request = parse_request(NextAvailableRequest, params, self.timezone)
        result = await self._service.find_next_available(
            request.employee_id,
            service_id=request.service_id,
            duration=request.duration,
        )
        return result.to_dict()

    async def get_availability_summary(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        request = parse_request(SummaryRequest, params, self.timezone)
        summary = await self._service.get_availability_summary(
            request.employee_id,
            request.date,
        )
        return summary.to_dict()
