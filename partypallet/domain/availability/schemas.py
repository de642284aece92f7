"""Availability domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Availability
from ...shared.validators import validate_time_string
from ..scheduling.time_calculator import format_date


class SlotInput(BaseModel):
    start: str
    end: str
    status: str = "available"
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("start", "end")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)


class SetAvailabilityRequest(BaseModel):
    """Schema for upserting a day; omitted fields are left unchanged"""

    date: dt.date
    isAvailable: Optional[bool] = None
    slots: Optional[list[SlotInput]] = None


class BlockSlotRequest(BaseModel):
    date: dt.date
    start: str
    end: str
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("start", "end")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)


class SlotResponse(BaseModel):
    start: str
    end: str
    status: str
    note: Optional[str] = None


class AvailabilityResponse(BaseModel):
    """Schema for a day record; date renders as YYYY-MM-DD"""

    id: int
    date: str
    isAvailable: bool
    slots: list[SlotResponse] = []

    @classmethod
    def from_model(cls, availability: Availability) -> "AvailabilityResponse":
        return cls(
            id=availability.id,
            date=format_date(availability.date),
            isAvailable=availability.is_available,
            slots=[
                SlotResponse(start=s.start, end=s.end, status=s.status, note=s.note)
                for s in sorted(availability.slots, key=lambda s: s.start)
            ],
        )
