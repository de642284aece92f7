"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...config import DEFAULT_CURRENCY
from ...models import Booking, BookingStatusHistory
from ...shared.errors import ValidationError as BookingValidationError
from ...shared.validators import validate_email, validate_phone, validate_time_string
from ..scheduling.time_calculator import (
    MIN_EVENT_DURATION_MINUTES,
    format_date,
    parse_date,
    to_minutes,
)
from .lifecycle import BookingStatus

EventType = Literal["Birthday", "Bridal Shower", "Baby Shower", "House", "Hall", "Other"]
ConsultationMode = Literal["in-person", "whatsapp", "video-call"]


def _parse_event_date(v):
    if v is None or isinstance(v, dt.date):
        return v
    try:
        return parse_date(v)
    except BookingValidationError as e:
        raise ValueError("Date must be in ISO format") from e


def _check_window(start: Optional[str], end: Optional[str]) -> None:
    if start is None or end is None:
        return
    if to_minutes(end) <= to_minutes(start):
        raise ValueError("End time must be after start time")
    if to_minutes(end) - to_minutes(start) < MIN_EVENT_DURATION_MINUTES:
        raise ValueError("Event duration must be at least 30 minutes")


class ClientInfo(BaseModel):
    fullName: str = Field(min_length=2, max_length=50)
    email: str
    phone: str

    @field_validator("fullName", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class ClientUpdate(BaseModel):
    fullName: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v is not None else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v) if v is not None else v


class EventInfo(BaseModel):
    type: EventType
    title: Optional[str] = None
    location: str = Field(min_length=5, max_length=100)
    date: dt.date
    startTime: str
    endTime: str
    consultationMode: ConsultationMode = "whatsapp"
    notes: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, v):
        return _parse_event_date(v)

    @field_validator("location", mode="before")
    @classmethod
    def strip_location(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v)

    @model_validator(mode="after")
    def check_duration(self):
        _check_window(self.startTime, self.endTime)
        return self


class EventUpdate(BaseModel):
    type: Optional[EventType] = None
    title: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=5, max_length=100)
    date: Optional[dt.date] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    consultationMode: Optional[ConsultationMode] = None
    notes: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, v):
        return _parse_event_date(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time_string(v) if v is not None else v

    @model_validator(mode="after")
    def check_duration(self):
        _check_window(self.startTime, self.endTime)
        return self


class PricingInfo(BaseModel):
    estimate: float = Field(ge=0)
    overnightSurcharge: Optional[float] = Field(default=None, ge=0)
    depositRequired: float = Field(ge=0)
    currency: str = DEFAULT_CURRENCY
    finalAgreed: Optional[float] = Field(default=None, ge=0)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()

    @model_validator(mode="after")
    def check_deposit(self):
        if self.depositRequired > self.estimate:
            raise ValueError("Deposit cannot exceed the estimated amount")
        return self


class PricingUpdate(BaseModel):
    estimate: Optional[float] = Field(default=None, ge=0)
    overnightSurcharge: Optional[float] = Field(default=None, ge=0)
    depositRequired: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    finalAgreed: Optional[float] = Field(default=None, ge=0)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper() if v is not None else v


class BookingCreate(BaseModel):
    """Schema for a public booking submission"""

    client: ClientInfo
    event: EventInfo
    pricing: PricingInfo
    notes: Optional[str] = None


class BookingUpdate(BaseModel):
    """Schema for an admin edit; omitted sections are left unchanged"""

    client: Optional[ClientUpdate] = None
    event: Optional[EventUpdate] = None
    pricing: Optional[PricingUpdate] = None
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: BookingStatus
    note: Optional[str] = Field(default=None, max_length=200)
    override: bool = False


class CancelRequest(BaseModel):
    reason: str = Field(min_length=5, max_length=200)

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v):
        return v.strip() if isinstance(v, str) else v


class StatusHistoryResponse(BaseModel):
    status: str
    changedAt: Optional[dt.datetime] = None
    changedBy: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_model(cls, entry: BookingStatusHistory) -> "StatusHistoryResponse":
        return cls(
            status=entry.status,
            changedAt=entry.changed_at,
            changedBy=entry.changed_by,
            note=entry.note,
        )


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    client: dict
    event: dict
    pricing: dict
    notes: Optional[str] = None
    isOvernight: bool
    status: str
    statusHistory: list[StatusHistoryResponse] = []
    payments: list[str] = []
    cancellationReason: Optional[str] = None
    cancellationDate: Optional[dt.datetime] = None
    createdAt: Optional[dt.datetime] = None
    updatedAt: Optional[dt.datetime] = None

    @classmethod
    def from_model(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            client={
                "fullName": booking.client_full_name,
                "email": booking.client_email,
                "phone": booking.client_phone,
            },
            event={
                "type": booking.event_type,
                "title": booking.event_title,
                "location": booking.event_location,
                "date": format_date(booking.event_date),
                "startTime": booking.event_start_time,
                "endTime": booking.event_end_time,
                "consultationMode": booking.consultation_mode,
                "notes": booking.event_notes,
                "durationHours": booking.duration_hours,
            },
            pricing={
                "estimate": booking.estimate,
                "overnightSurcharge": booking.overnight_surcharge,
                "depositRequired": booking.deposit_required,
                "currency": booking.currency,
                "finalAgreed": booking.final_agreed,
                "totalAmount": booking.total_amount,
                "remainingBalance": booking.remaining_balance,
            },
            notes=booking.notes,
            isOvernight=booking.is_overnight,
            status=booking.status,
            statusHistory=[StatusHistoryResponse.from_model(h) for h in booking.status_history],
            payments=[p.id for p in booking.payments],
            cancellationReason=booking.cancellation_reason,
            cancellationDate=booking.cancellation_date,
            createdAt=booking.created_at,
            updatedAt=booking.updated_at,
        )
