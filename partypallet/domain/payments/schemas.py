"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Payment
from ...shared.validators import validate_email


class PaymentInitializeRequest(BaseModel):
    bookingId: str
    amount: float = Field(gt=0, description="Amount in major units (e.g. Naira)")
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class PaymentRetryRequest(BaseModel):
    bookingId: str
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class PaymentResponse(BaseModel):
    """Schema for payment response; the provider payload is never included"""

    id: str
    bookingId: str
    provider: str
    reference: str
    amount: int
    amountMajor: float
    formattedAmount: str
    currency: str
    status: str
    paymentDate: Optional[datetime] = None
    channel: Optional[str] = None
    failureReason: Optional[str] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            bookingId=payment.booking_id,
            provider=payment.provider,
            reference=payment.reference,
            amount=payment.amount,
            amountMajor=payment.amount_major,
            formattedAmount=payment.formatted_amount,
            currency=payment.currency,
            status=payment.status,
            paymentDate=payment.payment_date,
            channel=payment.channel,
            failureReason=payment.failure_reason,
            createdAt=payment.created_at,
        )
