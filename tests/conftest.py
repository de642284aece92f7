"""Shared test fixtures and helpers."""

import os
from datetime import date, timedelta
from typing import Optional

os.environ.setdefault("ADMIN_API_KEYS", "admin-1:test-admin-token")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from partypallet import auth  # noqa: E402
from partypallet.database import Base, create_db_engine, get_db  # noqa: E402
from partypallet.domain.bookings.schemas import BookingCreate  # noqa: E402
from partypallet.domain.bookings.service import BookingService  # noqa: E402
from partypallet.domain.payments import router as payments_router  # noqa: E402
from partypallet.domain.payments.paystack_service import get_payment_provider  # noqa: E402
from partypallet.main import app  # noqa: E402
from partypallet.services.notification_service import (  # noqa: E402
    NotificationQueue,
    get_notification_queue,
)
from partypallet.shared.errors import PaymentProviderError  # noqa: E402

ADMIN_TOKEN = "test-admin-token"
ADMIN_ID = "admin-1"
WEBHOOK_SECRET = "whsec_test"


def future_date(days: int = 30) -> date:
    return date.today() + timedelta(days=days)


def past_date(days: int = 3) -> date:
    return date.today() - timedelta(days=days)


def booking_payload(
    day: Optional[date] = None,
    start: str = "14:00",
    end: str = "18:00",
    estimate: float = 150000,
    deposit: float = 50000,
    overnight_surcharge: Optional[float] = None,
    email: str = "ada@example.com",
) -> dict:
    """Helper to create a booking submission with sensible defaults."""
    pricing = {"estimate": estimate, "depositRequired": deposit, "currency": "ngn"}
    if overnight_surcharge is not None:
        pricing["overnightSurcharge"] = overnight_surcharge
    return {
        "client": {"fullName": "Ada Obi", "email": email, "phone": "+234 801 234 5678"},
        "event": {
            "type": "Birthday",
            "title": "Ada turns 30",
            "location": "12 Admiralty Way, Lekki",
            "date": (day or future_date()).isoformat(),
            "startTime": start,
            "endTime": end,
            "consultationMode": "whatsapp",
        },
        "pricing": pricing,
        "notes": "Gold and white theme",
    }


def make_booking(db, notifier=None, **kwargs):
    """Create a booking through the service layer."""
    service = BookingService(db, notifier or NotificationQueue())
    return service.create_booking(BookingCreate(**booking_payload(**kwargs)))


class FakePaymentProvider:
    """Stands in for PaystackService; records calls and returns canned data."""

    def __init__(self):
        self.initialized: list[dict] = []
        self.verified: list[str] = []
        self.verify_results: dict[str, dict] = {}
        self.fail_with: Optional[str] = None

    def is_available(self) -> bool:
        return True

    async def initialize_transaction(
        self, email, amount, reference, currency="NGN", callback_url=None, metadata=None
    ):
        if self.fail_with:
            raise PaymentProviderError(f"Payment provider error: {self.fail_with}")
        self.initialized.append(
            {"email": email, "amount": amount, "reference": reference, "currency": currency}
        )
        return {
            "authorization_url": f"https://checkout.paystack.com/{reference}",
            "access_code": f"ac_{reference[-8:]}",
            "reference": reference,
        }

    async def verify_transaction(self, reference):
        self.verified.append(reference)
        return self.verify_results.get(reference, {"reference": reference, "status": "ongoing"})


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'partypallet_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return NotificationQueue()


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setattr(auth, "_admin_keys", {ADMIN_TOKEN: ADMIN_ID})
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(payments_router, "PAYSTACK_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture
def client(session_factory, notifier, payment_provider):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_queue] = lambda: notifier
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    # Not used as a context manager: the lifespan would create tables on the default engine
    yield TestClient(app)
    app.dependency_overrides.clear()
