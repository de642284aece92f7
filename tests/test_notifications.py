"""Tests for the post-commit notification queue and email templates."""

import pytest
from fastapi import BackgroundTasks

from partypallet.email_service import EMAIL_TEMPLATES
from partypallet.services.notification_service import (
    Notification,
    NotificationQueue,
    deliver_notification,
)

SAMPLE = {
    "bookingId": "b-1",
    "clientName": "Ada Obi",
    "clientEmail": "ada@example.com",
    "clientPhone": "+2348012345678",
    "eventType": "Birthday",
    "eventDate": "December 24, 2026",
    "startTime": "14:00",
    "endTime": "18:00",
    "location": "12 Admiralty Way, Lekki",
    "consultationMode": "whatsapp",
    "estimate": 150000,
    "overnightSurcharge": 0,
    "isOvernight": False,
    "depositRequired": 50000,
    "currency": "NGN",
    "status": "deposit-paid",
    "notes": None,
    "note": "See you soon",
    "reason": "Venue unavailable",
    "reference": "party_pallet_1_abc",
    "amount": 50000,
    "paymentStatus": "success",
    "paymentDate": "October 18, 2026, 10:15 AM",
    "channel": "card",
    "failureReason": None,
}


@pytest.mark.parametrize("name", sorted(EMAIL_TEMPLATES))
def test_every_template_renders_mjml(name):
    subject_for, render = EMAIL_TEMPLATES[name]

    assert subject_for(SAMPLE)
    assert "<mjml>" in render(SAMPLE)


async def test_delivery_failure_is_logged_not_raised():
    async def failing_sender(template, to, data):
        raise RuntimeError("Resend is down")

    delivered = await deliver_notification(Notification("status_update", "ada@example.com"), failing_sender)

    assert delivered is False


async def test_delivery_success():
    calls = []

    async def sender(template, to, data):
        calls.append((template, to))
        return {"id": "email-1"}

    assert await deliver_notification(Notification("cancellation", "ada@example.com"), sender)
    assert calls == [("cancellation", "ada@example.com")]


def test_queue_schedules_background_tasks():
    tasks = BackgroundTasks()
    queue = NotificationQueue(tasks)

    queue.send("status_update", "ada@example.com", {"status": "confirmed"})
    queue.send("status_update", None, {"status": "confirmed"})

    assert len(queue.sent) == 1
    assert len(tasks.tasks) == 1
