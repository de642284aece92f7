"""HTTP tests through the FastAPI app with dependency overrides."""

import json

from partypallet.webhook_security import PAYSTACK_SIGNATURE_HEADER, compute_hmac_sha512

from .conftest import booking_payload, future_date, past_date


def create_booking(client, **kwargs):
    response = client.post("/bookings", json=booking_payload(**kwargs))
    assert response.status_code == 201, response.text
    return response.json()["booking"]


def signed_post(client, secret, payload):
    body = json.dumps(payload).encode()
    return client.post(
        "/payments/webhook",
        content=body,
        headers={
            PAYSTACK_SIGNATURE_HEADER: compute_hmac_sha512(secret, body),
            "Content-Type": "application/json",
        },
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestBookingEndpoints:
    def test_create_booking(self, client, notifier):
        day = future_date()

        booking = create_booking(client, day=day)

        assert booking["status"] == "pending"
        assert booking["event"]["date"] == day.isoformat()
        assert booking["event"]["durationHours"] == 4.0
        assert booking["pricing"]["totalAmount"] == 150000
        assert booking["statusHistory"][0]["note"] == "Booking created"
        assert notifier.sent[0].template == "client_confirmation"

    def test_invalid_submission_lists_fields(self, client):
        payload = booking_payload()
        payload["client"]["email"] = "not-an-email"
        payload["event"]["location"] = "Hall"

        response = client.post("/bookings", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["kind"] == "validation_error"
        fields = {error["field"] for error in body["errors"]}
        assert {"client.email", "event.location"} <= fields

    def test_conflict_is_409(self, client):
        day = future_date()
        create_booking(client, day=day)

        response = client.post("/bookings", json=booking_payload(day=day, start="15:00", end="16:00"))

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "message": "Time slot conflicts with existing booking",
            "kind": "slot_conflict",
        }

    def test_past_date_is_400(self, client):
        response = client.post("/bookings", json=booking_payload(day=past_date()))
        assert response.status_code == 400
        assert response.json()["kind"] == "past_date"

    def test_get_booking_is_public(self, client):
        booking = create_booking(client)

        response = client.get(f"/bookings/{booking['id']}")

        assert response.status_code == 200
        assert response.json()["booking"]["id"] == booking["id"]

    def test_missing_booking_is_404(self, client):
        response = client.get("/bookings/does-not-exist")
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_admin_endpoints_require_token(self, client):
        response = client.get("/bookings")
        assert response.status_code == 401
        assert response.json()["kind"] == "authentication_error"

        response = client.get("/bookings", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401

    def test_list_bookings(self, client, admin_headers):
        create_booking(client, day=future_date(11))
        create_booking(client, day=future_date(10))

        response = client.get("/bookings?limit=1", headers=admin_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["bookings"][0]["event"]["date"] == future_date(10).isoformat()
        assert body["pagination"]["total"] == 2

    def test_status_update_with_override(self, client, admin_headers):
        booking = create_booking(client)

        response = client.patch(
            f"/bookings/{booking['id']}/status",
            json={"status": "confirmed"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_status_transition"

        response = client.patch(
            f"/bookings/{booking['id']}/status",
            json={"status": "confirmed", "note": "Agreed by phone", "override": True},
            headers=admin_headers,
        )
        history = response.json()["booking"]["statusHistory"]
        assert response.status_code == 200
        assert history[-1]["note"] == "[override] Agreed by phone"
        assert history[-1]["changedBy"] == "admin-1"

    def test_cancel_releases_slot(self, client, admin_headers):
        day = future_date()
        booking = create_booking(client, day=day)

        response = client.patch(
            f"/bookings/{booking['id']}/cancel",
            json={"reason": "Venue unavailable"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["booking"]["status"] == "cancelled"
        slots = client.get(f"/availability?date={day.isoformat()}").json()["availability"][0]["slots"]
        assert slots == [{"start": "14:00", "end": "18:00", "status": "available", "note": None}]

    def test_edit_booking_moves_slot(self, client, admin_headers):
        day = future_date()
        booking = create_booking(client, day=day)

        response = client.patch(
            f"/bookings/{booking['id']}",
            json={"event": {"startTime": "09:00", "endTime": "11:00"}, "notes": "Morning instead"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["booking"]["event"]["startTime"] == "09:00"
        slots = client.get(f"/availability?date={day.isoformat()}").json()["availability"][0]["slots"]
        assert [(s["start"], s["status"]) for s in slots] == [("09:00", "booked"), ("14:00", "available")]


class TestAvailabilityEndpoints:
    def test_set_block_and_read(self, client, admin_headers):
        day = future_date()

        response = client.post(
            "/availability",
            json={"date": day.isoformat(), "slots": [{"start": "09:00", "end": "18:00"}]},
            headers=admin_headers,
        )
        assert response.status_code == 200

        response = client.post(
            "/availability/block",
            json={"date": day.isoformat(), "start": "12:00", "end": "13:00", "note": "Lunch"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        availability = client.get(f"/availability?date={day.isoformat()}").json()["availability"]
        assert [(s["start"], s["end"], s["status"]) for s in availability[0]["slots"]] == [
            ("09:00", "12:00", "available"),
            ("12:00", "13:00", "blocked"),
            ("13:00", "18:00", "available"),
        ]

    def test_set_availability_requires_admin(self, client):
        response = client.post("/availability", json={"date": future_date().isoformat()})
        assert response.status_code == 401

    def test_delete_past_date(self, client, admin_headers):
        response = client.delete(f"/availability/{past_date().isoformat()}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["kind"] == "past_date"

    def test_block_over_booking(self, client, admin_headers):
        day = future_date()
        create_booking(client, day=day)

        response = client.post(
            "/availability/block",
            json={"date": day.isoformat(), "start": "17:00", "end": "19:00"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "slot_booked"


class TestPaymentEndpoints:
    def _initialize(self, client, booking):
        response = client.post(
            "/payments/initialize",
            json={"bookingId": booking["id"], "amount": 50000, "email": "ada@example.com"},
        )
        assert response.status_code == 200, response.text
        return response.json()

    def test_initialize_returns_checkout_url_without_raw_payload(self, client):
        booking = create_booking(client)

        body = self._initialize(client, booking)

        assert body["authorizationUrl"].startswith("https://checkout.paystack.com/")
        assert body["payment"]["amount"] == 5000000
        assert body["payment"]["formattedAmount"] == "₦50,000.00"
        assert "raw" not in body["payment"]

    def test_provider_error_is_502(self, client, payment_provider):
        booking = create_booking(client)
        payment_provider.fail_with = "Invalid key"

        response = client.post(
            "/payments/initialize",
            json={"bookingId": booking["id"], "amount": 50000, "email": "ada@example.com"},
        )

        assert response.status_code == 502
        assert response.json()["kind"] == "payment_provider_error"

    def test_webhook_rejects_bad_signature(self, client, webhook_secret):
        response = client.post(
            "/payments/webhook",
            content=b'{"event":"charge.success"}',
            headers={PAYSTACK_SIGNATURE_HEADER: "0" * 128},
        )
        assert response.status_code == 401

    def test_webhook_rejects_missing_signature(self, client, webhook_secret):
        response = client.post("/payments/webhook", content=b'{"event":"charge.success"}')
        assert response.status_code == 401

    def test_webhook_applies_once(self, client, admin_headers, webhook_secret):
        booking = create_booking(client)
        reference = self._initialize(client, booking)["payment"]["reference"]
        payload = {
            "event": "charge.success",
            "data": {"reference": reference, "amount": 5000000, "channel": "card"},
        }

        first = signed_post(client, webhook_secret, payload)
        second = signed_post(client, webhook_secret, payload)

        assert first.status_code == 200
        assert second.status_code == 200
        detail = client.get(f"/bookings/{booking['id']}").json()["booking"]
        assert detail["status"] == "deposit-paid"
        assert [h["status"] for h in detail["statusHistory"]] == ["pending", "deposit-paid"]

        payment = client.get(f"/payments/booking/{booking['id']}").json()["payment"]
        assert payment["status"] == "success"

        details = client.get(
            f"/bookings/{booking['id']}/payment-details", headers=admin_headers
        ).json()["paymentDetails"]
        assert details["totalPaid"] == 50000
        assert details["payments"][0]["reference"] == reference

    def test_webhook_for_unknown_reference_is_acknowledged(self, client, webhook_secret):
        payload = {"event": "charge.success", "data": {"reference": "party_pallet_0_unknown"}}

        response = signed_post(client, webhook_secret, payload)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Webhook received"}

    def test_latest_payment_for_booking_without_payments(self, client):
        booking = create_booking(client)
        response = client.get(f"/payments/booking/{booking['id']}")
        assert response.status_code == 404
