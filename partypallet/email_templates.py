"""
MJML Email Templates
Booking, status and payment emails using MJML for responsive, cross-client compatibility
"""

from datetime import datetime
from typing import Optional

from .config import FRONTEND_URL, SUPPORT_EMAIL, WHATSAPP_NUMBER

# Party Pallet theme - warm brown/gold color scheme
THEME = {
    "primary": "#DAA520",
    "primary_dark": "#8B4513",
    "primary_light": "#FFF5E1",
    "background": "#FFF5E1",
    "card_bg": "#F5F5DC",
    "text_primary": "#5C2E0A",
    "text_secondary": "#8B4513",
    "text_muted": "#A0522D",
    "border": "#E8D8B0",
    "success": "#2E8B57",
    "warning": "#f59e0b",
    "danger": "#B22222",
}

WHATSAPP_URL = f"https://wa.me/{WHATSAPP_NUMBER}"
ADMIN_URL = f"{FRONTEND_URL}/admin"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="{THEME['primary_light']}"
              font-weight="600"
              border-radius="5px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="{THEME['primary_dark']}" padding="15px 20px">
          <mj-column>
            <mj-text align="center" font-size="28px" font-weight="700" color="{THEME['primary_light']}" padding="0">
              Party Pallet
            </mj-text>
            <mj-text align="center" font-size="14px" color="{THEME['primary_light']}" padding="5px 0 0 0">
              Creating Beautiful Celebrations
            </mj-text>
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="{THEME['card_bg']}" padding="25px 40px 40px 40px">
          <mj-column>
            <mj-text font-size="22px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="14px" color="{THEME['text_secondary']}" padding="0">
              Contact us:
              <a href="{WHATSAPP_URL}" style="color: {THEME['primary']}; text-decoration: none;">WhatsApp</a> |
              <a href="mailto:{SUPPORT_EMAIL}" style="color: {THEME['primary']}; text-decoration: none;">Email</a>
            </mj-text>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="12px 0 0 0">
              © {datetime.now().year} Party Pallet. All rights reserved.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, Optional[str]]]) -> str:
    """Render label/value pairs as a bordered MJML table, skipping empty values"""
    cells = "".join(
        f"""
        <tr>
          <td style="padding: 6px 0; color: {THEME['text_muted']}; width: 45%;">{label}</td>
          <td style="padding: 6px 0; color: {THEME['text_primary']}; font-weight: 600;">{value}</td>
        </tr>"""
        for label, value in rows
        if value not in (None, "")
    )
    return f"""
    <mj-table padding="10px 0 20px 0" font-size="15px">
      {cells}
    </mj-table>
    """


def _money(amount, currency: str) -> str:
    return f"{float(amount or 0):,.2f} {currency}"


def _contact_line() -> str:
    return f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      For any questions, reach us on <a href="{WHATSAPP_URL}" style="color: {THEME['primary']};">WhatsApp</a>
      or email <a href="mailto:{SUPPORT_EMAIL}" style="color: {THEME['primary']};">{SUPPORT_EMAIL}</a>.
    </mj-text>
    """


def client_confirmation_template(data: dict) -> str:
    """Booking received confirmation for the client"""
    currency = data.get("currency", "NGN")
    rows = [
        ("Date", data.get("eventDate")),
        ("Time", f"{data.get('startTime')} - {data.get('endTime')}"),
        ("Location", data.get("location")),
        ("Estimated Cost", _money(data.get("estimate"), currency)),
        (
            "Overnight Surcharge",
            _money(data.get("overnightSurcharge"), currency) if data.get("isOvernight") else None,
        ),
        ("Deposit Required", _money(data.get("depositRequired"), currency)),
    ]
    content = f"""
    <mj-text>Dear {data.get('clientName')},</mj-text>
    <mj-text>
      Thank you for booking with Party Pallet! Your <strong>{data.get('eventType')}</strong>
      event is scheduled as follows:
    </mj-text>
    {_detail_rows(rows)}
    <mj-text>We'll contact you soon to finalize details.</mj-text>
    {_contact_line()}
    """
    return get_base_template(
        title="Booking Confirmation",
        preview_text=f"Your {data.get('eventType')} booking on {data.get('eventDate')} was received",
        content_sections=content,
    )


def admin_new_booking_template(data: dict) -> str:
    """New booking notice for the business"""
    currency = data.get("currency", "NGN")
    rows = [
        ("Client", data.get("clientName")),
        ("Email", data.get("clientEmail")),
        ("Phone", data.get("clientPhone")),
        ("Event", data.get("eventType")),
        ("Date", data.get("eventDate")),
        ("Time", f"{data.get('startTime')} - {data.get('endTime')}"),
        ("Location", data.get("location")),
        ("Consultation", data.get("consultationMode")),
        ("Estimate", _money(data.get("estimate"), currency)),
        ("Overnight", "Yes" if data.get("isOvernight") else "No"),
        ("Notes", data.get("notes")),
    ]
    content = f"""
    <mj-text>A new booking has been received:</mj-text>
    {_detail_rows(rows)}
    <mj-text>Please review the booking in the admin dashboard.</mj-text>
    """
    return get_base_template(
        title="New Booking Notification",
        preview_text=f"New {data.get('eventType')} booking from {data.get('clientName')}",
        content_sections=content,
        cta_url=f"{ADMIN_URL}/bookings/{data.get('bookingId')}",
        cta_label="View Booking",
    )


def status_update_template(data: dict) -> str:
    """Booking status change for the client"""
    note = ""
    if data.get("note"):
        note = f'<mj-text font-style="italic">Note: {data["note"]}</mj-text>'

    content = f"""
    <mj-text>Dear {data.get('clientName')},</mj-text>
    <mj-text align="center" font-size="18px" padding="10px 0 0 0">Your booking status has been updated to:</mj-text>
    <mj-text align="center" font-size="24px" font-weight="700" color="{THEME['primary']}" padding="4px 0 16px 0">
      {data.get('status')}
    </mj-text>
    <mj-text>
      Your booking for a <strong>{data.get('eventType')}</strong> on <strong>{data.get('eventDate')}</strong>
      at <strong>{data.get('startTime')}</strong> is now <strong>{data.get('status')}</strong>.
    </mj-text>
    {note}
    {_contact_line()}
    """
    return get_base_template(
        title="Booking Status Update",
        preview_text=f"Your booking is now {data.get('status')}",
        content_sections=content,
    )


def cancellation_template(data: dict) -> str:
    """Booking cancellation for the client"""
    rows = [
        ("Event", data.get("eventType")),
        ("Date", data.get("eventDate")),
        ("Time", f"{data.get('startTime')} - {data.get('endTime')}"),
        ("Reason", data.get("reason")),
    ]
    content = f"""
    <mj-text>Dear {data.get('clientName')},</mj-text>
    <mj-text>
      We regret to inform you that your booking for a <strong>{data.get('eventType')}</strong>
      on <strong>{data.get('eventDate')}</strong> has been cancelled.
    </mj-text>
    {_detail_rows(rows)}
    <mj-text>We apologize for any inconvenience. If you would like to reschedule, please get in touch.</mj-text>
    {_contact_line()}
    """
    return get_base_template(
        title="Booking Cancellation",
        preview_text=f"Your booking on {data.get('eventDate')} has been cancelled",
        content_sections=content,
    )


def event_completion_template(data: dict) -> str:
    """Thank-you note once an event is marked completed"""
    content = f"""
    <mj-text>Dear {data.get('clientName')},</mj-text>
    <mj-text>
      Thank you for choosing Party Pallet for your <strong>{data.get('eventType')}</strong> event on
      <strong>{data.get('eventDate')}</strong>. We hope everything was perfect!
    </mj-text>
    <mj-text>We would love to hear your feedback. Your review helps us improve.</mj-text>
    {_contact_line()}
    """
    return get_base_template(
        title="Event Completed - Thank You!",
        preview_text="Thank you for celebrating with Party Pallet",
        content_sections=content,
        cta_url=FRONTEND_URL,
        cta_label="Leave a Testimonial",
    )


def payment_confirmation_template(data: dict) -> str:
    """Deposit received confirmation for the client"""
    currency = data.get("currency", "NGN")
    rows = [
        ("Reference", data.get("reference")),
        ("Amount Paid", _money(data.get("amount"), currency)),
        ("Payment Date", data.get("paymentDate")),
        ("Event", data.get("eventType")),
        ("Event Date", data.get("eventDate")),
    ]
    content = f"""
    <mj-text>Dear {data.get('clientName')},</mj-text>
    <mj-text>
      Thank you for your payment! We've successfully received your deposit for your upcoming
      <strong>{data.get('eventType')}</strong> event.
    </mj-text>
    <mj-text align="center" font-size="32px" font-weight="700" color="{THEME['success']}" padding="16px 0">
      {_money(data.get('amount'), currency)}
    </mj-text>
    {_detail_rows(rows)}
    <mj-text>
      Your booking status is now <strong style="color: {THEME['primary']};">{data.get('status', 'deposit-paid')}</strong>.
      We'll be in touch soon to finalize the details for your event.
    </mj-text>
    {_contact_line()}
    """
    return get_base_template(
        title="Payment Confirmation",
        preview_text=f"Payment received - {data.get('reference')}",
        content_sections=content,
    )


def payment_failure_template(data: dict) -> str:
    """Failed payment notice for the client"""
    currency = data.get("currency", "NGN")
    rows = [
        ("Reference", data.get("reference")),
        ("Amount", _money(data.get("amount"), currency)),
        ("Reason", data.get("failureReason")),
    ]
    content = f"""
    <mj-text>Dear {data.get('clientName')},</mj-text>
    <mj-text>
      We encountered an issue processing your payment for your <strong>{data.get('eventType')}</strong>
      event on <strong>{data.get('eventDate')}</strong>.
    </mj-text>
    {_detail_rows(rows)}
    <mj-text>
      This could be due to insufficient funds, an expired card, or other bank issues. Please try again
      with a different payment method or contact your bank.
    </mj-text>
    {_contact_line()}
    """
    return get_base_template(
        title="Payment Issue",
        preview_text="We could not process your payment",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/booking/{data.get('bookingId')}/payment",
        cta_label="Retry Payment",
    )


def admin_payment_template(data: dict) -> str:
    """Payment outcome notice for the business"""
    currency = data.get("currency", "NGN")
    succeeded = data.get("paymentStatus") == "success"
    rows = [
        ("Client", data.get("clientName")),
        ("Reference", data.get("reference")),
        ("Amount", _money(data.get("amount"), currency)),
        ("Channel", data.get("channel")),
        ("Event Date", data.get("eventDate")),
        ("Failure Reason", None if succeeded else data.get("failureReason")),
    ]
    content = f"""
    <mj-text>A payment for booking <strong>{data.get('bookingId')}</strong> has
      {"succeeded" if succeeded else "failed"}:</mj-text>
    {_detail_rows(rows)}
    """
    return get_base_template(
        title="Payment Received" if succeeded else "Payment Failed",
        preview_text=f"Payment {data.get('reference')} {data.get('paymentStatus')}",
        content_sections=content,
        cta_url=f"{ADMIN_URL}/bookings/{data.get('bookingId')}",
        cta_label="View Booking",
    )
