"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Callable, Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    admin_new_booking_template,
    admin_payment_template,
    cancellation_template,
    client_confirmation_template,
    event_completion_template,
    payment_confirmation_template,
    payment_failure_template,
    status_update_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email could not be compiled or handed to Resend"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns an object/dict with 'html' and 'errors'
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# template name -> (subject builder, MJML template)
EMAIL_TEMPLATES: dict[str, tuple[Callable[[dict], str], Callable[[dict], str]]] = {
    "client_confirmation": (
        lambda d: f"Booking Confirmation - {d.get('eventType')} on {d.get('eventDate')}",
        client_confirmation_template,
    ),
    "admin_new_booking": (
        lambda d: f"New Booking: {d.get('clientName')} - {d.get('eventDate')}",
        admin_new_booking_template,
    ),
    "status_update": (
        lambda d: f"Booking Status Update - {d.get('status')}",
        status_update_template,
    ),
    "cancellation": (
        lambda d: "Booking Cancellation - Party Pallet",
        cancellation_template,
    ),
    "event_completion": (
        lambda d: "Thank You for Celebrating with Party Pallet",
        event_completion_template,
    ),
    "payment_confirmation": (
        lambda d: "Payment Confirmation - Party Pallet",
        payment_confirmation_template,
    ),
    "payment_failure": (
        lambda d: "Payment Issue - Party Pallet",
        payment_failure_template,
    ),
    "admin_payment": (
        lambda d: f"Payment {d.get('paymentStatus')}: {d.get('reference')}",
        admin_payment_template,
    ),
}


async def send_template_email(template: str, to: str, data: dict) -> dict:
    """Render a named template with ``data`` and send it"""
    if template not in EMAIL_TEMPLATES:
        raise EmailDeliveryError(f"Unknown email template '{template}'")

    subject_for, render = EMAIL_TEMPLATES[template]
    return await send_email(to=to, subject=subject_for(data), mjml_content=render(data))
