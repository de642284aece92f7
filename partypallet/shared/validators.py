"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a mobile phone number and strip formatting characters.

    Accepts local (08012345678) and international (+2348012345678) forms.

    Args:
        phone: Phone number string in various formats

    Returns:
        Phone number with spaces, dashes and brackets removed

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        raise ValueError("Phone number is required")

    cleaned = re.sub(r"[\s\-().]", "", phone.strip())
    digits = cleaned[1:] if cleaned.startswith("+") else cleaned

    if not digits.isdigit() or not 7 <= len(digits) <= 15:
        raise ValueError("Please enter a valid phone number")

    return cleaned


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time_string(value: Optional[str]) -> str:
    """
    Validate a clock time and normalize it to zero-padded HH:MM.

    One- or two-digit hours are accepted ("9:30" becomes "09:30").

    Raises:
        ValueError: If the value is not a valid 24-hour clock time
    """
    if not isinstance(value, str):
        raise ValueError("Time must be in HH:MM format")

    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format")

    return f"{int(match.group(1)):02d}:{match.group(2)}"
