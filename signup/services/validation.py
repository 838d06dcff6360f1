"""Field format checks performed before any storage access."""

from __future__ import annotations

import re

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from signup.services.errors import ValidationError

NAME_PATTERN = re.compile(r"^[\x20A-Za-z0-9._%+\-@]{3,50}$")
SIGNUP_EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\].,;:\s@"]+(\.[^<>()\[\].,;:\s@"]+)*)|(".+"))'
    r'@(([^<>()\[\].,;:\s@"]+\.)+[^<>()\[\].,;:\s@"]{2,})$',
    re.IGNORECASE,
)
RESEND_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,6}$")


def is_valid_name(name: str) -> bool:
    """Return True when ``name`` is an acceptable user name."""
    return NAME_PATTERN.fullmatch(name) is not None


def is_valid_signup_email(email: str) -> bool:
    """Return True when ``email`` passes the signup email pattern."""
    return SIGNUP_EMAIL_PATTERN.fullmatch(email) is not None


def validate_signup_fields(name: str | None, email: str | None, password: str | None) -> None:
    """Raise ValidationError for the first problem with signup input."""
    if not password:
        raise ValidationError("A password is required!")
    if not name and not email:
        raise ValidationError("A user name or email is required!")
    if name and not is_valid_name(name):
        raise ValidationError("You have entered an invalid name!")
    if email and not is_valid_signup_email(email):
        raise ValidationError("You have entered an invalid email address!")


def validate_resend_email(email: str | None) -> str:
    """Return the email when it is usable for a resend request."""
    if not email or RESEND_EMAIL_PATTERN.fullmatch(email) is None:
        raise ValidationError("Email is invalid")
    return email


def normalize_phone(phone: str | None, default_region: str) -> str | None:
    """Return digits-only E.164 phone number, or None when no phone was given.

    Values of one character or less count as "no phone requested".
    """
    if phone is None or len(phone) <= 1:
        return None
    try:
        parsed = phonenumbers.parse(phone, default_region)
    except NumberParseException as exc:
        raise ValidationError("You have entered an invalid phone number") from exc
    if not phonenumbers.is_valid_number(parsed):
        raise ValidationError("You have entered an invalid phone number")
    formatted = phonenumbers.format_number(parsed, PhoneNumberFormat.E164)
    return re.sub(r"\D", "", formatted)
