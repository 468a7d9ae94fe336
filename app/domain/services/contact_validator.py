"""Contact form validation rules."""

import re
from typing import Dict, Optional

from app.domain.models import ContactField, ContactForm

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_MESSAGES = {
    ContactField.FIRST_NAME: "First name is required",
    ContactField.LAST_NAME: "Last name is required",
    ContactField.EMAIL: "Email is required",
}
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value or ""))


def validate_field(contact_field: ContactField, value: str) -> Optional[str]:
    """Error message for a single field, or None when it is valid"""
    if not (value or "").strip():
        return REQUIRED_MESSAGES[contact_field]
    if contact_field == ContactField.EMAIL and not is_valid_email(value):
        return INVALID_EMAIL_MESSAGE
    return None


def validate_contact(contact: ContactForm) -> Dict[ContactField, str]:
    errors = {}
    for contact_field in ContactField:
        message = validate_field(contact_field, contact.get_value(contact_field))
        if message:
            errors[contact_field] = message
    return errors


def is_contact_complete(contact: ContactForm) -> bool:
    return not validate_contact(contact)
