"""Field rules applied by the customer form before anything is submitted.

The form is stricter than the API on two lengths (name and address); the
server limits live in ``crm.v1_0.schemas.customer_schema``.
"""
import re
from typing import Any, Dict, Mapping, Optional

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_RE = re.compile(r"[\d\s\-+()]{10,}")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
ADDRESS_MIN_LENGTH = 5
ADDRESS_MAX_LENGTH = 100


def validate_email(email: str) -> bool:
    return EMAIL_RE.fullmatch(email) is not None


def validate_phone_number(phone: str) -> bool:
    return PHONE_RE.fullmatch(phone) is not None


def _get(data: Any, name: str) -> Optional[str]:
    if isinstance(data, Mapping):
        return data.get(name)
    return getattr(data, name, None)


def validate_customer(data: Any) -> Dict[str, str]:
    """Return ``{field: message}`` for every failing field; empty means valid.

    ``data`` may be a ``CustomerFormData``, a ``CustomerPayload`` or a plain
    mapping keyed by field name. Missing fields count as empty.
    """
    errors: Dict[str, str] = {}

    full_name = (_get(data, "full_name") or "").strip()
    if not full_name:
        errors["full_name"] = "Full name is required"
    elif len(full_name) < NAME_MIN_LENGTH:
        errors["full_name"] = f"Full name must be at least {NAME_MIN_LENGTH} characters"
    elif len(full_name) > NAME_MAX_LENGTH:
        errors["full_name"] = f"Full name must not exceed {NAME_MAX_LENGTH} characters"

    email = _get(data, "email") or ""
    if not email.strip():
        errors["email"] = "Email is required"
    elif not validate_email(email):
        errors["email"] = "Please enter a valid email address"

    phone = _get(data, "phone_number") or ""
    if not phone.strip():
        errors["phone_number"] = "Phone number is required"
    elif not validate_phone_number(phone):
        errors["phone_number"] = "Please enter a valid phone number"

    address = (_get(data, "address") or "").strip()
    if not address:
        errors["address"] = "Address is required"
    elif len(address) < ADDRESS_MIN_LENGTH:
        errors["address"] = f"Address must be at least {ADDRESS_MIN_LENGTH} characters"
    elif len(address) > ADDRESS_MAX_LENGTH:
        errors["address"] = f"Address must not exceed {ADDRESS_MAX_LENGTH} characters"

    return errors


def is_valid(data: Any) -> bool:
    return not validate_customer(data)
