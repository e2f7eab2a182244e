"""Shipping address value object and the rules a deliverable address must meet."""

import re

from protean.fields import String

from checkout.domain import checkout
from checkout.errors import CheckoutValidationError

POSTAL_CODE_PATTERN = re.compile(r"^\d{6}$")
PHONE_PATTERN = re.compile(r"^[+]?[\d\s-]{10,}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ADDRESS_FIELDS = ("full_name", "email", "phone", "address", "city", "state", "postal_code", "country")
REQUIRED_FIELDS = ("full_name", "email", "phone", "address", "city", "postal_code")
DEFAULT_COUNTRY = "India"

_LABELS = {
    "full_name": "Full name",
    "email": "Email",
    "phone": "Phone",
    "address": "Address",
    "city": "City",
    "postal_code": "Postal code",
}


@checkout.value_object
class ShippingAddress:
    """Where an order goes. Copied onto drafts and orders, never shared by reference."""

    full_name: String(required=True, max_length=255)
    email: String(required=True, max_length=255)
    phone: String(required=True, max_length=30)
    address: String(required=True, max_length=500)
    city: String(required=True, max_length=100)
    state: String(max_length=100)
    postal_code: String(required=True, max_length=6)
    country: String(max_length=100, default=DEFAULT_COUNTRY)


def digits_only(value) -> str:
    return re.sub(r"\D", "", str(value or ""))


def clean_address(data: dict) -> dict:
    """Trim and check an address payload; return the cleaned copy.

    Raises ``CheckoutValidationError`` listing every failing field at once.
    """
    cleaned = {name: str(data.get(name) or "").strip() for name in ADDRESS_FIELDS}
    cleaned["country"] = cleaned["country"] or DEFAULT_COUNTRY
    cleaned["state"] = cleaned["state"] or None

    errors = {}
    for name in REQUIRED_FIELDS:
        if not cleaned[name]:
            errors[name] = [f"{_LABELS[name]} is required."]

    if cleaned["email"] and not EMAIL_PATTERN.match(cleaned["email"]):
        errors["email"] = ["Enter a valid email address."]
    if cleaned["phone"] and (not PHONE_PATTERN.match(cleaned["phone"]) or len(digits_only(cleaned["phone"])) < 10):
        errors["phone"] = ["Enter a valid phone number with at least 10 digits."]
    if cleaned["postal_code"] and not POSTAL_CODE_PATTERN.match(cleaned["postal_code"]):
        errors["postal_code"] = ["Postal code must be 6 digits."]

    if errors:
        raise CheckoutValidationError(errors)
    return cleaned


def address_fingerprint(data) -> str:
    """Identity of a saved address: same person, phone and place means the same address."""
    get = data.get if isinstance(data, dict) else lambda name: getattr(data, name, None)
    parts = (get("full_name"), get("phone"), get("address"), get("city"), get("postal_code"))
    return "|".join(str(part or "").strip().lower() for part in parts)
