"""Tests for shipping address validation."""

import pytest
from checkout.errors import CheckoutValidationError
from checkout.shared.address import address_fingerprint, clean_address


@pytest.fixture
def address():
    return {
        "full_name": "  Asha Rao ",
        "email": "asha@example.com",
        "phone": "+91 98765-43210",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "postal_code": "560001",
    }


class TestCleanAddress:
    def test_trims_and_defaults_country(self, address):
        cleaned = clean_address(address)
        assert cleaned["full_name"] == "Asha Rao"
        assert cleaned["country"] == "India"
        assert cleaned["state"] is None

    def test_reports_every_missing_field(self):
        with pytest.raises(CheckoutValidationError) as exc:
            clean_address({})
        assert set(exc.value.messages) == {"full_name", "email", "phone", "address", "city", "postal_code"}

    @pytest.mark.parametrize("postal_code", ["56001", "5600011", "56OO01"])
    def test_postal_code_must_be_six_digits(self, address, postal_code):
        address["postal_code"] = postal_code
        with pytest.raises(CheckoutValidationError) as exc:
            clean_address(address)
        assert "postal_code" in exc.value.messages

    @pytest.mark.parametrize("phone", ["12345", "98765x43210", "+91 987-654"])
    def test_phone_needs_ten_digits(self, address, phone):
        address["phone"] = phone
        with pytest.raises(CheckoutValidationError) as exc:
            clean_address(address)
        assert "phone" in exc.value.messages

    def test_email_must_look_like_email(self, address):
        address["email"] = "asha.example.com"
        with pytest.raises(CheckoutValidationError) as exc:
            clean_address(address)
        assert exc.value.messages == {"email": ["Enter a valid email address."]}


class TestFingerprint:
    def test_ignores_case_and_whitespace(self, address):
        other = {**address, "full_name": "ASHA RAO", "city": " bengaluru "}
        assert address_fingerprint(clean_address(address)) == address_fingerprint(clean_address(other))

    def test_email_is_not_part_of_identity(self, address):
        other = {**address, "email": "other@example.com"}
        assert address_fingerprint(address) == address_fingerprint(other)
