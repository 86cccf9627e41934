"""Tests for checkout form validation."""

import pytest

from storefront.validation import NIGERIAN_STATES, validate_checkout_form


def _form(**overrides: str) -> dict:
    data = {
        "firstName": "Amara",
        "lastName": "Okafor",
        "email": "amara@gmail.com",
        "phone": "08012345678",
        "address": "14B Adesola Street, Lekki Phase 1",
        "city": "Lagos",
        "state": "Lagos",
    }
    data.update(overrides)
    return data


class TestValidForm:

    def test_valid_form_parses(self):
        form, errors = validate_checkout_form(_form())
        assert errors == {}
        assert form.first_name == "Amara"
        assert form.full_name == "Amara Okafor"
        assert form.delivery_address == "14B Adesola Street, Lekki Phase 1, Lagos, Lagos"

    def test_there_are_37_states(self):
        assert len(NIGERIAN_STATES) == 37
        assert "FCT - Abuja" in NIGERIAN_STATES


class TestFieldErrors:

    def test_bad_email_reports_only_email(self):
        form, errors = validate_checkout_form(_form(email="not-an-email"))
        assert form is None
        assert errors == {"email": "Please enter a valid email address"}

    def test_empty_form_reports_one_error_per_field(self):
        form, errors = validate_checkout_form({})
        assert form is None
        assert set(errors) == {"firstName", "lastName", "email", "phone", "address", "city", "state"}
        assert errors["firstName"] == "First name must be at least 2 characters"
        assert errors["state"] == "State is required"

    def test_name_too_long(self):
        _, errors = validate_checkout_form(_form(lastName="x" * 51))
        assert errors == {"lastName": "Last name too long"}

    def test_name_at_bounds(self):
        _, errors = validate_checkout_form(_form(firstName="Jo", lastName="x" * 50))
        assert errors == {}

    def test_short_address(self):
        _, errors = validate_checkout_form(_form(address="Lek"))
        assert errors == {"address": "Please enter your delivery address"}

    def test_short_city(self):
        _, errors = validate_checkout_form(_form(city="L"))
        assert errors == {"city": "City is required"}

    def test_state_must_be_listed(self):
        _, errors = validate_checkout_form(_form(state="California"))
        assert errors == {"state": "Please select a valid state"}


class TestPhone:

    @pytest.mark.parametrize("phone", ["08012345678", "+2348012345678", "2349012345678", "07012345678"])
    def test_nigerian_numbers_accepted(self, phone):
        _, errors = validate_checkout_form(_form(phone=phone))
        assert errors == {}

    def test_lenient_fallback_accepts_ten_characters(self):
        _, errors = validate_checkout_form(_form(phone="5551234567"))
        assert errors == {}

    def test_short_number_rejected(self):
        _, errors = validate_checkout_form(_form(phone="0801234"))
        assert errors == {"phone": "Enter a valid Nigerian phone number"}
