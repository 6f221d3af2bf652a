"""Tests for payload validation against the service catalog."""

import pytest

from accounting_portal_api.app.services.catalog import (
    DECLARATION_MESSAGE,
    SERVICE_TYPES,
    get_service_type,
)
from accounting_portal_api.app.services.request_service import RequestService


VALID_PAYLOADS = {
    "ato-registration": {
        "fullName": "Una Client",
        "email": "una@example.com",
        "dateOfBirth": "1990-01-31",
        "phone": "0400 000 000",
        "postalAddress": "1 George St, Sydney NSW",
        "postalCode": "2000",
        "agreeToDeclaration": True,
    },
    "business-registration": {
        "fullName": "Una Client",
        "email": "una@example.com",
        "dateOfBirth": "1990-01-31",
        "phone": "0400 000 000",
        "postalAddress": "1 George St, Sydney NSW",
        "postalCode": "2000",
        "businessName": "Una's Bakery",
        "businessAddress": "2 George St, Sydney NSW",
        "agreeToDeclaration": True,
    },
    "company-registration": {
        "companyName": "Una Pty Ltd",
        "address": "1 George St",
        "postalCode": "2000",
        "taxFileNumber": "123456782",
        "agreeToDeclaration": True,
    },
    "trust-registration": {
        "trustName": "Una Family Trust",
        "address": "1 George St",
        "postalCode": "2000",
        "taxFileNumber": "123456782",
        "agreeToDeclaration": True,
    },
    "notice-assessment": {"year": "2023", "agreeToDeclaration": True},
    "tax-return-copy": {"year": "2023", "agreeToDeclaration": True},
    "bas-lodgement-copy": {"quarter": "Q1", "agreeToDeclaration": True},
    "ato-portal-copy": {"period": "FY2023", "details": "Income statement"},
    "payment-plan": {"planType": "fortnightly", "amount": 500, "agreeToDeclaration": True},
    "update-address": {"oldAddress": "1 George St", "newAddress": "5 Pitt St"},
}


def test_every_service_type_has_a_valid_example():
    assert set(VALID_PAYLOADS) == set(SERVICE_TYPES)


@pytest.mark.parametrize("service_type", sorted(VALID_PAYLOADS))
def test_complete_payload_is_valid(service_type):
    result = RequestService.validate(VALID_PAYLOADS[service_type], service_type)
    assert result.valid
    assert result.field_errors == {}


@pytest.mark.parametrize("service_type", sorted(VALID_PAYLOADS))
def test_each_required_field_is_reported_when_missing(service_type):
    config = get_service_type(service_type)
    for field in config.required_fields:
        payload = dict(VALID_PAYLOADS[service_type])
        del payload[field]
        result = RequestService.validate(payload, service_type)
        assert not result.valid
        assert list(result.field_errors) == [field]


def test_empty_payload_reports_fields_in_rule_order():
    result = RequestService.validate({}, "payment-plan")
    assert result.field_errors == {
        "planType": "Payment plan is required",
        "amount": "Amount is required",
        "agreeToDeclaration": DECLARATION_MESSAGE,
    }


def test_bas_lodgement_without_declaration():
    result = RequestService.validate({"quarter": "Q1", "agreeToDeclaration": False}, "bas-lodgement-copy")
    assert result.field_errors == {"agreeToDeclaration": "You must agree to the declaration"}


def test_declaration_must_be_true_not_truthy():
    result = RequestService.validate({"year": "2023", "agreeToDeclaration": "yes"}, "tax-return-copy")
    assert result.field_errors == {"agreeToDeclaration": DECLARATION_MESSAGE}


def test_blank_strings_count_as_missing():
    result = RequestService.validate({"oldAddress": "   ", "newAddress": ""}, "update-address")
    assert result.field_errors == {
        "oldAddress": "Current address is required",
        "newAddress": "New address is required",
    }


@pytest.mark.parametrize(
    "service_type, field, message",
    [
        ("update-address", "oldAddress", "Current address is required"),
        ("tax-return-copy", "year", "Year is required"),
        ("payment-plan", "amount", "Amount is required"),
        ("ato-registration", "email", "Email is required"),
        ("company-registration", "postalCode", "Postal code is required"),
    ],
)
def test_false_counts_as_missing(service_type, field, message):
    payload = dict(VALID_PAYLOADS[service_type], **{field: False})
    result = RequestService.validate(payload, service_type)
    assert not result.valid
    assert result.field_errors == {field: message}


def test_ato_portal_copy_requires_details():
    result = RequestService.validate({"period": "FY2023"}, "ato-portal-copy")
    assert result.field_errors == {"details": "Details are required"}


@pytest.mark.parametrize("amount", [0, -20, "abc", True])
def test_payment_plan_amount_must_be_positive(amount):
    payload = {"planType": "monthly", "amount": amount, "agreeToDeclaration": True}
    result = RequestService.validate(payload, "payment-plan")
    assert result.field_errors == {"amount": "Amount must be greater than zero"}


def test_payment_plan_amount_accepts_numeric_string():
    payload = {"planType": "monthly", "amount": "250.50", "agreeToDeclaration": True}
    assert RequestService.validate(payload, "payment-plan").valid


def test_invalid_email_and_postal_code():
    payload = dict(VALID_PAYLOADS["ato-registration"], email="not-an-email", postalCode="20000")
    result = RequestService.validate(payload, "ato-registration")
    assert result.field_errors == {
        "email": "Email is invalid",
        "postalCode": "Postal code must be 4 digits",
    }


def test_non_dict_payload_fails_every_rule():
    result = RequestService.validate(None, "tax-return-copy")
    assert set(result.field_errors) == {"year", "agreeToDeclaration"}


def test_unknown_service_type():
    with pytest.raises(ValueError, match="Service type lawn-mowing not found"):
        RequestService.validate({}, "lawn-mowing")
