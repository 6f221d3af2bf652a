"""
Catalog of the service types clients can request.

Every service type follows the same request lifecycle and differs only
in the data recorded here: where its requests are stored, which
payload fields it accepts, which of them are required and how its form
buttons are labelled.  Adding a service type means adding one
``ServiceTypeConfig`` to ``SERVICE_TYPES``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..schemas.request import DisplayLabels, ServiceTypeRead


DECLARATION_MESSAGE = "You must agree to the declaration"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_POSTAL_CODE_RE = re.compile(r"^\d{4}$")


def _is_blank(value: Any) -> bool:
    # An unchecked box arrives as False and counts as missing.
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one payload field.

    ``kind`` is one of ``required``, ``declaration``, ``email``,
    ``postal_code`` or ``positive``.  ``message`` is reported when the
    field is missing; ``invalid_message`` when it is present but
    malformed.
    """

    field: str
    kind: str = "required"
    message: str = ""
    invalid_message: str = ""

    def check(self, payload: Dict[str, Any]) -> Optional[str]:
        """Return the error message for ``payload`` or ``None`` if it passes."""
        value = payload.get(self.field)
        if self.kind == "declaration":
            return None if value is True else (self.message or DECLARATION_MESSAGE)
        if _is_blank(value):
            return self.message
        if self.kind == "email":
            if not isinstance(value, str) or not _EMAIL_RE.match(value.strip()):
                return self.invalid_message
        elif self.kind == "postal_code":
            if not _POSTAL_CODE_RE.match(str(value).strip()):
                return self.invalid_message
        elif self.kind == "positive":
            if isinstance(value, bool):
                return self.invalid_message
            try:
                number = float(value)
            except (TypeError, ValueError):
                return self.invalid_message
            if not number > 0:
                return self.invalid_message
        return None


@dataclass(frozen=True)
class ServiceTypeConfig:
    """Everything that distinguishes one service type from another."""

    slug: str
    label: str
    category: str
    collection_name: str
    body_key: str
    fields: Tuple[str, ...]
    rules: Tuple[FieldRule, ...]
    display_labels: DisplayLabels = field(default_factory=DisplayLabels)

    @property
    def requires_declaration(self) -> bool:
        return any(rule.kind == "declaration" for rule in self.rules)

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(rule.field for rule in self.rules)

    def to_schema(self) -> ServiceTypeRead:
        return ServiceTypeRead(
            slug=self.slug,
            label=self.label,
            category=self.category,
            body_key=self.body_key,
            fields=list(self.fields),
            required_fields=list(self.required_fields),
            requires_declaration=self.requires_declaration,
            display_labels=self.display_labels,
        )


_DECLARATION = FieldRule("agreeToDeclaration", "declaration")

_PERSON_RULES = (
    FieldRule("fullName", message="Full name is required"),
    FieldRule("email", "email", "Email is required", "Email is invalid"),
    FieldRule("dateOfBirth", message="Date of birth is required"),
    FieldRule("phone", message="Phone number is required"),
    FieldRule("postalAddress", message="Postal address is required"),
    FieldRule("postalCode", "postal_code", "Postal code is required", "Postal code must be 4 digits"),
)

_PERSON_FIELDS = (
    "fullName",
    "email",
    "dateOfBirth",
    "phone",
    "postalAddress",
    "postalCode",
    "abn",
    "gst",
    "fuelTaxCredit",
)


SERVICE_TYPES: Dict[str, ServiceTypeConfig] = {
    config.slug: config
    for config in (
        ServiceTypeConfig(
            slug="ato-registration",
            label="ATO Registration",
            category="Registration",
            collection_name="atoRegistrations",
            body_key="registrationData",
            fields=_PERSON_FIELDS + ("agreeToDeclaration",),
            rules=_PERSON_RULES + (_DECLARATION,),
        ),
        ServiceTypeConfig(
            slug="business-registration",
            label="Business Registration",
            category="Registration",
            collection_name="businessRegistrations",
            body_key="registrationData",
            fields=_PERSON_FIELDS + ("businessName", "businessAddress", "agreeToDeclaration"),
            rules=_PERSON_RULES
            + (
                FieldRule("businessName", message="Business name is required"),
                FieldRule("businessAddress", message="Business address is required"),
                _DECLARATION,
            ),
        ),
        ServiceTypeConfig(
            slug="company-registration",
            label="Company Registration",
            category="Registration",
            collection_name="companyRegistrations",
            body_key="companyRegistrationData",
            fields=(
                "companyName",
                "companyType",
                "companyAddress",
                "address",
                "postalCode",
                "taxFileNumber",
                "position",
                "authorizedPersons",
                "agreeToDeclaration",
            ),
            rules=(
                FieldRule("companyName", message="Company name is required"),
                FieldRule("address", message="Address is required"),
                FieldRule("postalCode", "postal_code", "Postal code is required", "Postal code must be 4 digits"),
                FieldRule("taxFileNumber", message="Tax file number is required"),
                _DECLARATION,
            ),
        ),
        ServiceTypeConfig(
            slug="trust-registration",
            label="Trust Registration",
            category="Registration",
            collection_name="trustRegistrations",
            body_key="trustRegistrationData",
            fields=(
                "trustName",
                "trustType",
                "trustAddress",
                "address",
                "postalCode",
                "taxFileNumber",
                "position",
                "trustees",
                "agreeToDeclaration",
            ),
            rules=(
                FieldRule("trustName", message="Trust name is required"),
                FieldRule("address", message="Address is required"),
                FieldRule("postalCode", "postal_code", "Postal code is required", "Postal code must be 4 digits"),
                FieldRule("taxFileNumber", message="Tax file number is required"),
                _DECLARATION,
            ),
        ),
        ServiceTypeConfig(
            slug="notice-assessment",
            label="Notice of Assessment",
            category="Documentation",
            collection_name="noticeAssessments",
            body_key="assessmentData",
            fields=("year", "details", "agreeToDeclaration"),
            rules=(FieldRule("year", message="Year is required"), _DECLARATION),
            display_labels=DisplayLabels(
                default_text="Submit Assessment",
                pending_text="Update Assessment",
                rejected_text="Resubmit Assessment",
            ),
        ),
        ServiceTypeConfig(
            slug="tax-return-copy",
            label="Tax Return Copy",
            category="Documentation",
            collection_name="taxReturnCopies",
            body_key="taxReturnData",
            fields=("year", "details", "agreeToDeclaration"),
            rules=(FieldRule("year", message="Year is required"), _DECLARATION),
            display_labels=DisplayLabels(
                default_text="Request Tax Return Copy",
                pending_text="Update Request",
                rejected_text="Resubmit Request",
            ),
        ),
        ServiceTypeConfig(
            slug="bas-lodgement-copy",
            label="BAS Lodgement Copy",
            category="Documentation",
            collection_name="basLodgementCopies",
            body_key="basLodgementData",
            fields=("quarter", "details", "agreeToDeclaration"),
            rules=(FieldRule("quarter", message="Quarter is required"), _DECLARATION),
            display_labels=DisplayLabels(
                default_text="Submit BAS Lodgement",
                pending_text="Update BAS Lodgement",
                rejected_text="Resubmit BAS Lodgement",
            ),
        ),
        ServiceTypeConfig(
            slug="ato-portal-copy",
            label="ATO Portal Copy",
            category="Documentation",
            collection_name="atoPortalCopies",
            body_key="atoPortalData",
            fields=("period", "details"),
            rules=(
                FieldRule("period", message="Period is required"),
                FieldRule("details", message="Details are required"),
            ),
            display_labels=DisplayLabels(
                default_text="Submit ATO Portal Copy",
                pending_text="Update Request",
                rejected_text="Resubmit Request",
            ),
        ),
        ServiceTypeConfig(
            slug="payment-plan",
            label="Payment Plan",
            category="Management",
            collection_name="paymentPlans",
            body_key="paymentPlanData",
            fields=("planType", "amount", "details", "agreeToDeclaration"),
            rules=(
                FieldRule("planType", message="Payment plan is required"),
                FieldRule("amount", "positive", "Amount is required", "Amount must be greater than zero"),
                _DECLARATION,
            ),
            display_labels=DisplayLabels(
                default_text="Submit Payment Plan",
                pending_text="Update Payment Plan",
                rejected_text="Resubmit Payment Plan",
            ),
        ),
        ServiceTypeConfig(
            slug="update-address",
            label="Address Update",
            category="Management",
            collection_name="updateAddresses",
            body_key="updateAddressData",
            fields=("oldAddress", "newAddress"),
            rules=(
                FieldRule("oldAddress", message="Current address is required"),
                FieldRule("newAddress", message="New address is required"),
            ),
            display_labels=DisplayLabels(
                default_text="Submit Address Update",
                pending_text="Update Address Request",
                rejected_text="Resubmit Address Update",
            ),
        ),
    )
}

COLLECTIONS: Dict[str, ServiceTypeConfig] = {
    config.collection_name: config for config in SERVICE_TYPES.values()
}


def get_service_type(slug: str) -> ServiceTypeConfig:
    """Return the configuration for ``slug``.

    Raises
    ------
    ValueError
        If no service type with that slug exists.
    """
    try:
        return SERVICE_TYPES[slug]
    except KeyError:
        raise ValueError(f"Service type {slug} not found") from None
