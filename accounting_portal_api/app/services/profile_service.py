"""
Business logic for client profiles.

Clients keep their contact details on a profile document in the
``users`` collection.  Saving the profile validates it with the same
field rules as service requests, merges the values into the stored
document and sends staff a "New User Information" email.  Intake
extras such as the tax file number or identity documents are included
in that email but never stored on the profile.
"""

import logging
from typing import Any, Dict, Optional

from accounting_portal_api.app.core.document_store import DocumentStore, DuplicateDocumentError
from accounting_portal_api.app.schemas.profile import ProfileRead
from accounting_portal_api.app.schemas.request import ValidationResult
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.audit_service import AuditService
from accounting_portal_api.app.services.catalog import FieldRule
from accounting_portal_api.app.services.notification_service import NotificationService
from accounting_portal_api.app.services.request_service import InvalidPayloadError, SubmissionError


logger = logging.getLogger(__name__)

PROFILE_COLLECTION = "users"

PROFILE_FIELDS = (
    "displayName",
    "firstName",
    "lastName",
    "phone",
    "address",
    "postalCode",
    "description",
)

# Emailed to staff with the profile but not kept on it.
INTAKE_FIELDS = (
    "taxFileNumber",
    "otherDetails",
    "idDocuments",
    "otherDocuments",
    "declaration",
)

PROFILE_RULES = (
    FieldRule("displayName", message="Username is required"),
    FieldRule("firstName", message="First name is required"),
    FieldRule("lastName", message="Last name is required"),
    FieldRule("address", message="Address is required"),
    FieldRule("postalCode", "postal_code", "Postal code is required", "Postal code must be 4 digits"),
    FieldRule("phone", message="Phone number is required"),
)


def _to_profile(record: Dict[str, Any]) -> ProfileRead:
    return ProfileRead(
        id=record["id"],
        user_id=record["userId"],
        email=record.get("email"),
        display_name=record.get("displayName"),
        first_name=record.get("firstName"),
        last_name=record.get("lastName"),
        phone=record.get("phone"),
        address=record.get("address"),
        postal_code=record.get("postalCode"),
        description=record.get("description"),
        created_at=record["createdAt"],
        updated_at=record["updatedAt"],
    )


class ProfileService:
    """Reads and saves client profiles."""

    @classmethod
    def validate(cls, payload: Any) -> ValidationResult:
        data = payload if isinstance(payload, dict) else {}
        field_errors: Dict[str, str] = {}
        for rule in PROFILE_RULES:
            message = rule.check(data)
            if message:
                field_errors[rule.field] = message
        return ValidationResult(valid=not field_errors, field_errors=field_errors)

    @classmethod
    async def get_profile(cls, current_user: UserContext) -> Optional[ProfileRead]:
        """Return the caller's profile or ``None`` if it was never saved."""
        records = DocumentStore.query(PROFILE_COLLECTION, current_user.user_id)
        return _to_profile(records[0]) if records else None

    @classmethod
    async def update_profile(cls, current_user: UserContext, payload: Dict[str, Any]) -> ProfileRead:
        """Validate and save the caller's profile, then notify staff.

        Values are merged into the stored profile; fields missing from
        ``payload`` keep their stored value.  The email address always
        comes from the identity token.

        Raises
        ------
        InvalidPayloadError
            If the payload fails validation.  Nothing is written.
        SubmissionError
            If the store write failed.
        """
        validation = cls.validate(payload)
        if not validation.valid:
            raise InvalidPayloadError(validation.field_errors)

        data: Dict[str, Any] = {key: payload[key] for key in PROFILE_FIELDS if key in payload}
        data["email"] = current_user.email
        try:
            record = cls._save(current_user.user_id, data)
        except Exception as e:
            logger.error("Failed to save profile for user %s: %s", current_user.user_id, e)
            raise SubmissionError("Failed to save profile") from e

        logger.info("Saved profile %s for user %s", record["id"], current_user.user_id)
        try:
            await AuditService.log(
                user_id=current_user.user_id,
                action="profile_update",
                object_type="profile",
                object_id=record["id"],
                details={"fields": sorted(data)},
            )
        except Exception:
            logger.exception("Failed to audit profile update for user %s", current_user.user_id)

        intake = {key: payload[key] for key in PROFILE_FIELDS + INTAKE_FIELDS if key in payload}
        await NotificationService.notify_profile(
            PROFILE_FIELDS + INTAKE_FIELDS, intake, current_user, record["id"]
        )
        return _to_profile(record)

    @classmethod
    def _save(cls, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        existing = DocumentStore.query(PROFILE_COLLECTION, user_id)
        if not existing:
            try:
                doc_id = DocumentStore.create(
                    PROFILE_COLLECTION, dict(data, userId=user_id, status="active")
                )
                return DocumentStore.get(PROFILE_COLLECTION, doc_id)
            except DuplicateDocumentError:
                existing = DocumentStore.query(PROFILE_COLLECTION, user_id)
        return DocumentStore.update(PROFILE_COLLECTION, existing[0]["id"], data)
