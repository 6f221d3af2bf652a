"""
Business logic for service requests.

A client holds at most one request per service type.  The request is
created in ``pending`` status, moved along by staff
(``in-progress``, ``completed`` or ``rejected``) and may be edited and
resubmitted by the client only while it is ``pending`` or
``rejected``.  Resubmitting overwrites the payload of the existing
record and puts it back to ``pending``; the record's id and creation
time never change.

Every operation receives the caller's ``UserContext`` explicitly and
looks up the service type in the catalog, so the same code path serves
all service types.
"""

import logging
from typing import Any, Dict, List, Optional

from accounting_portal_api.app.core.config import settings
from accounting_portal_api.app.core.document_store import DocumentStore, DuplicateDocumentError
from accounting_portal_api.app.schemas.request import (
    DisplayLabels,
    DisplayState,
    ExistingRequest,
    RequestSummary,
    ServiceRequestRead,
    StatusUpdate,
    SubmitResult,
    ValidationResult,
)
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.audit_service import AuditService
from accounting_portal_api.app.services.catalog import (
    COLLECTIONS,
    ServiceTypeConfig,
    get_service_type,
)
from accounting_portal_api.app.services.notification_service import NotificationService


logger = logging.getLogger(__name__)

EDITABLE_STATUSES = ("pending", "rejected")
LOCKED_STATUSES = ("in-progress", "completed")

# Transitions available to staff.  Clients only ever move a request to
# ``pending`` by submitting it.
STAFF_TRANSITIONS: Dict[str, frozenset] = {
    "pending": frozenset({"in-progress", "completed", "rejected"}),
    "in-progress": frozenset({"completed", "rejected"}),
}


class InvalidPayloadError(ValueError):
    """Raised when a submitted payload fails validation."""

    def __init__(self, field_errors: Dict[str, str]):
        super().__init__("Please correct the highlighted fields")
        self.field_errors = field_errors


class RequestLockedError(Exception):
    """Raised when a request can no longer be changed by the client."""


class InvalidTransitionError(Exception):
    """Raised when staff request a status change the lifecycle does not allow."""


class SubmissionError(Exception):
    """Raised when a request could not be written to the store."""


def status_to_display_state(
    status: Optional[str],
    labels: Optional[DisplayLabels] = None,
    submitting: bool = False,
) -> DisplayState:
    """Map a request status to the form's call to action.

    ==============  ==============  ================
    status          action enabled  label
    ==============  ==============  ================
    none            yes             default text
    pending         yes             pending text
    rejected        yes             rejected text
    in-progress     no              completed text
    completed       no              completed text
    ==============  ==============  ================

    While a submission is in flight the action is disabled and shows
    the processing text, whatever the status.
    """
    labels = labels or DisplayLabels()
    if status in LOCKED_STATUSES:
        return DisplayState(status=status, action_enabled=False, fields_enabled=False, label=labels.completed_text)
    if submitting:
        return DisplayState(status=status, action_enabled=False, fields_enabled=False, label=labels.processing_text)
    if status == "pending":
        label = labels.pending_text
    elif status == "rejected":
        label = labels.rejected_text
    else:
        label = labels.default_text
    return DisplayState(status=status, action_enabled=True, fields_enabled=True, label=label)


def _to_read(config: ServiceTypeConfig, record: Dict[str, Any]) -> ServiceRequestRead:
    payload = {
        key: record[key]
        for key in config.fields
        if key in record and key != "agreeToDeclaration"
    }
    return ServiceRequestRead(
        id=record["id"],
        user_id=record["userId"],
        service_type=config.slug,
        status=record["status"],
        payload=payload,
        agree_to_declaration=record.get("agreeToDeclaration") if config.requires_declaration else None,
        notes=record.get("notes"),
        user_email=record.get("userEmail"),
        user_name=record.get("userName"),
        created_at=record["createdAt"],
        updated_at=record["updatedAt"],
    )


class RequestService:
    """Lifecycle of service requests, shared by every service type."""

    @classmethod
    def validate(cls, payload: Any, service_type: str) -> ValidationResult:
        """Check ``payload`` against the service type's field rules.

        Returns one message per failing field, in rule order.  Never
        raises for bad input; a non-dict payload fails every rule.
        Raises ``ValueError`` only for an unknown service type.
        """
        config = get_service_type(service_type)
        data = payload if isinstance(payload, dict) else {}
        field_errors: Dict[str, str] = {}
        for rule in config.rules:
            message = rule.check(data)
            if message and rule.field not in field_errors:
                field_errors[rule.field] = message
        return ValidationResult(valid=not field_errors, field_errors=field_errors)

    @classmethod
    async def check_existing(cls, current_user: UserContext, service_type: str) -> ExistingRequest:
        """Return the user's request for ``service_type``, if any.

        Store failures are not raised: the result reports
        ``exists=False`` with an ``error`` the caller shows as a
        warning, and the user may go on to submit.
        """
        config = get_service_type(service_type)
        if not current_user.user_id:
            raise ValueError("User id is required to check for an existing request")
        try:
            records = DocumentStore.query(config.collection_name, current_user.user_id)
        except Exception as e:
            logger.warning(
                "Failed to check existing %s request for user %s: %s",
                service_type,
                current_user.user_id,
                e,
            )
            return ExistingRequest(exists=False, error="Could not check for an existing request")
        if not records:
            return ExistingRequest(exists=False)
        return ExistingRequest(exists=True, data=_to_read(config, records[0]))

    @classmethod
    async def submit(
        cls,
        current_user: UserContext,
        service_type: str,
        payload: Dict[str, Any],
    ) -> SubmitResult:
        """Create or resubmit the user's request for ``service_type``.

        The stored record is ``pending`` with fresh ``updatedAt``.  An
        existing ``pending`` or ``rejected`` record is overwritten in
        place.  Staff and the client are notified afterwards; a failed
        notification does not fail the submission.

        Raises
        ------
        InvalidPayloadError
            If the payload fails validation.  Nothing is written.
        RequestLockedError
            If the existing request is ``in-progress`` or ``completed``
            and the submission lock is enabled.
        SubmissionError
            If the store write failed.
        """
        config = get_service_type(service_type)
        if not current_user.user_id:
            raise ValueError("User id is required to submit a request")
        validation = cls.validate(payload, service_type)
        if not validation.valid:
            raise InvalidPayloadError(validation.field_errors)

        fields = {key: payload[key] for key in config.fields if key in payload}
        data = dict(
            fields,
            userId=current_user.user_id,
            userEmail=current_user.email,
            userName=current_user.display_name,
            serviceType=config.slug,
            status="pending",
        )
        try:
            existing = DocumentStore.query(config.collection_name, current_user.user_id)
            if existing:
                record = cls._resubmit(config, existing[0], data)
                action = "resubmit"
            else:
                try:
                    request_id = DocumentStore.create(config.collection_name, data)
                    action = "submit"
                except DuplicateDocumentError:
                    # Another submission created the record after our lookup.
                    existing = DocumentStore.query(config.collection_name, current_user.user_id)
                    record = cls._resubmit(config, existing[0], data)
                    action = "resubmit"
                else:
                    record = {"id": request_id}
        except RequestLockedError:
            raise
        except Exception as e:
            logger.error(
                "Failed to submit %s request for user %s: %s",
                service_type,
                current_user.user_id,
                e,
            )
            raise SubmissionError(f"Failed to submit {config.label.lower()} request") from e

        request_id = record["id"]
        logger.info(
            "Recorded %s of %s request %s for user %s",
            action,
            service_type,
            request_id,
            current_user.user_id,
        )
        try:
            await AuditService.log(
                user_id=current_user.user_id,
                action=action,
                object_type=config.slug,
                object_id=request_id,
                details={"fields": sorted(fields)},
            )
        except Exception:
            logger.exception("Failed to audit %s of request %s", action, request_id)

        await NotificationService.notify(config, fields, current_user, request_id)
        return SubmitResult(
            success=True,
            id=request_id,
            message=f"{config.label} request submitted successfully",
        )

    @classmethod
    def _resubmit(
        cls,
        config: ServiceTypeConfig,
        record: Dict[str, Any],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        expected = EDITABLE_STATUSES if settings.enforce_submission_lock else None
        updated = DocumentStore.update(
            config.collection_name,
            record["id"],
            data,
            expected_statuses=expected,
            replace_body=True,
        )
        if updated is None:
            current = DocumentStore.get(config.collection_name, record["id"]) or record
            raise RequestLockedError(
                f"{config.label} request is {current['status']} and can no longer be changed"
            )
        return updated

    @classmethod
    async def get_request(
        cls,
        current_user: UserContext,
        service_type: str,
        request_id: str,
    ) -> ServiceRequestRead:
        """Return one request.  Clients may only read their own.

        Raises
        ------
        ValueError
            If the request does not exist.
        PermissionError
            If a client asks for another user's request.
        """
        config = get_service_type(service_type)
        record = DocumentStore.get(config.collection_name, request_id)
        if record is None:
            raise ValueError(f"Request {request_id} not found")
        if not current_user.is_staff and record["userId"] != current_user.user_id:
            raise PermissionError("Not authorized to view this request")
        return _to_read(config, record)

    @classmethod
    async def list_user_requests(
        cls,
        current_user: UserContext,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[RequestSummary]:
        """Return all of the user's requests across service types, newest first.

        ``status`` keeps only requests in that status.  ``search`` keeps
        requests whose service name or category contains the term,
        ignoring case.
        """
        term = (search or "").strip().lower()
        records = DocumentStore.query_user(current_user.user_id, COLLECTIONS.keys())
        summaries: List[RequestSummary] = []
        for record in records:
            if status and record["status"] != status:
                continue
            config = COLLECTIONS[record["collection"]]
            if term and term not in config.label.lower() and term not in config.category.lower():
                continue
            summaries.append(
                RequestSummary(
                    **_to_read(config, record).model_dump(),
                    service_name=config.label,
                    category=config.category,
                )
            )
        logger.info("User %s listed %s requests", current_user.user_id, len(summaries))
        return summaries

    @classmethod
    async def update_status(
        cls,
        current_user: UserContext,
        service_type: str,
        request_id: str,
        update: StatusUpdate,
    ) -> ServiceRequestRead:
        """Move a request to a new status on behalf of staff.

        Raises
        ------
        PermissionError
            If the caller is not staff.
        ValueError
            If the request does not exist.
        InvalidTransitionError
            If the lifecycle does not allow the transition.
        """
        if not current_user.is_staff:
            raise PermissionError("Only staff can update request status")
        config = get_service_type(service_type)
        record = DocumentStore.get(config.collection_name, request_id)
        if record is None:
            raise ValueError(f"Request {request_id} not found")
        previous = record["status"]
        if update.status not in STAFF_TRANSITIONS.get(previous, frozenset()):
            raise InvalidTransitionError(f"Cannot move a {previous} request to {update.status}")
        patch: Dict[str, Any] = {"status": update.status}
        if update.notes is not None:
            patch["notes"] = update.notes
        updated = DocumentStore.update(
            config.collection_name,
            request_id,
            patch,
            expected_statuses=(previous,),
        )
        if updated is None:
            raise InvalidTransitionError(f"Request {request_id} changed while updating its status")
        logger.info(
            "Staff %s moved %s request %s from %s to %s",
            current_user.user_id,
            service_type,
            request_id,
            previous,
            update.status,
        )
        try:
            await AuditService.log(
                user_id=current_user.user_id,
                action="status_change",
                object_type=config.slug,
                object_id=request_id,
                details={"from": previous, "to": update.status, "notes": update.notes},
            )
        except Exception:
            logger.exception("Failed to audit status change of request %s", request_id)
        return _to_read(config, updated)
