"""
Pydantic schemas for service requests.

A service request is a user's single open application for one service
type (a payment plan, a tax return copy, ...).  Records travel over the
API in camelCase to match the document store and the web client, so
every schema here uses a camelCase alias generator while keeping
snake_case attribute names in Python.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


RequestStatus = Literal["pending", "in-progress", "completed", "rejected"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ServiceRequestRead(CamelModel):
    """A stored service request.

    ``payload`` holds only the service-specific fields declared by the
    service type; bookkeeping fields are exposed individually.
    """

    id: str
    user_id: str
    service_type: str
    status: RequestStatus
    payload: Dict[str, Any] = Field(default_factory=dict)
    agree_to_declaration: Optional[bool] = None
    notes: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    created_at: str
    updated_at: str


class RequestSummary(ServiceRequestRead):
    """A request listed on the "my requests" overview."""

    service_name: str
    category: str


class ValidationResult(CamelModel):
    """Outcome of validating a payload against a service type's rules."""

    valid: bool
    field_errors: Dict[str, str] = Field(default_factory=dict)


class ExistingRequest(CamelModel):
    """Result of looking up a user's request for one service type.

    ``error`` is set, and ``exists`` is false, when the lookup itself
    failed; callers show it as a warning and let the user continue.
    """

    exists: bool
    data: Optional[ServiceRequestRead] = None
    error: Optional[str] = None


class DisplayLabels(CamelModel):
    """Call-to-action texts of a service form."""

    default_text: str = "Submit Registration"
    pending_text: str = "Update Registration"
    rejected_text: str = "Resubmit Registration"
    completed_text: str = "Already Submitted"
    processing_text: str = "Processing..."


class DisplayState(CamelModel):
    """How the service form should be rendered for a request status."""

    status: Optional[RequestStatus] = None
    action_enabled: bool
    fields_enabled: bool
    label: str


class ExistingRequestView(ExistingRequest):
    """Existing request together with the form display state."""

    display: DisplayState


class SubmitResult(CamelModel):
    """Outcome of a submission, as returned by ``POST /api/<service-type>``."""

    success: bool
    id: Optional[str] = None
    message: Optional[str] = None
    field_errors: Optional[Dict[str, str]] = None


class StatusUpdate(BaseModel):
    """Staff transition of a request's status."""

    status: RequestStatus = Field(..., description="New status for the request")
    notes: Optional[str] = Field(default=None, description="Note shown to the client")


class ServiceTypeRead(CamelModel):
    """Public description of a service type."""

    slug: str
    label: str
    category: str
    body_key: str
    fields: List[str]
    required_fields: List[str]
    requires_declaration: bool
    display_labels: DisplayLabels
