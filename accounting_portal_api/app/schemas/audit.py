"""
Pydantic schemas for audit events.

Audit events trace what happened to a request or profile after it left
the client: who submitted it, when staff moved it along, and which
notification emails could not be delivered.
"""

from typing import Any, Literal, Optional

from .request import CamelModel


AuditAction = Literal[
    "submit",
    "resubmit",
    "status_change",
    "notification_failed",
    "profile_update",
]


class AuditLogRead(CamelModel):
    """A recorded audit event."""

    id: int
    user_id: Optional[str] = None
    action: AuditAction
    object_type: Optional[str] = None
    object_id: Optional[str] = None
    timestamp: str
    details: Optional[Any] = None
