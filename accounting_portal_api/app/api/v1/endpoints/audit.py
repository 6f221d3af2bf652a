"""
Audit log endpoints for API v1.

Provides staff with access to the audit trail: submissions,
resubmissions, status changes, profile updates and failed
notifications.  Logs support filtering by user, service type, request,
action and an inclusive date range.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from accounting_portal_api.app.core.security import require_roles
from accounting_portal_api.app.schemas.audit import AuditAction, AuditLogRead
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.audit_service import AuditService

router = APIRouter()


@router.get("/logs", response_model=List[AuditLogRead])
async def list_audit_logs(
    user_id: Optional[str] = Query(None, description="Filter by acting user ID"),
    object_type: Optional[str] = Query(None, description="Filter by service type slug or 'profile'"),
    object_id: Optional[str] = Query(None, description="Filter by request or profile ID"),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    start_date: Optional[str] = Query(None, description="First day (YYYY-MM-DD, UTC) to include"),
    end_date: Optional[str] = Query(None, description="Last day (YYYY-MM-DD, UTC) to include"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    current_user: UserContext = Depends(require_roles("staff")),
) -> List[AuditLogRead]:
    """Retrieve audit logs with optional filters, newest first.

    Only staff may access this endpoint.
    """
    return await AuditService.list_logs(
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
        user_id=user_id,
        object_type=object_type,
        object_id=object_id,
        action=action,
    )
