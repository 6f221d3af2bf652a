"""
Audit trail of request and profile events.

Submissions, resubmissions, staff status changes, profile updates and
failed notification emails are appended to the ``audit_logs`` table.
The trail is the place staff look when something happened to a
request that the client never saw, most importantly an email that
could not be delivered.  Only staff may read it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from accounting_portal_api.app.core.db import get_cursor
from accounting_portal_api.app.schemas.audit import AuditAction, AuditLogRead


logger = logging.getLogger(__name__)

# Exact-match filters accepted by ``list_logs`` and the column each one reads.
_EQUALITY_FILTERS = {
    "user_id": "user_id",
    "object_type": "object_type",
    "object_id": "object_id",
    "action": "action",
}


def _decode_details(raw: Optional[str]) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class AuditService:
    """Append-only access to the audit trail."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[str],
        action: AuditAction,
        object_type: str,
        object_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append one event.

        Parameters
        ----------
        user_id : Optional[str]
            Acting user, or ``None`` for events raised by the system.
        action : AuditAction
            What happened.
        object_type : str
            Service type slug, or ``profile`` for profile updates.
        object_id : Optional[str]
            Id of the affected request or profile document.
        details : Optional[dict]
            Extra data stored as JSON.  Values that JSON cannot encode
            are stored as strings.
        """
        with get_cursor() as cursor:
            cursor.execute(
                "INSERT INTO audit_logs (user_id, action, object_type, object_id, details) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    user_id,
                    action,
                    object_type,
                    object_id,
                    json.dumps(details, default=str) if details else None,
                ),
            )
        logger.debug("Audited %s of %s %s by %s", action, object_type, object_id, user_id)

    @classmethod
    async def list_logs(
        cls,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
        **filters: Optional[str],
    ) -> List[AuditLogRead]:
        """Return events newest first.

        ``filters`` may name ``user_id``, ``object_type``, ``object_id``
        and ``action``; ``None`` values are ignored.  ``start_date`` and
        ``end_date`` are ISO dates (``YYYY-MM-DD``) and both bounds are
        inclusive of the whole day, in UTC.
        """
        unknown = set(filters) - set(_EQUALITY_FILTERS)
        if unknown:
            raise TypeError(f"Unknown audit filter(s): {', '.join(sorted(unknown))}")
        clauses: List[str] = []
        params: List[Any] = []
        for name, value in filters.items():
            if value is not None:
                clauses.append(f"{_EQUALITY_FILTERS[name]} = ?")
                params.append(value)
        # ``timestamp`` holds "YYYY-MM-DD HH:MM:SS"; compare whole days.
        if start_date:
            clauses.append("date(timestamp) >= date(?)")
            params.append(start_date)
        if end_date:
            clauses.append("date(timestamp) <= date(?)")
            params.append(end_date)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with get_cursor() as cursor:
            rows = cursor.execute(
                "SELECT id, user_id, action, object_type, object_id, timestamp, details "
                f"FROM audit_logs{where} ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
        return [
            AuditLogRead(
                id=row["id"],
                user_id=row["user_id"],
                action=row["action"],
                object_type=row["object_type"],
                object_id=row["object_id"],
                timestamp=str(row["timestamp"]),
                details=_decode_details(row["details"]),
            )
            for row in rows
        ]
