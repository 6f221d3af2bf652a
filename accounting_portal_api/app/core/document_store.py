"""
Document store for service request collections.

Each service type keeps its requests in a named collection.  A
document is a JSON object owned by one user; the store adds the
``id``, ``status``, ``notes`` and timestamp fields on the way out so
callers always see a flat record such as::

    {"id": "...", "userId": "u1", "status": "pending", "notes": None,
     "createdAt": "...", "updatedAt": "...", "planType": "fortnightly"}

Only one document per (collection, user) may exist.  ``create`` is
conditional on that key and raises ``DuplicateDocumentError`` when a
document already exists, so callers can fall back to an update.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .db import get_connection


# Columns managed by the store rather than kept in the JSON body.
RESERVED_FIELDS = {"id", "userId", "status", "notes", "createdAt", "updatedAt"}


class DuplicateDocumentError(Exception):
    """Raised when a user already owns a document in the collection."""


def utcnow() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _row_to_record(row: sqlite3.Row) -> Dict[str, Any]:
    record: Dict[str, Any] = json.loads(row["data"]) if row["data"] else {}
    record.update(
        {
            "id": row["id"],
            "userId": row["user_id"],
            "status": row["status"],
            "notes": row["notes"],
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }
    )
    return record


_SELECT = "SELECT id, collection, user_id, status, notes, data, created_at, updated_at FROM documents"


class DocumentStore:
    """Collection-oriented access to the ``documents`` table."""

    @classmethod
    def create(cls, collection: str, data: Dict[str, Any]) -> str:
        """Insert a new document and return its generated id.

        ``data`` must contain ``userId``.  ``status`` defaults to
        ``pending``; both timestamps are set to the current time.

        Raises
        ------
        DuplicateDocumentError
            If the user already owns a document in ``collection``.
        """
        user_id = data.get("userId")
        if not user_id:
            raise ValueError("userId is required to create a document")
        doc_id = uuid.uuid4().hex
        now = utcnow()
        body = {k: v for k, v in data.items() if k not in RESERVED_FIELDS}
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO documents (id, collection, user_id, status, notes, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    doc_id,
                    collection,
                    user_id,
                    data.get("status", "pending"),
                    data.get("notes"),
                    json.dumps(body),
                    now,
                    now,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise DuplicateDocumentError(
                f"User {user_id} already has a document in {collection}"
            ) from e
        finally:
            conn.close()
        return doc_id

    @classmethod
    def query(cls, collection: str, user_id: str) -> List[Dict[str, Any]]:
        """Return the user's documents in ``collection``, oldest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT + " WHERE collection = ? AND user_id = ? ORDER BY created_at ASC, rowid ASC",
                (collection, user_id),
            ).fetchall()
            return [_row_to_record(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    def query_user(
        cls,
        user_id: str,
        collections: Optional[Iterable[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Return the user's documents across collections, newest first.

        Each record carries an extra ``collection`` key.
        """
        query = _SELECT + " WHERE user_id = ?"
        params: list = [user_id]
        if collections is not None:
            names = list(collections)
            if not names:
                return []
            query += " AND collection IN (" + ", ".join("?" for _ in names) + ")"
            params.extend(names)
        query += " ORDER BY created_at DESC, rowid DESC"
        conn = get_connection()
        try:
            records = []
            for row in conn.execute(query, tuple(params)).fetchall():
                record = _row_to_record(row)
                record["collection"] = row["collection"]
                records.append(record)
            return records
        finally:
            conn.close()

    @classmethod
    def get(cls, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return a single document or ``None`` if it does not exist."""
        conn = get_connection()
        try:
            row = conn.execute(
                _SELECT + " WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            return _row_to_record(row) if row else None
        finally:
            conn.close()

    @classmethod
    def update(
        cls,
        collection: str,
        doc_id: str,
        patch: Dict[str, Any],
        expected_statuses: Optional[Iterable[str]] = None,
        replace_body: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """Merge ``patch`` into a document and refresh ``updatedAt``.

        ``status`` and ``notes`` in the patch update their columns; every
        other non-reserved key is merged into the JSON body, or replaces
        it entirely when ``replace_body`` is true.  When
        ``expected_statuses`` is given the update only applies while the
        stored status is one of them, and the status check and write
        happen in a single transaction.

        Returns the updated record, or ``None`` when the document does
        not exist or its status did not match.
        """
        conn = get_connection()
        try:
            # Take the write lock before reading so the status check holds.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                _SELECT + " WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            if not row:
                conn.rollback()
                return None
            if expected_statuses is not None and row["status"] not in set(expected_statuses):
                conn.rollback()
                return None
            body = {} if replace_body or not row["data"] else json.loads(row["data"])
            body.update({k: v for k, v in patch.items() if k not in RESERVED_FIELDS})
            status = patch.get("status", row["status"])
            notes = patch["notes"] if "notes" in patch else row["notes"]
            conn.execute(
                "UPDATE documents SET status = ?, notes = ?, data = ?, updated_at = ? WHERE id = ?",
                (status, notes, json.dumps(body), utcnow(), doc_id),
            )
            conn.commit()
            updated = conn.execute(_SELECT + " WHERE id = ?", (doc_id,)).fetchone()
            return _row_to_record(updated)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
