"""
Audit trail for invoice and settings changes.

The audit log is:
- Append-only (entries never modified or deleted)
- Account-attributed (which account the change was made for)
- Detailed (captures old and new values)
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    changes = {}

    for key in sorted(set(old.keys()) | set(new.keys())):
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


class AuditLogger:
    """
    Audit trail writer.

    Always pass model_dump(mode="json") output so Decimals and datetimes are
    JSON-compatible strings.

    Usage:
        audit = AuditLogger(postgres)

        audit.log_change(
            entity_type="invoice",
            entity_id="2026-3-15",
            user_id="dimitar",
            action=AuditAction.UPDATE,
            changes=compute_changes(old.model_dump(mode="json"), new.model_dump(mode="json")),
        )
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: str,
        entity_id: str,
        user_id: str,
        action: AuditAction,
        changes: dict[str, Any],
    ) -> None:
        """
        Log an entity change.

        Changes format by action:
        - CREATE: {"created": {full entity data}}
        - UPDATE: {"field": {"old": old_val, "new": new_val}, ...}
        - DELETE: {"deleted": {full entity data at deletion}}
        """
        self.postgres.execute(
            """
            INSERT INTO audit_log (id, user_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                str(uuid4()),
                user_id,
                entity_type,
                entity_id,
                action.value,
                Json(changes),
                now_utc()
            )
        )

    def get_entity_history(
        self,
        entity_type: str,
        entity_id: str,
        user_id: str,
    ) -> list[dict[str, Any]]:
        """Full audit history for one entity of one account, newest first."""
        return self.postgres.execute(
            """
            SELECT id, user_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s AND user_id = %s
            ORDER BY created_at DESC
            """,
            (entity_type, entity_id, user_id)
        )
