"""
Append-only audit trail for invoice and transaction changes.

Every store mutation writes one row: creates, status changes and deletes.
Entries are attributed to the owning account and never modified.
"""

import logging
from enum import Enum
from uuid import UUID, uuid4
from typing import Any

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.exceptions import StoreError
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditLogger:
    """
    Audit trail writer and reader.

    Pass JSON-ready data (model_dump(mode="json")) so UUIDs and datetimes
    serialize cleanly.

    Usage:
        audit = AuditLogger(postgres)

        audit.log_change(
            owner_id,
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": "pending", "new": "paid"}},
        )

        history = audit.get_entity_history(owner_id, "invoice", invoice.id)
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        owner_id: UUID,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
    ) -> None:
        """
        Log an entity change.

        Called after the entity write has committed, so a failed insert is
        logged and dropped rather than raised: the caller's write stands.

        Changes format by action:
        - CREATE: {"created": {full entity data}}
        - UPDATE: {"field": {"old": old_val, "new": new_val}, ...}
        - DELETE: {"deleted": {full entity data at deletion}}
        """
        try:
            self.postgres.execute(
                """
                INSERT INTO audit_log (id, user_id, entity_type, entity_id, action, changes, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    uuid4(),
                    owner_id,
                    entity_type,
                    entity_id,
                    action.value,
                    Json(changes),
                    now_utc(),
                ),
            )
        except StoreError as e:
            logger.error(
                f"Audit write failed for {entity_type} {entity_id} ({action.value}) "
                f"owner={owner_id}: {e}"
            )

    def get_entity_history(
        self,
        owner_id: UUID,
        entity_type: str,
        entity_id: UUID,
    ) -> list[dict[str, Any]]:
        """Full audit history for one entity, newest first."""
        return self.postgres.execute(
            """
            SELECT id, user_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE user_id = %s AND entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (owner_id, entity_type, entity_id),
        )
