"""
Invoice store.

Owns the invoices table: create, read, status writes, delete and the
GROUP BY queries analytics is built on. Every query is scoped to an owner.
Status rules live in core/lifecycle.py; this layer only writes what it is
told and publishes what happened.
"""

import logging
import secrets
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.event_bus import EventBus
from core.events import (
    InvoiceCreated,
    InvoiceDeleted,
    InvoiceOverdue,
    InvoicePaid,
    InvoiceStatusChanged,
)
from core.exceptions import NotFoundError
from core.models import Invoice, InvoiceCreate, InvoiceStatus
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def generate_invoice_number(now: datetime | None = None) -> str:
    """
    Human-readable invoice number: INV-<6 digits>-<3 digits>.

    The first group is the last six digits of the epoch millisecond clock,
    the second a random 000-999. Not guaranteed unique.
    """
    now = now or now_utc()
    millis = str(int(now.timestamp() * 1000))[-6:]
    return f"INV-{millis}-{secrets.randbelow(1000):03d}"


class InvoiceService:
    """Service for invoice persistence."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, event_bus: EventBus):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus

    def create(self, owner_id: UUID, data: InvoiceCreate) -> Invoice:
        """
        Store a new invoice.

        Item ids are assigned here, the total is recomputed from the items and
        the status starts at PENDING (DRAFT when data.draft is set).
        """
        items = [item.to_item() for item in data.items]
        total_amount = sum(item.amount for item in items)
        status = InvoiceStatus.DRAFT if data.draft else InvoiceStatus.PENDING
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO invoices (
                id, user_id, number, client_name, client_email, client_address,
                items, notes, terms, due_date, status, total_amount,
                payment_address, payment_token_type, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s, %s,
                %s, %s, %s, %s, %s, %s,
                %s, %s, %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), owner_id, generate_invoice_number(now),
                data.client_name, data.client_email, data.client_address,
                Json([item.model_dump(mode="json") for item in items]),
                data.notes, data.terms, data.due_date, status.value, total_amount,
                data.payment_address, data.payment_token_type, now, now,
            ),
        )[0]

        invoice = Invoice.model_validate(row)

        self.audit.log_change(
            owner_id,
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={"created": invoice.model_dump(mode="json")},
        )
        logger.info(f"Created invoice {invoice.number} ({invoice.id}) total={invoice.total_amount}")

        self.event_bus.publish(InvoiceCreated.create(invoice))
        return invoice

    def list_all(self, owner_id: UUID, limit: int | None = None) -> list[Invoice]:
        """All invoices for the owner, newest first."""
        query = "SELECT * FROM invoices WHERE user_id = %s ORDER BY created_at DESC"
        params: tuple = (owner_id,)
        if limit is not None:
            query += " LIMIT %s"
            params = (owner_id, limit)
        rows = self.postgres.execute(query, params)
        return [Invoice.model_validate(row) for row in rows]

    def find_by_id(self, owner_id: UUID, invoice_id: UUID) -> Invoice | None:
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE id = %s AND user_id = %s",
            (invoice_id, owner_id),
        )
        return Invoice.model_validate(row) if row else None

    def get_by_id(self, owner_id: UUID, invoice_id: UUID) -> Invoice:
        """
        Get a single invoice.

        Raises:
            NotFoundError: No such invoice for this owner
        """
        invoice = self.find_by_id(owner_id, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def update_status(self, owner_id: UUID, invoice_id: UUID, status: InvoiceStatus) -> Invoice:
        """
        Generic status write.

        Moving to PAID stamps paid_at. Any other status leaves paid_at and
        transaction_hash as they were.

        Raises:
            NotFoundError: No such invoice for this owner
        """
        current = self.get_by_id(owner_id, invoice_id)
        now = now_utc()

        row = self.postgres.execute_single(
            """
            UPDATE invoices
            SET status = %s,
                paid_at = CASE WHEN %s THEN %s ELSE paid_at END,
                updated_at = %s
            WHERE id = %s AND user_id = %s
            RETURNING *
            """,
            (status.value, status == InvoiceStatus.PAID, now, now, invoice_id, owner_id),
        )
        if row is None:
            raise NotFoundError("Invoice", invoice_id)

        invoice = Invoice.model_validate(row)

        self.audit.log_change(
            owner_id,
            entity_type="invoice",
            entity_id=invoice_id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": current.status.value, "new": invoice.status.value}},
        )
        logger.info(f"Invoice {invoice.number} status {current.status.value} -> {invoice.status.value}")

        self.event_bus.publish(InvoiceStatusChanged.create(invoice, current.status))
        if status == InvoiceStatus.OVERDUE:
            self.event_bus.publish(InvoiceOverdue.create(invoice))
        return invoice

    def mark_paid(self, owner_id: UUID, invoice_id: UUID, transaction_hash: str) -> Invoice:
        """
        Settle an invoice against a transaction hash.

        Sets status PAID, paid_at now and transaction_hash in one write.
        Calling it again overwrites paid_at and the hash (last write wins).

        Raises:
            NotFoundError: No such invoice for this owner
        """
        current = self.get_by_id(owner_id, invoice_id)
        now = now_utc()

        row = self.postgres.execute_single(
            """
            UPDATE invoices
            SET status = %s, paid_at = %s, transaction_hash = %s, updated_at = %s
            WHERE id = %s AND user_id = %s
            RETURNING *
            """,
            (InvoiceStatus.PAID.value, now, transaction_hash, now, invoice_id, owner_id),
        )
        if row is None:
            raise NotFoundError("Invoice", invoice_id)

        invoice = Invoice.model_validate(row)

        self.audit.log_change(
            owner_id,
            entity_type="invoice",
            entity_id=invoice_id,
            action=AuditAction.UPDATE,
            changes={
                "status": {"old": current.status.value, "new": InvoiceStatus.PAID.value},
                "transaction_hash": {"old": current.transaction_hash, "new": transaction_hash},
            },
        )
        logger.info(f"Invoice {invoice.number} marked paid by {transaction_hash}")

        self.event_bus.publish(InvoicePaid.create(invoice))
        return invoice

    def delete(self, owner_id: UUID, invoice_id: UUID) -> None:
        """
        Permanently delete an invoice.

        Transactions that reference it keep their invoice_id.

        Raises:
            NotFoundError: No such invoice for this owner
        """
        current = self.get_by_id(owner_id, invoice_id)

        deleted = self.postgres.execute_returning(
            "DELETE FROM invoices WHERE id = %s AND user_id = %s RETURNING id",
            (invoice_id, owner_id),
        )
        if not deleted:
            raise NotFoundError("Invoice", invoice_id)

        self.audit.log_change(
            owner_id,
            entity_type="invoice",
            entity_id=invoice_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")},
        )
        logger.info(f"Deleted invoice {current.number} ({invoice_id})")

        self.event_bus.publish(InvoiceDeleted.create(current))

    def list_pending_past_due(self, owner_id: UUID, now: datetime) -> list[Invoice]:
        """PENDING invoices whose due date is before now, oldest due first."""
        rows = self.postgres.execute(
            """
            SELECT * FROM invoices
            WHERE user_id = %s AND status = %s AND due_date < %s
            ORDER BY due_date ASC
            """,
            (owner_id, InvoiceStatus.PENDING.value, now),
        )
        return [Invoice.model_validate(row) for row in rows]

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    def totals_by_status(self, owner_id: UUID) -> list[dict[str, Any]]:
        """Rows of {status, count, total_amount}, one per status present."""
        return self.postgres.execute(
            """
            SELECT status, COUNT(*) AS count, COALESCE(SUM(total_amount), 0) AS total_amount
            FROM invoices
            WHERE user_id = %s
            GROUP BY status
            """,
            (owner_id,),
        )

    def paid_totals_by_month(self, owner_id: UUID, start: datetime, end: datetime) -> list[dict[str, Any]]:
        """
        Paid revenue bucketed by the UTC calendar month of paid_at.

        Rows of {year, month, revenue, count} for start <= paid_at < end.
        Months without payments are absent.
        """
        return self.postgres.execute(
            """
            SELECT
                EXTRACT(YEAR FROM paid_at AT TIME ZONE 'UTC')::int AS year,
                EXTRACT(MONTH FROM paid_at AT TIME ZONE 'UTC')::int AS month,
                SUM(total_amount) AS revenue,
                COUNT(*) AS count
            FROM invoices
            WHERE user_id = %s AND status = %s AND paid_at >= %s AND paid_at < %s
            GROUP BY 1, 2
            ORDER BY 1, 2
            """,
            (owner_id, InvoiceStatus.PAID.value, start, end),
        )

    def paid_totals_by_client(self, owner_id: UUID, limit: int) -> list[dict[str, Any]]:
        """
        Paid revenue grouped by (client_name, client_email), highest first.

        Rows of {client_name, client_email, total_revenue, invoice_count,
        last_invoice_date}. last_invoice_date is the newest created_at.
        """
        return self.postgres.execute(
            """
            SELECT
                client_name,
                client_email,
                SUM(total_amount) AS total_revenue,
                COUNT(*) AS invoice_count,
                MAX(created_at) AS last_invoice_date
            FROM invoices
            WHERE user_id = %s AND status = %s
            GROUP BY client_name, client_email
            ORDER BY total_revenue DESC
            LIMIT %s
            """,
            (owner_id, InvoiceStatus.PAID.value, limit),
        )
