"""
Transaction store.

Owns the transactions table. Recording a transaction never touches the
invoice it references; invoice settlement is PaymentService's job.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.event_bus import EventBus
from core.events import TransactionRecorded, TransactionStatusChanged
from core.exceptions import NotFoundError
from core.models import InvoiceStatus, Transaction, TransactionCreate, TransactionStatus
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for transaction persistence."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, event_bus: EventBus):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus

    def create(self, owner_id: UUID, data: TransactionCreate) -> Transaction:
        """Store a transaction record. Status defaults to CONFIRMED."""
        now = now_utc()

        row = self.postgres.execute_returning(
            """
            INSERT INTO transactions (
                id, user_id, amount, token_type, from_address, to_address, hash,
                invoice_id, description, network_id, block_number, status,
                created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s, %s, %s,
                %s, %s, %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), owner_id, data.amount, data.token_type, data.from_address,
                data.to_address, data.hash, data.invoice_id, data.description,
                data.network_id, data.block_number, data.status.value, now, now,
            ),
        )[0]

        transaction = Transaction.model_validate(row)

        self.audit.log_change(
            owner_id,
            entity_type="transaction",
            entity_id=transaction.id,
            action=AuditAction.CREATE,
            changes={"created": transaction.model_dump(mode="json")},
        )
        logger.info(
            f"Recorded transaction {transaction.id} hash={transaction.hash} "
            f"network={transaction.network_id} invoice={transaction.invoice_id}"
        )

        self.event_bus.publish(TransactionRecorded.create(transaction))
        return transaction

    def list_all(self, owner_id: UUID, limit: int | None = None) -> list[Transaction]:
        """All transactions for the owner, newest first."""
        query = "SELECT * FROM transactions WHERE user_id = %s ORDER BY created_at DESC"
        params: tuple = (owner_id,)
        if limit is not None:
            query += " LIMIT %s"
            params = (owner_id, limit)
        rows = self.postgres.execute(query, params)
        return [Transaction.model_validate(row) for row in rows]

    def get_by_id(self, owner_id: UUID, transaction_id: UUID) -> Transaction:
        """
        Get a single transaction.

        Raises:
            NotFoundError: No such transaction for this owner
        """
        row = self.postgres.execute_single(
            "SELECT * FROM transactions WHERE id = %s AND user_id = %s",
            (transaction_id, owner_id),
        )
        if row is None:
            raise NotFoundError("Transaction", transaction_id)
        return Transaction.model_validate(row)

    def find_by_hash_and_network(self, owner_id: UUID, tx_hash: str, network_id: int) -> Transaction | None:
        """The first recorded transaction with this hash on this chain, if any."""
        row = self.postgres.execute_single(
            """
            SELECT * FROM transactions
            WHERE user_id = %s AND hash = %s AND network_id = %s
            ORDER BY created_at ASC
            LIMIT 1
            """,
            (owner_id, tx_hash, network_id),
        )
        return Transaction.model_validate(row) if row else None

    def list_for_invoice(self, owner_id: UUID, invoice_id: UUID) -> list[Transaction]:
        rows = self.postgres.execute(
            """
            SELECT * FROM transactions
            WHERE user_id = %s AND invoice_id = %s
            ORDER BY created_at DESC
            """,
            (owner_id, invoice_id),
        )
        return [Transaction.model_validate(row) for row in rows]

    def update_status(self, owner_id: UUID, transaction_id: UUID, status: TransactionStatus) -> Transaction:
        """
        Change a transaction's status.

        Raises:
            NotFoundError: No such transaction for this owner
        """
        current = self.get_by_id(owner_id, transaction_id)

        row = self.postgres.execute_single(
            """
            UPDATE transactions SET status = %s, updated_at = %s
            WHERE id = %s AND user_id = %s
            RETURNING *
            """,
            (status.value, now_utc(), transaction_id, owner_id),
        )
        if row is None:
            raise NotFoundError("Transaction", transaction_id)

        transaction = Transaction.model_validate(row)

        self.audit.log_change(
            owner_id,
            entity_type="transaction",
            entity_id=transaction_id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": current.status.value, "new": status.value}},
        )
        logger.info(f"Transaction {transaction_id} status {current.status.value} -> {status.value}")

        self.event_bus.publish(TransactionStatusChanged.create(transaction, current.status))
        return transaction

    def list_confirmed_with_unpaid_invoice(self, owner_id: UUID) -> list[Transaction]:
        """
        CONFIRMED transactions whose linked invoice exists and is not PAID.

        These are payments whose invoice settlement never landed. Oldest first.
        """
        rows = self.postgres.execute(
            """
            SELECT t.* FROM transactions t
            JOIN invoices i ON i.id = t.invoice_id AND i.user_id = t.user_id
            WHERE t.user_id = %s AND t.status = %s AND i.status <> %s
            ORDER BY t.created_at ASC
            """,
            (owner_id, TransactionStatus.CONFIRMED.value, InvoiceStatus.PAID.value),
        )
        return [Transaction.model_validate(row) for row in rows]

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    def totals_by_status(self, owner_id: UUID) -> list[dict[str, Any]]:
        """Rows of {status, count, total_amount}, one per status present."""
        return self.postgres.execute(
            """
            SELECT status, COUNT(*) AS count, COALESCE(SUM(amount), 0) AS total_amount
            FROM transactions
            WHERE user_id = %s
            GROUP BY status
            """,
            (owner_id,),
        )

    def totals_by_network(self, owner_id: UUID) -> list[dict[str, Any]]:
        """Rows of {network_id, count, total_amount}, busiest chain first."""
        return self.postgres.execute(
            """
            SELECT network_id, COUNT(*) AS count, COALESCE(SUM(amount), 0) AS total_amount
            FROM transactions
            WHERE user_id = %s
            GROUP BY network_id
            ORDER BY count DESC, network_id ASC
            """,
            (owner_id,),
        )
