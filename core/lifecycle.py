"""
Invoice status lifecycle.

    DRAFT ──> PENDING ──> PAID
                 │  └───> OVERDUE ──> PAID
                 │           │
                 └───────────┴──> CANCELLED

PAID and CANCELLED are terminal. PAID is normally reached through
mark_paid (with a transaction hash). The table is advisory: moves outside
it are written anyway and logged at WARNING, so a manual correction such
as CANCELLED -> PAID is never blocked.
"""

import logging
from datetime import datetime
from uuid import UUID

from core.models import Invoice, InvoiceStatus
from core.services.invoice_service import InvoiceService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.PENDING}),
    InvoiceStatus.PENDING: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})


def is_expected_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in TRANSITIONS[current]


def is_terminal(status: InvoiceStatus) -> bool:
    return status in TERMINAL_STATUSES


class InvoiceLifecycle:
    """Status transitions on top of the invoice store."""

    def __init__(self, invoices: InvoiceService):
        self.invoices = invoices

    def _check(self, invoice: Invoice, target: InvoiceStatus) -> None:
        if not is_expected_transition(invoice.status, target):
            logger.warning(
                "Invoice %s (%s) moving %s -> %s outside the usual lifecycle",
                invoice.number,
                invoice.id,
                invoice.status.value,
                target.value,
            )

    def transition(self, owner_id: UUID, invoice_id: UUID, status: InvoiceStatus) -> Invoice:
        """
        Generic status change. PAID here stamps paid_at but records no hash.

        Raises:
            NotFoundError: No such invoice for this owner
        """
        current = self.invoices.get_by_id(owner_id, invoice_id)
        self._check(current, status)
        return self.invoices.update_status(owner_id, invoice_id, status)

    def mark_paid(self, owner_id: UUID, invoice_id: UUID, transaction_hash: str) -> Invoice:
        """
        Settle an invoice with a transaction hash. Accepted from any status.

        Raises:
            NotFoundError: No such invoice for this owner
        """
        current = self.invoices.get_by_id(owner_id, invoice_id)
        self._check(current, InvoiceStatus.PAID)
        return self.invoices.mark_paid(owner_id, invoice_id, transaction_hash)

    def flag_overdue(self, owner_id: UUID, now: datetime | None = None) -> list[Invoice]:
        """
        Move every PENDING invoice whose due date has passed to OVERDUE.

        Returns the updated invoices. Each publishes InvoiceOverdue.
        """
        now = now or now_utc()
        flagged = [
            self.invoices.update_status(owner_id, invoice.id, InvoiceStatus.OVERDUE)
            for invoice in self.invoices.list_pending_past_due(owner_id, now)
        ]
        if flagged:
            logger.info(f"Flagged {len(flagged)} overdue invoice(s) for owner {owner_id}")
        return flagged
