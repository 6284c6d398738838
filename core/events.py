"""
Domain events for invoices and transactions.

Immutable event objects published after a store write has committed.
Handlers (Telegram notifications, dashboard revalidation) react without
the publishing service knowing who is listening.

Event Categories:
- InvoiceEvent: Invoice lifecycle (create, status change, paid, overdue, delete)
- TransactionEvent: Transaction lifecycle (recorded, status change)

Events carry the full domain object so handlers don't need to re-fetch state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)
    owner_id: UUID | None = None


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(DomainEvent):
    """Events related to invoice lifecycle."""
    invoice: Any = None  # Invoice, Any to keep this module import-free


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    """A new invoice was stored (PENDING or DRAFT)."""

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceCreated":
        return cls(invoice=invoice, owner_id=invoice.user_id)


@dataclass(frozen=True)
class InvoiceStatusChanged(InvoiceEvent):
    """Status moved through the generic status update path."""
    previous_status: Any = None

    @classmethod
    def create(cls, invoice: Any, previous_status: Any) -> "InvoiceStatusChanged":
        return cls(invoice=invoice, previous_status=previous_status, owner_id=invoice.user_id)


@dataclass(frozen=True)
class InvoicePaid(InvoiceEvent):
    """Invoice was marked paid against a transaction hash."""

    @classmethod
    def create(cls, invoice: Any) -> "InvoicePaid":
        return cls(invoice=invoice, owner_id=invoice.user_id)


@dataclass(frozen=True)
class InvoiceOverdue(InvoiceEvent):
    """Invoice moved to OVERDUE."""

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceOverdue":
        return cls(invoice=invoice, owner_id=invoice.user_id)


@dataclass(frozen=True)
class InvoiceDeleted(InvoiceEvent):
    """Invoice was permanently removed. `invoice` is its last state."""

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceDeleted":
        return cls(invoice=invoice, owner_id=invoice.user_id)


# =============================================================================
# TRANSACTION EVENTS
# =============================================================================


@dataclass(frozen=True)
class TransactionEvent(DomainEvent):
    """Events related to transaction records."""
    transaction: Any = None


@dataclass(frozen=True)
class TransactionRecorded(TransactionEvent):
    """A transaction record was written."""

    @classmethod
    def create(cls, transaction: Any) -> "TransactionRecorded":
        return cls(transaction=transaction, owner_id=transaction.user_id)


@dataclass(frozen=True)
class TransactionStatusChanged(TransactionEvent):
    """Transaction status was updated."""
    previous_status: Any = None

    @classmethod
    def create(cls, transaction: Any, previous_status: Any) -> "TransactionStatusChanged":
        return cls(transaction=transaction, previous_status=previous_status, owner_id=transaction.user_id)
