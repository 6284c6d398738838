"""
Payment reconciliation.

Turns a payer's claim (invoice id, wallet address, tx hash, chain) into a
transaction record and settles the invoice against it. The two writes are
not atomic: the transaction is written first, then the invoice is marked
paid. When the second write fails the transaction stays and
PaymentRecordingError reports it; reconcile_unpaid repairs such leftovers.
"""

import logging
from uuid import UUID

from core.exceptions import NotFoundError, PaymentRecordingError, StoreError
from core.lifecycle import InvoiceLifecycle
from core.models import Invoice, PaymentClaim, Transaction, TransactionCreate
from core.services.invoice_service import InvoiceService
from core.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording payments against invoices."""

    def __init__(
        self,
        invoices: InvoiceService,
        transactions: TransactionService,
        lifecycle: InvoiceLifecycle,
        default_token_type: str = "ETH",
    ):
        self.invoices = invoices
        self.transactions = transactions
        self.lifecycle = lifecycle
        self.default_token_type = default_token_type

    def build_payment(self, invoice: Invoice, claim: PaymentClaim) -> TransactionCreate:
        """The transaction a claim against this invoice should record."""
        return TransactionCreate(
            amount=invoice.total_amount,
            token_type=invoice.payment_token_type or self.default_token_type,
            from_address=claim.from_address,
            to_address=invoice.payment_address or "",
            hash=claim.hash,
            invoice_id=invoice.id,
            description=f"Payment for invoice {invoice.number}",
            network_id=claim.network_id,
        )

    def initiate_payment(self, owner_id: UUID, claim: PaymentClaim) -> Transaction:
        """
        Record a payment claim and settle its invoice.

        The amount is always the invoice total; partial payments don't exist.
        The hash is trusted as given. Submitting the same claim twice records
        two transactions.

        Raises:
            NotFoundError: Invoice doesn't exist (nothing written)
            StoreError: Transaction insert failed (nothing written)
            PaymentRecordingError: Transaction written, invoice not marked paid
        """
        invoice = self.invoices.get_by_id(owner_id, claim.invoice_id)
        return self.record_transaction(owner_id, self.build_payment(invoice, claim), invoice=invoice)

    def record_transaction(
        self,
        owner_id: UUID,
        data: TransactionCreate,
        invoice: Invoice | None = None,
    ) -> Transaction:
        """
        Write a transaction; when it names an invoice, mark that invoice paid.

        `invoice` skips the existence lookup when the caller already has it.

        Raises:
            NotFoundError: data.invoice_id names no invoice (nothing written)
            PaymentRecordingError: Transaction written, invoice not marked paid
        """
        if data.invoice_id is not None and invoice is None:
            invoice = self.invoices.get_by_id(owner_id, data.invoice_id)

        transaction = self.transactions.create(owner_id, data)
        if data.invoice_id is None:
            return transaction

        try:
            self.lifecycle.mark_paid(owner_id, data.invoice_id, transaction.hash)
        except (StoreError, NotFoundError) as e:
            logger.error(
                f"Transaction {transaction.id} recorded but invoice {data.invoice_id} "
                f"was not marked paid: {e}"
            )
            raise PaymentRecordingError(transaction, e) from e

        return transaction

    def track_wallet_transaction(self, owner_id: UUID, data: TransactionCreate) -> tuple[Transaction, bool]:
        """
        Record a wallet transaction unless the same hash on the same chain exists.

        Returns (transaction, existed). An existing record is returned as-is.
        """
        existing = self.transactions.find_by_hash_and_network(owner_id, data.hash, data.network_id)
        if existing is not None:
            logger.info(f"Transaction {data.hash} on network {data.network_id} already tracked")
            return existing, True
        return self.record_transaction(owner_id, data), False

    def reconcile_unpaid(self, owner_id: UUID) -> list[UUID]:
        """
        Settle invoices whose payment transaction was written but never applied.

        Each CONFIRMED transaction pointing at an unpaid invoice marks that
        invoice paid with its hash. An invoice with several such transactions
        is settled once, by the oldest. Returns the repaired invoice ids.
        """
        repaired: list[UUID] = []
        for transaction in self.transactions.list_confirmed_with_unpaid_invoice(owner_id):
            if transaction.invoice_id in repaired:
                continue
            self.lifecycle.mark_paid(owner_id, transaction.invoice_id, transaction.hash)
            repaired.append(transaction.invoice_id)
            logger.warning(
                f"Reconciled invoice {transaction.invoice_id} with transaction {transaction.id}"
            )
        return repaired
