"""Tests for PaymentService: claims, settlement and reconciliation."""

from uuid import uuid4

import pytest

from core.events import InvoicePaid, TransactionRecorded
from core.exceptions import NotFoundError, PaymentRecordingError
from core.models import InvoiceStatus, PaymentClaim, TransactionStatus

PAYER = "0x1111111111111111111111111111111111111111"
MARK_PAID_SQL = "UPDATE invoices SET status = %s, paid_at = %s, transaction_hash"


def claim_for(invoice_id, tx_hash="0xfeed", network_id=137) -> PaymentClaim:
    return PaymentClaim(invoice_id=invoice_id, from_address=PAYER, hash=tx_hash, network_id=network_id)


class TestInitiatePayment:

    def test_records_transaction_and_settles_invoice(
        self, payment_service, invoice_service, create_invoice, test_owner_id
    ):
        invoice = create_invoice()

        transaction = payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        assert transaction.amount == invoice.total_amount
        assert transaction.token_type == "USDC"
        assert transaction.to_address == invoice.payment_address
        assert transaction.from_address == PAYER
        assert transaction.network_id == 137
        assert transaction.invoice_id == invoice.id
        assert transaction.status == TransactionStatus.CONFIRMED
        assert transaction.description == f"Payment for invoice {invoice.number}"

        settled = invoice_service.get_by_id(test_owner_id, invoice.id)
        assert settled.status == InvoiceStatus.PAID
        assert settled.transaction_hash == "0xfeed"
        assert settled.paid_at is not None

    def test_missing_token_and_address_fall_back(self, payment_service, create_invoice, test_owner_id):
        invoice = create_invoice(payment_token_type="", payment_address="")

        transaction = payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        assert transaction.token_type == "ETH"
        assert transaction.to_address == ""

    def test_unknown_invoice_writes_nothing(self, payment_service, fake_db, test_owner_id):
        with pytest.raises(NotFoundError):
            payment_service.initiate_payment(test_owner_id, claim_for(uuid4()))

        assert fake_db.rows("transactions") == []

    def test_other_owners_invoice_is_not_found(self, payment_service, create_invoice, test_owner_b_id, fake_db):
        invoice = create_invoice()

        with pytest.raises(NotFoundError):
            payment_service.initiate_payment(test_owner_b_id, claim_for(invoice.id))
        assert fake_db.rows("transactions") == []

    def test_settlement_failure_keeps_transaction(
        self, payment_service, invoice_service, create_invoice, fake_db, test_owner_id
    ):
        invoice = create_invoice()
        fake_db.fail_on(MARK_PAID_SQL)

        with pytest.raises(PaymentRecordingError) as exc_info:
            payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        [row] = fake_db.rows("transactions")
        assert exc_info.value.transaction.id == row["id"]
        assert invoice_service.get_by_id(test_owner_id, invoice.id).status == InvoiceStatus.PENDING

    def test_audit_outage_does_not_change_outcome(
        self, payment_service, invoice_service, create_invoice, fake_db, published, test_owner_id
    ):
        invoice = create_invoice()
        fake_db.fail_on("INSERT INTO audit_log")

        transaction = payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        [row] = fake_db.rows("transactions")
        assert transaction.id == row["id"]
        settled = invoice_service.get_by_id(test_owner_id, invoice.id)
        assert settled.status == InvoiceStatus.PAID
        assert settled.transaction_hash == "0xfeed"
        assert [type(e) for e in published][-2:] == [TransactionRecorded, InvoicePaid]

    def test_same_claim_twice_records_twice(self, payment_service, create_invoice, fake_db, test_owner_id):
        invoice = create_invoice()

        payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))
        payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        assert len(fake_db.rows("transactions")) == 2

    def test_paying_cancelled_invoice_is_allowed(
        self, payment_service, lifecycle, invoice_service, create_invoice, test_owner_id
    ):
        invoice = create_invoice()
        lifecycle.transition(test_owner_id, invoice.id, InvoiceStatus.CANCELLED)

        payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        assert invoice_service.get_by_id(test_owner_id, invoice.id).status == InvoiceStatus.PAID


class TestRecordTransaction:

    def test_without_invoice_only_writes_transaction(self, payment_service, transaction_data, fake_db, test_owner_id):
        transaction = payment_service.record_transaction(test_owner_id, transaction_data())

        assert transaction.invoice_id is None
        assert len(fake_db.rows("transactions")) == 1

    def test_with_invoice_settles_it(
        self, payment_service, transaction_data, create_invoice, invoice_service, test_owner_id
    ):
        invoice = create_invoice()

        payment_service.record_transaction(test_owner_id, transaction_data(invoice_id=str(invoice.id), hash="0xcafe"))

        assert invoice_service.get_by_id(test_owner_id, invoice.id).transaction_hash == "0xcafe"

    def test_unknown_invoice_writes_nothing(self, payment_service, transaction_data, fake_db, test_owner_id):
        with pytest.raises(NotFoundError):
            payment_service.record_transaction(test_owner_id, transaction_data(invoice_id=str(uuid4())))

        assert fake_db.rows("transactions") == []


class TestTrackWalletTransaction:

    def test_new_hash_is_recorded(self, payment_service, transaction_data, test_owner_id):
        transaction, existed = payment_service.track_wallet_transaction(test_owner_id, transaction_data())

        assert existed is False
        assert transaction.hash == "0x" + "ab" * 32

    def test_same_hash_same_chain_returns_existing(self, payment_service, transaction_data, fake_db, test_owner_id):
        first, _ = payment_service.track_wallet_transaction(test_owner_id, transaction_data())

        second, existed = payment_service.track_wallet_transaction(test_owner_id, transaction_data(amount=5))

        assert existed is True
        assert second.id == first.id
        assert len(fake_db.rows("transactions")) == 1

    def test_same_hash_other_chain_is_new(self, payment_service, transaction_data, fake_db, test_owner_id):
        payment_service.track_wallet_transaction(test_owner_id, transaction_data(network_id=1))

        _, existed = payment_service.track_wallet_transaction(test_owner_id, transaction_data(network_id=8453))

        assert existed is False
        assert len(fake_db.rows("transactions")) == 2


class TestReconcileUnpaid:

    def test_repairs_failed_settlement(
        self, payment_service, invoice_service, create_invoice, fake_db, test_owner_id
    ):
        invoice = create_invoice()
        fake_db.fail_on(MARK_PAID_SQL)
        with pytest.raises(PaymentRecordingError):
            payment_service.initiate_payment(test_owner_id, claim_for(invoice.id, tx_hash="0xlost"))
        fake_db.recover()

        repaired = payment_service.reconcile_unpaid(test_owner_id)

        assert repaired == [invoice.id]
        settled = invoice_service.get_by_id(test_owner_id, invoice.id)
        assert settled.status == InvoiceStatus.PAID
        assert settled.transaction_hash == "0xlost"

    def test_settles_once_with_oldest_transaction(
        self, payment_service, transaction_service, transaction_data, create_invoice, invoice_service, test_owner_id
    ):
        invoice = create_invoice()
        transaction_service.create(test_owner_id, transaction_data(invoice_id=str(invoice.id), hash="0xfirst"))
        transaction_service.create(test_owner_id, transaction_data(invoice_id=str(invoice.id), hash="0xsecond"))

        assert payment_service.reconcile_unpaid(test_owner_id) == [invoice.id]
        assert invoice_service.get_by_id(test_owner_id, invoice.id).transaction_hash == "0xfirst"

    def test_nothing_to_do(self, payment_service, create_invoice, test_owner_id):
        invoice = create_invoice()
        payment_service.initiate_payment(test_owner_id, claim_for(invoice.id))

        assert payment_service.reconcile_unpaid(test_owner_id) == []
