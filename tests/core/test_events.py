"""Tests for domain event objects."""

import dataclasses

import pytest

from core.events import (
    InvoiceCreated,
    InvoiceDeleted,
    InvoiceEvent,
    InvoiceOverdue,
    InvoicePaid,
    InvoiceStatusChanged,
    TransactionRecorded,
    TransactionStatusChanged,
)
from core.models import InvoiceStatus, TransactionStatus


class TestInvoiceEvents:

    @pytest.mark.parametrize("event_cls", [InvoiceCreated, InvoicePaid, InvoiceOverdue, InvoiceDeleted])
    def test_create_carries_invoice_and_owner(self, event_cls, make_invoice):
        invoice = make_invoice()
        event = event_cls.create(invoice)

        assert isinstance(event, InvoiceEvent)
        assert event.invoice is invoice
        assert event.owner_id == invoice.user_id
        assert event.occurred_at.tzinfo is not None

    def test_status_changed_keeps_previous_status(self, make_invoice):
        event = InvoiceStatusChanged.create(make_invoice(status=InvoiceStatus.OVERDUE), InvoiceStatus.PENDING)
        assert event.previous_status == InvoiceStatus.PENDING

    def test_events_are_immutable(self, make_invoice):
        event = InvoiceCreated.create(make_invoice())
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.invoice = None

    def test_each_event_gets_its_own_id(self, make_invoice):
        invoice = make_invoice()
        assert InvoiceCreated.create(invoice).event_id != InvoiceCreated.create(invoice).event_id


class TestTransactionEvents:

    def test_recorded(self, make_transaction):
        transaction = make_transaction()
        event = TransactionRecorded.create(transaction)
        assert event.transaction is transaction
        assert event.owner_id == transaction.user_id

    def test_status_changed(self, make_transaction):
        event = TransactionStatusChanged.create(
            make_transaction(status=TransactionStatus.FAILED), TransactionStatus.PENDING
        )
        assert event.previous_status == TransactionStatus.PENDING
