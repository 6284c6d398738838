"""Tests for input and entity models."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from core.models import (
    AIGeneratedInvoice,
    InvoiceCreate,
    InvoiceEmailRequest,
    InvoiceItemCreate,
    InvoiceStatus,
    PaymentClaim,
    TelegramSettings,
    TransactionCreate,
    TransactionStatus,
)


class TestInvoiceItemCreate:

    def test_amount_defaults_to_quantity_times_price(self):
        item = InvoiceItemCreate(description="Hours", quantity=3, unit_price=33.5)
        assert item.amount == 100.5

    def test_explicit_amount_is_kept(self):
        item = InvoiceItemCreate(description="Discounted", quantity=2, unit_price=50, amount=90)
        assert item.amount == 90

    def test_quantity_below_one_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceItemCreate(description="x", quantity=0, unit_price=1)

    def test_to_item_assigns_short_id(self):
        item = InvoiceItemCreate(description="x", quantity=1, unit_price=1).to_item()
        assert len(item.id) == 12

    def test_to_item_keeps_given_id(self):
        item = InvoiceItemCreate(id="keep-me", description="x", quantity=1, unit_price=1).to_item()
        assert item.id == "keep-me"


class TestInvoiceCreate:

    def _data(self, **overrides):
        data = {
            "client_name": "Acme",
            "client_email": "billing@acme.com",
            "items": [{"description": "Work", "quantity": 2, "unit_price": 50}],
            "due_date": "2025-06-30",
        }
        data.update(overrides)
        return data

    def test_items_accepted_as_json_string(self):
        invoice = InvoiceCreate.model_validate(
            self._data(items='[{"description": "Work", "quantity": 1, "unit_price": 10}]')
        )
        assert invoice.items[0].amount == 10

    def test_malformed_items_json(self):
        with pytest.raises(ValidationError, match="Items must be a JSON array"):
            InvoiceCreate.model_validate(self._data(items="[not json"))

    def test_at_least_one_item_required(self):
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(self._data(items=[]))

    def test_bad_email_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(self._data(client_email="not-an-email"))

    def test_blank_optional_fields_become_none(self):
        invoice = InvoiceCreate.model_validate(self._data(notes="  ", payment_address=""))
        assert invoice.notes is None
        assert invoice.payment_address is None

    def test_due_date_parsed_as_utc_midnight(self):
        invoice = InvoiceCreate.model_validate(self._data())
        assert invoice.due_date == datetime(2025, 6, 30, tzinfo=timezone.utc)

    def test_total_amount_sums_items(self):
        invoice = InvoiceCreate.model_validate(self._data(items=[
            {"description": "A", "quantity": 2, "unit_price": 50},
            {"description": "B", "quantity": 1, "unit_price": 25.5},
        ]))
        assert invoice.total_amount == 125.5


class TestInvoiceEntity:

    def test_days_overdue(self, make_invoice):
        now = datetime(2025, 3, 10, tzinfo=timezone.utc)
        invoice = make_invoice(due_date=now - timedelta(days=4, hours=3))
        assert invoice.days_overdue(now) == 4

    def test_days_overdue_never_negative(self, make_invoice):
        now = datetime(2025, 3, 10, tzinfo=timezone.utc)
        invoice = make_invoice(due_date=now + timedelta(days=4))
        assert invoice.days_overdue(now) == 0

    def test_is_paid(self, make_invoice):
        assert make_invoice(status=InvoiceStatus.PAID).is_paid
        assert not make_invoice(status=InvoiceStatus.OVERDUE).is_paid


class TestTransactionCreate:

    def _data(self, **overrides):
        data = {
            "amount": 1.5,
            "token_type": "ETH",
            "from_address": "0xabc",
            "to_address": "0xdef",
            "hash": "0x123",
            "network_id": 1,
        }
        data.update(overrides)
        return data

    def test_status_defaults_to_confirmed(self):
        assert TransactionCreate.model_validate(self._data()).status == TransactionStatus.CONFIRMED

    def test_to_address_required_without_invoice(self):
        with pytest.raises(ValidationError, match="To address is required"):
            TransactionCreate.model_validate(self._data(to_address=""))

    def test_to_address_may_be_empty_for_invoice_payment(self):
        data = TransactionCreate.model_validate(self._data(to_address="", invoice_id=str(uuid4())))
        assert data.to_address == ""

    def test_bad_invoice_id_reports_only_itself(self):
        with pytest.raises(ValidationError) as exc_info:
            TransactionCreate.model_validate(self._data(to_address="", invoice_id="not-a-uuid"))

        assert [e["loc"] for e in exc_info.value.errors()] == [("invoice_id",)]

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            TransactionCreate.model_validate(self._data(amount=-1))

    def test_network_id_from_form_string(self):
        assert TransactionCreate.model_validate(self._data(network_id="137")).network_id == 137

    def test_blank_invoice_id_is_none(self):
        assert TransactionCreate.model_validate(self._data(invoice_id="")).invoice_id is None


class TestPaymentClaim:

    def test_requires_all_fields(self):
        with pytest.raises(ValidationError):
            PaymentClaim.model_validate({"invoice_id": str(uuid4()), "from_address": "0xabc"})

    def test_network_id_coerced(self):
        claim = PaymentClaim.model_validate({
            "invoice_id": str(uuid4()), "from_address": "0xabc", "hash": "0x1", "network_id": "8453",
        })
        assert claim.network_id == 8453


class TestNotificationInputs:

    def test_email_type_limited(self):
        with pytest.raises(ValidationError):
            InvoiceEmailRequest.model_validate({
                "invoice_id": str(uuid4()),
                "sender_email": "me@ledger.com",
                "sender_name": "Me",
                "email_type": "reminder",
            })

    def test_webhook_must_be_https(self):
        with pytest.raises(ValidationError, match="https"):
            TelegramSettings.model_validate({
                "bot_token": "123:abc",
                "chat_id": "42",
                "webhook_url": "http://ledger.example.com/api/webhooks/telegram",
            })


class TestAIGeneratedInvoice:

    def test_items_get_ids_and_amounts(self):
        invoice = AIGeneratedInvoice.model_validate({
            "client_name": "Bluebird Cafe",
            "client_email": "hello@bluebird.cafe",
            "items": [{"description": "Logo", "quantity": 3, "unit_price": 150}],
            "due_date": "2025-05-10",
        })

        assert invoice.items[0].amount == 450
        assert invoice.items[0].id
        assert invoice.due_date.tzinfo is not None
