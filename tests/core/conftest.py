"""Service fixtures wired to the in-memory store."""

import pytest

from core.events import DomainEvent
from core.lifecycle import InvoiceLifecycle
from core.models import InvoiceCreate, TransactionCreate
from core.services.analytics_service import AnalyticsService
from core.services.invoice_service import InvoiceService
from core.services.payment_service import PaymentService
from core.services.transaction_service import TransactionService


@pytest.fixture
def published(event_bus):
    """Every event published on the bus, in order."""
    events = []
    event_bus.subscribe(DomainEvent, events.append)
    return events


@pytest.fixture
def invoice_service(fake_db, audit, event_bus):
    return InvoiceService(fake_db, audit, event_bus)


@pytest.fixture
def transaction_service(fake_db, audit, event_bus):
    return TransactionService(fake_db, audit, event_bus)


@pytest.fixture
def lifecycle(invoice_service):
    return InvoiceLifecycle(invoice_service)


@pytest.fixture
def payment_service(invoice_service, transaction_service, lifecycle):
    return PaymentService(invoice_service, transaction_service, lifecycle)


@pytest.fixture
def analytics_service(invoice_service, transaction_service):
    return AnalyticsService(invoice_service, transaction_service)


@pytest.fixture
def create_invoice(invoice_service, invoice_form, test_owner_id):
    """Store an invoice from form fields."""

    def _create(owner_id=None, **overrides):
        return invoice_service.create(owner_id or test_owner_id, InvoiceCreate.model_validate(invoice_form(**overrides)))

    return _create


@pytest.fixture
def transaction_data():
    """TransactionCreate with sensible defaults."""

    def _data(**overrides) -> TransactionCreate:
        values = {
            "amount": 100,
            "token_type": "USDC",
            "from_address": "0x1111111111111111111111111111111111111111",
            "to_address": "0x2222222222222222222222222222222222222222",
            "hash": "0x" + "ab" * 32,
            "network_id": 1,
        }
        values.update(overrides)
        return TransactionCreate.model_validate(values)

    return _data
