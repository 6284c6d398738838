"""Shared test fixtures for the chainledger test suite."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest

from core.audit import AuditLogger
from core.config import AppConfig
from core.event_bus import EventBus
from core.models import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Transaction,
    TransactionStatus,
)
from utils.owner_context import owner_context, clear_current_owner_id
from utils.timezone import now_utc
from tests.fakes import FakePostgres


# =============================================================================
# TEST OWNER CONSTANTS
# =============================================================================

# Primary test owner - use for single-owner tests
TEST_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Secondary test owner - use for isolation tests
TEST_OWNER_B_ID = UUID("00000000-0000-0000-0000-000000000002")

TX_HASH = "0x" + "ab" * 32
PAYER_ADDRESS = "0x1111111111111111111111111111111111111111"
MERCHANT_ADDRESS = "0x2222222222222222222222222222222222222222"


# =============================================================================
# OWNER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_owner_context():
    """Ensure clean owner context before and after each test."""
    clear_current_owner_id()
    yield
    clear_current_owner_id()


@pytest.fixture
def test_owner_id() -> UUID:
    """The primary test owner's ID."""
    return TEST_OWNER_ID


@pytest.fixture
def test_owner_b_id() -> UUID:
    """The secondary test owner's ID (for isolation tests)."""
    return TEST_OWNER_B_ID


@pytest.fixture
def as_test_owner(test_owner_id):
    """Run the test inside the primary owner's context."""
    with owner_context(test_owner_id):
        yield test_owner_id


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture
def fake_db() -> FakePostgres:
    """In-memory PostgresClient stand-in."""
    return FakePostgres()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def audit(fake_db) -> AuditLogger:
    return AuditLogger(fake_db)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


# =============================================================================
# ENTITY FACTORIES
# =============================================================================


@pytest.fixture
def make_invoice():
    """Build an Invoice entity without touching a store."""

    def _make(**overrides) -> Invoice:
        now = now_utc()
        values = {
            "id": uuid4(),
            "user_id": TEST_OWNER_ID,
            "number": "INV-123456-042",
            "client_name": "Acme Corp",
            "client_email": "billing@acme.com",
            "client_address": None,
            "items": [InvoiceItem(id="item1", description="Consulting", quantity=2, unit_price=50, amount=100)],
            "notes": None,
            "terms": None,
            "due_date": now + timedelta(days=30),
            "status": InvoiceStatus.PENDING,
            "total_amount": 100.0,
            "payment_address": MERCHANT_ADDRESS,
            "payment_token_type": "USDC",
            "paid_at": None,
            "transaction_hash": None,
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        return Invoice(**values)

    return _make


@pytest.fixture
def make_transaction():
    """Build a Transaction entity without touching a store."""

    def _make(**overrides) -> Transaction:
        now = now_utc()
        values = {
            "id": uuid4(),
            "user_id": TEST_OWNER_ID,
            "amount": 100.0,
            "token_type": "USDC",
            "from_address": PAYER_ADDRESS,
            "to_address": MERCHANT_ADDRESS,
            "hash": TX_HASH,
            "invoice_id": None,
            "description": None,
            "network_id": 1,
            "block_number": None,
            "status": TransactionStatus.CONFIRMED,
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        return Transaction(**values)

    return _make


@pytest.fixture
def invoice_form():
    """Raw invoice form fields as the dashboard posts them."""

    def _form(**overrides) -> dict:
        form = {
            "client_name": "Acme Corp",
            "client_email": "billing@acme.com",
            "items": '[{"description": "Consulting", "quantity": 2, "unit_price": 50}]',
            "due_date": (now_utc() + timedelta(days=30)).date().isoformat(),
            "payment_address": MERCHANT_ADDRESS,
            "payment_token_type": "USDC",
        }
        form.update(overrides)
        return form

    return _form


@pytest.fixture
def mock_event_bus():
    return Mock(spec=EventBus)
