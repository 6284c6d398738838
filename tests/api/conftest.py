"""API test fixtures: the real app over the in-memory store."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from clients.telegram_client import TelegramClient
from core.invoice_generator import InvoiceGenerator
from core.notifications import TelegramNotifier
from main import build_actions, create_app


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================


@pytest.fixture
def telegram_client():
    client = Mock(spec=TelegramClient)
    client.get_webhook_info.return_value = {"url": "https://ledger.example.com/api/webhooks/telegram"}
    return client


@pytest.fixture
def notifier(telegram_client):
    return TelegramNotifier(telegram_client, "424242", app_name="Ledger")


@pytest.fixture
def pdf_renderer():
    renderer = Mock()
    renderer.render.return_value = b"%PDF-1.4"
    return renderer


@pytest.fixture
def actions(fake_db, event_bus, config, telegram_client, pdf_renderer):
    return build_actions(
        fake_db,
        event_bus,
        config,
        generator=InvoiceGenerator(None),
        pdf_renderer=pdf_renderer,
        telegram_factory=lambda token: telegram_client,
    )


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(actions, notifier, config):
    return create_app(actions, notifier, config)


@pytest.fixture
def client(app):
    """Client acting as the default owner."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def owner_b_client(app, test_owner_b_id):
    """Client acting as the secondary owner."""
    return TestClient(app, raise_server_exceptions=False, headers={"X-Owner-Id": str(test_owner_b_id)})


@pytest.fixture
def act(client):
    """POST an action and return the response."""

    def _act(domain: str, action: str, data: dict | None = None, http=None):
        return (http or client).post("/api/actions", json={"domain": domain, "action": action, "data": data or {}})

    return _act


@pytest.fixture
def sample_invoice(act, invoice_form):
    """An invoice created through the API; returns its response data."""
    response = act("invoice", "create", invoice_form())
    assert response.status_code == 200, response.text
    return response.json()["data"]
