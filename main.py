"""
chainledger application entry point.

Wires stores, domain services, event handlers and the HTTP routes.
Run with:

    uvicorn main:build_app --factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable

from dotenv import load_dotenv
from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import OwnerContextMiddleware, RequestIDMiddleware
from api.webhooks import create_webhooks_router
from clients.email_client import EmailGatewayClient
from clients.llm_client import LLMClient
from clients.postgres_client import PostgresClient
from clients.telegram_client import TelegramClient
from clients.valkey_client import ValkeyClient
from clients import vault_client
from core.actions import (
    AnalyticsActions,
    InvoiceActions,
    PaymentActions,
    TelegramActions,
    TransactionActions,
)
from core.audit import AuditLogger
from core.config import AppConfig
from core.event_bus import EventBus
from core.handlers import register_handlers
from core.invoice_generator import InvoiceGenerator
from core.lifecycle import InvoiceLifecycle
from core.notifications import TelegramNotifier
from core.revalidation import PathRevalidator
from core.services.analytics_service import AnalyticsService
from core.services.email_service import InvoiceEmailService, PDFRenderer
from core.services.invoice_service import InvoiceService
from core.services.payment_service import PaymentService
from core.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


def build_actions(
    postgres: PostgresClient,
    event_bus: EventBus,
    config: AppConfig,
    generator: InvoiceGenerator | None = None,
    email_service: InvoiceEmailService | None = None,
    pdf_renderer: PDFRenderer | None = None,
    revalidator: PathRevalidator | None = None,
    telegram_factory: Callable[[str], TelegramClient] = TelegramClient,
) -> dict:
    """Compose stores and services into the action objects, keyed by domain."""
    audit = AuditLogger(postgres)
    invoices = InvoiceService(postgres, audit, event_bus)
    transactions = TransactionService(postgres, audit, event_bus)
    lifecycle = InvoiceLifecycle(invoices)
    payments = PaymentService(
        invoices, transactions, lifecycle, default_token_type=config.default_token_type
    )
    analytics = AnalyticsService(invoices, transactions)

    return {
        "invoice": InvoiceActions(
            invoices,
            lifecycle,
            generator=generator,
            email_service=email_service,
            pdf_renderer=pdf_renderer,
        ),
        "transaction": TransactionActions(transactions, payments),
        "payment": PaymentActions(payments),
        "analytics": AnalyticsActions(
            analytics,
            monthly_revenue_months=config.monthly_revenue_months,
            top_clients_limit=config.top_clients_limit,
        ),
        "telegram": TelegramActions(
            client_factory=telegram_factory,
            revalidator=revalidator,
            app_name=config.app_name,
        ),
    }


def create_app(actions: dict, notifier: TelegramNotifier, config: AppConfig, lifespan=None) -> FastAPI:
    """FastAPI app with owner scoping, error handlers and all routes."""
    app = FastAPI(title=config.app_name, version="0.1.0", lifespan=lifespan)

    # Last added runs first: request id is assigned before owner checks.
    app.add_middleware(OwnerContextMiddleware, default_owner_id=config.default_owner_id)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(actions), prefix="/api")
    app.include_router(create_actions_router(actions), prefix="/api")
    app.include_router(create_webhooks_router(notifier), prefix="/api")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "app": config.app_name}

    return app


def _optional(name: str, loader: Callable[[], dict]) -> dict | None:
    try:
        return loader()
    except (PermissionError, KeyError) as e:
        logger.warning(f"{name} not configured, continuing without it: {e}")
        return None


def build_app() -> FastAPI:
    """Production factory: secrets from Vault, settings from the environment."""
    load_dotenv()
    config = AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    postgres = PostgresClient(vault_client.get_database_url())
    revalidator = PathRevalidator(
        ValkeyClient(vault_client.get_valkey_url()),
        ttl_seconds=config.revalidation_ttl_seconds,
    )

    telegram = _optional("Telegram", vault_client.get_telegram_config)
    notifier = TelegramNotifier(
        TelegramClient(telegram["bot_token"]) if telegram else None,
        telegram["chat_id"] if telegram else None,
        app_name=config.app_name,
    )

    email = _optional("Email gateway", vault_client.get_email_config)
    email_service = InvoiceEmailService(
        EmailGatewayClient(email["gateway_url"], email["api_key"], email["hmac_secret"]) if email else None,
        app_name=config.app_name,
    )

    llm = _optional("LLM", vault_client.get_llm_config)
    generator = InvoiceGenerator(
        LLMClient(api_key=llm["api_key"], model=llm.get("model_name")) if llm else None,
        fallback_due_days=config.ai_fallback_due_days,
    )

    event_bus = EventBus()
    register_handlers(event_bus, notifier=notifier, revalidator=revalidator)

    actions = build_actions(
        postgres,
        event_bus,
        config,
        generator=generator,
        email_service=email_service,
        revalidator=revalidator,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down...")
        postgres.close()
        revalidator.valkey.close()

    app = create_app(actions, notifier, config, lifespan=lifespan)

    logger.info(f"{config.app_name} started")
    return app
