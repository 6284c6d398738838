"""
Operation boundary.

Every dashboard operation lives here as a method returning a plain dict:
{"success": True, ...} on success, otherwise {"success": False, "error":
message, "code": ...} or {"success": False, "errors": {field: message},
"code": "VALIDATION_ERROR"}. Nothing raises past this layer; the HTTP
routes and scripts only translate these dicts.
"""

import base64
import functools
import logging
from enum import Enum
from typing import Any, Callable
from uuid import UUID

import redis
from pydantic import ValidationError as PydanticValidationError

from clients.telegram_client import TelegramClient, TelegramError
from core.exceptions import (
    ErrorCodes,
    ExternalServiceError,
    NotConfiguredError,
    NotFoundError,
    PaymentRecordingError,
    StoreError,
    ValidationError,
)
from core.invoice_generator import InvoiceGenerator
from core.lifecycle import InvoiceLifecycle
from core.models import (
    InvoiceCreate,
    InvoiceEmailRequest,
    InvoiceStatus,
    PaymentClaim,
    TelegramConnectionTest,
    TelegramSettings,
    TransactionCreate,
    TransactionStatus,
)
from core.notifications import register_webhook
from core.revalidation import SETTINGS_PATH
from core.services.analytics_service import AnalyticsService
from core.services.email_service import InvoiceEmailService, PDFRenderer, pdf_filename
from core.services.invoice_service import InvoiceService
from core.services.payment_service import PaymentService
from core.services.transaction_service import TransactionService
from core.validation import field_errors, parse

logger = logging.getLogger(__name__)


def failure(code: str, error: str | None = None, **extra: Any) -> dict:
    result = {"success": False, "code": code}
    if error is not None:
        result["error"] = error
    result.update(extra)
    return result


def boundary(failure_message: str) -> Callable:
    """
    Convert domain exceptions raised by an action into failure dicts.

    `failure_message` is what the caller sees for store, service and
    unexpected errors; the exception detail only goes to the log.
    """

    def decorator(func: Callable[..., dict]) -> Callable[..., dict]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> dict:
            try:
                return func(*args, **kwargs)
            except ValidationError as e:
                return failure(e.code, errors=e.errors)
            except PydanticValidationError as e:
                return failure(ErrorCodes.VALIDATION_ERROR, errors=field_errors(e))
            except PaymentRecordingError as e:
                return failure(e.code, "Failed to record payment", transaction_id=str(e.transaction.id))
            except (NotFoundError, NotConfiguredError) as e:
                return failure(e.code, str(e))
            except (StoreError, ExternalServiceError) as e:
                logger.error(f"{func.__name__} failed: {e}")
                return failure(e.code, failure_message)
            except Exception:
                logger.exception(f"{func.__name__} failed unexpectedly")
                return failure(ErrorCodes.INTERNAL_ERROR, failure_message)

        return wrapper

    return decorator


def parse_id(value: Any, field: str = "id") -> UUID:
    """UUID from a form value or raise ValidationError keyed on `field`."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError.for_field(field, "Invalid id")


def parse_enum(enum_cls: type[Enum], value: Any, field: str = "status"):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError.for_field(field, f"Must be one of: {allowed}")


def _dump(model) -> dict:
    return model.model_dump(mode="json")


# =============================================================================
# INVOICES
# =============================================================================


class InvoiceActions:
    """Invoice CRUD, status changes, AI drafting, email and PDF."""

    def __init__(
        self,
        invoices: InvoiceService,
        lifecycle: InvoiceLifecycle,
        generator: InvoiceGenerator | None = None,
        email_service: InvoiceEmailService | None = None,
        pdf_renderer: PDFRenderer | None = None,
    ):
        self.invoices = invoices
        self.lifecycle = lifecycle
        self.generator = generator
        self.email_service = email_service
        self.pdf_renderer = pdf_renderer

    @boundary("Failed to create invoice")
    def create_invoice(self, owner_id: UUID, form: dict) -> dict:
        data = parse(InvoiceCreate, form)
        invoice = self.invoices.create(owner_id, data)
        return {"success": True, "id": str(invoice.id), "number": invoice.number}

    @boundary("Failed to fetch invoices")
    def get_invoices(self, owner_id: UUID, limit: int | None = None) -> dict:
        invoices = self.invoices.list_all(owner_id, limit=limit)
        return {"success": True, "invoices": [_dump(i) for i in invoices]}

    @boundary("Failed to fetch invoice")
    def get_invoice(self, owner_id: UUID, invoice_id: Any) -> dict:
        invoice = self.invoices.get_by_id(owner_id, parse_id(invoice_id))
        return {"success": True, "invoice": _dump(invoice)}

    @boundary("Failed to update invoice status")
    def update_invoice_status(self, owner_id: UUID, invoice_id: Any, status: Any) -> dict:
        invoice = self.lifecycle.transition(
            owner_id, parse_id(invoice_id), parse_enum(InvoiceStatus, status)
        )
        return {"success": True, "invoice": _dump(invoice)}

    @boundary("Failed to mark invoice as paid")
    def mark_invoice_as_paid(self, owner_id: UUID, invoice_id: Any, transaction_hash: Any) -> dict:
        invoice_id = parse_id(invoice_id)
        transaction_hash = str(transaction_hash or "").strip()
        if not transaction_hash:
            raise ValidationError.for_field("transaction_hash", "Transaction hash is required")
        invoice = self.lifecycle.mark_paid(owner_id, invoice_id, transaction_hash)
        return {"success": True, "invoice": _dump(invoice)}

    @boundary("Failed to delete invoice")
    def delete_invoice(self, owner_id: UUID, invoice_id: Any) -> dict:
        self.invoices.delete(owner_id, parse_id(invoice_id))
        return {"success": True}

    @boundary("Failed to flag overdue invoices")
    def flag_overdue_invoices(self, owner_id: UUID) -> dict:
        flagged = self.lifecycle.flag_overdue(owner_id)
        return {"success": True, "invoice_ids": [str(i.id) for i in flagged]}

    @boundary("Failed to generate invoice")
    def generate_ai_invoice(self, prompt: Any) -> dict:
        prompt = str(prompt or "").strip()
        if not prompt:
            raise ValidationError.for_field("prompt", "Prompt is required")
        if self.generator is None:
            raise NotConfiguredError("AI invoice generation is not configured")
        return {"success": True, "invoice": _dump(self.generator.generate(prompt))}

    @boundary("Failed to send email")
    def send_invoice_email(self, owner_id: UUID, form: dict) -> dict:
        request = parse(InvoiceEmailRequest, form)
        if self.email_service is None:
            raise NotConfiguredError("Email delivery is not configured")

        invoice = self.invoices.get_by_id(owner_id, request.invoice_id)
        if request.email_type == "payment":
            result = self.email_service.send_payment_confirmation(
                invoice, request.sender_email, request.sender_name
            )
        else:
            result = self.email_service.send_invoice(
                invoice, request.sender_email, request.sender_name, attach_pdf=request.attach_pdf
            )

        if not result.get("success"):
            return failure(ErrorCodes.EXTERNAL_SERVICE_ERROR, result.get("error") or "Failed to send email")
        return {"success": True, "message_id": result.get("message_id")}

    @boundary("Failed to generate PDF")
    def generate_invoice_pdf(self, owner_id: UUID, invoice_id: Any) -> dict:
        invoice = self.invoices.get_by_id(owner_id, parse_id(invoice_id))
        if self.pdf_renderer is None:
            raise NotConfiguredError("PDF rendering is not configured")
        pdf = self.pdf_renderer.render(invoice)
        return {
            "success": True,
            "pdf_base64": base64.b64encode(pdf).decode("ascii"),
            "filename": pdf_filename(invoice),
        }


# =============================================================================
# TRANSACTIONS AND PAYMENTS
# =============================================================================


class TransactionActions:
    """Transaction records and wallet tracking."""

    def __init__(self, transactions: TransactionService, payments: PaymentService):
        self.transactions = transactions
        self.payments = payments

    @boundary("Failed to create transaction")
    def create_transaction(self, owner_id: UUID, form: dict) -> dict:
        data = parse(TransactionCreate, form)
        transaction = self.payments.record_transaction(owner_id, data)
        return {"success": True, "id": str(transaction.id)}

    @boundary("Failed to fetch transactions")
    def get_transactions(self, owner_id: UUID, invoice_id: Any = None, limit: int | None = None) -> dict:
        if invoice_id:
            transactions = self.transactions.list_for_invoice(owner_id, parse_id(invoice_id, "invoice_id"))
        else:
            transactions = self.transactions.list_all(owner_id, limit=limit)
        return {"success": True, "transactions": [_dump(t) for t in transactions]}

    @boundary("Failed to fetch transaction")
    def get_transaction(self, owner_id: UUID, transaction_id: Any) -> dict:
        transaction = self.transactions.get_by_id(owner_id, parse_id(transaction_id))
        return {"success": True, "transaction": _dump(transaction)}

    @boundary("Failed to update transaction status")
    def update_transaction_status(self, owner_id: UUID, transaction_id: Any, status: Any) -> dict:
        transaction = self.transactions.update_status(
            owner_id, parse_id(transaction_id), parse_enum(TransactionStatus, status)
        )
        return {"success": True, "transaction": _dump(transaction)}

    @boundary("Failed to track transaction")
    def track_wallet_transaction(self, owner_id: UUID, form: dict) -> dict:
        data = parse(TransactionCreate, form)
        transaction, existed = self.payments.track_wallet_transaction(owner_id, data)
        return {"success": True, "transaction": _dump(transaction), "exists": existed}


class PaymentActions:
    """Payment claims against invoices."""

    def __init__(self, payments: PaymentService):
        self.payments = payments

    @boundary("Failed to process payment")
    def initiate_payment(self, owner_id: UUID, form: dict) -> dict:
        claim = parse(PaymentClaim, form)
        transaction = self.payments.initiate_payment(owner_id, claim)
        return {"success": True, "transaction_id": str(transaction.id)}

    @boundary("Failed to reconcile payments")
    def reconcile_payments(self, owner_id: UUID) -> dict:
        repaired = self.payments.reconcile_unpaid(owner_id)
        return {"success": True, "invoice_ids": [str(i) for i in repaired]}


# =============================================================================
# ANALYTICS
# =============================================================================


class AnalyticsActions:
    """Dashboard report reads."""

    def __init__(self, analytics: AnalyticsService, monthly_revenue_months: int = 6, top_clients_limit: int = 5):
        self.analytics = analytics
        self.monthly_revenue_months = monthly_revenue_months
        self.top_clients_limit = top_clients_limit

    @boundary("Invoice stats aggregation failed")
    def get_invoice_stats(self, owner_id: UUID) -> dict:
        stats = self.analytics.invoice_stats(owner_id)
        return {"success": True, "counts": stats.counts, "amounts": stats.amounts}

    @boundary("Transaction stats aggregation failed")
    def get_transaction_stats(self, owner_id: UUID) -> dict:
        stats = self.analytics.transaction_stats(owner_id)
        return {
            "success": True,
            "counts": stats.counts,
            "amounts": stats.amounts,
            "networks": [_dump(n) for n in stats.networks],
        }

    @boundary("Payment status aggregation failed")
    def get_payment_status_distribution(self, owner_id: UUID) -> dict:
        shares = self.analytics.payment_status_distribution(owner_id)
        return {"success": True, "data": [_dump(s) for s in shares]}

    @boundary("Network distribution aggregation failed")
    def get_network_distribution(self, owner_id: UUID) -> dict:
        shares = self.analytics.network_distribution(owner_id)
        return {"success": True, "data": [_dump(s) for s in shares]}

    @boundary("Monthly revenue aggregation failed")
    def get_monthly_revenue_data(self, owner_id: UUID, months_back: int | None = None) -> dict:
        if months_back is None:
            months_back = self.monthly_revenue_months
        months = self.analytics.monthly_revenue(owner_id, months_back)
        return {"success": True, "data": [_dump(m) for m in months]}

    @boundary("Top clients aggregation failed")
    def get_top_clients(self, owner_id: UUID, limit: int | None = None) -> dict:
        if limit is None:
            limit = self.top_clients_limit
        clients = self.analytics.top_clients(owner_id, limit)
        return {"success": True, "clients": [_dump(c) for c in clients]}


# =============================================================================
# TELEGRAM SETTINGS
# =============================================================================


class TelegramActions:
    """Bot setup from the settings page."""

    def __init__(
        self,
        client_factory: Callable[[str], TelegramClient] = TelegramClient,
        revalidator=None,
        app_name: str = "AI Finance Assistant",
    ):
        self.client_factory = client_factory
        self.revalidator = revalidator
        self.app_name = app_name

    @boundary("Failed to save Telegram settings")
    def save_telegram_settings(self, form: dict) -> dict:
        """Validate the settings and point the bot's webhook at webhook_url."""
        settings = parse(TelegramSettings, form)
        client = self.client_factory(settings.bot_token)
        if not register_webhook(client, str(settings.webhook_url)):
            return failure(ErrorCodes.EXTERNAL_SERVICE_ERROR, "Failed to set up Telegram webhook")
        if self.revalidator is not None:
            try:
                self.revalidator.revalidate(SETTINGS_PATH)
            except redis.RedisError as e:
                logger.error(f"Could not revalidate {SETTINGS_PATH}: {e}")
        return {"success": True}

    @boundary("Failed to connect to Telegram")
    def test_telegram_connection(self, form: dict) -> dict:
        """Send a test message with the submitted credentials."""
        settings = parse(TelegramConnectionTest, form)
        client = self.client_factory(settings.bot_token)
        try:
            client.send_message(settings.chat_id, f"✅ Test message from {self.app_name}")
        except TelegramError as e:
            return failure(e.code, f"Failed to connect to Telegram: {e}")
        return {"success": True}
