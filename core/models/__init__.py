"""Core domain models."""

from core.models.invoice import (
    AIGeneratedInvoice,
    Invoice,
    InvoiceCreate,
    InvoiceItem,
    InvoiceItemCreate,
    InvoiceStatus,
)
from core.models.transaction import Transaction, TransactionCreate, TransactionStatus
from core.models.payment import PaymentClaim
from core.models.analytics import (
    ClientRevenue,
    MonthlyRevenue,
    NetworkCount,
    NetworkShare,
    StatusShare,
    StatusTotals,
    TransactionTotals,
)
from core.models.notification import InvoiceEmailRequest, TelegramConnectionTest, TelegramSettings

__all__ = [
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceItem", "InvoiceItemCreate", "InvoiceStatus",
    "AIGeneratedInvoice",
    # Transaction
    "Transaction", "TransactionCreate", "TransactionStatus",
    # Payment
    "PaymentClaim",
    # Analytics
    "StatusTotals", "TransactionTotals", "NetworkCount", "StatusShare", "NetworkShare",
    "MonthlyRevenue", "ClientRevenue",
    # Notification
    "InvoiceEmailRequest", "TelegramSettings", "TelegramConnectionTest",
]
