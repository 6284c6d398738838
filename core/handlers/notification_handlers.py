"""
Handlers that forward domain events to Telegram.

Each factory closes over a TelegramNotifier. A send failure is logged by
the notifier and reported as False; handlers only add context.
"""

import logging
from typing import Callable

from core.events import InvoiceCreated, InvoiceOverdue, InvoicePaid, TransactionRecorded

logger = logging.getLogger(__name__)


def handle_invoice_created(notifier) -> Callable:
    """Factory for the InvoiceCreated notification handler."""

    def handler(event: InvoiceCreated):
        if not notifier.invoice_created(event.invoice):
            logger.info(f"Invoice created notification not sent for {event.invoice.number}")

    return handler


def handle_invoice_paid(notifier) -> Callable:
    """Factory for the InvoicePaid notification handler."""

    def handler(event: InvoicePaid):
        if not notifier.invoice_paid(event.invoice):
            logger.info(f"Invoice paid notification not sent for {event.invoice.number}")

    return handler


def handle_invoice_overdue(notifier) -> Callable:
    """Factory for the InvoiceOverdue notification handler."""

    def handler(event: InvoiceOverdue):
        if not notifier.invoice_overdue(event.invoice, now=event.occurred_at):
            logger.info(f"Overdue notification not sent for {event.invoice.number}")

    return handler


def handle_transaction_recorded(notifier) -> Callable:
    """Factory for the TransactionRecorded notification handler."""

    def handler(event: TransactionRecorded):
        if not notifier.transaction_recorded(event.transaction):
            logger.info(f"Transaction notification not sent for {event.transaction.id}")

    return handler
