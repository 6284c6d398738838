"""
Handler that stamps dashboard pages after invoice and transaction writes.

Subscribed to the InvoiceEvent and TransactionEvent base classes, so every
write event refreshes the listing it shows up in plus the dashboard home.
"""

from typing import Callable

from core.events import DomainEvent, InvoiceEvent, TransactionEvent
from core.revalidation import DASHBOARD_PATH, INVOICES_PATH, TRANSACTIONS_PATH


def paths_for(event: DomainEvent) -> tuple[str, ...]:
    if isinstance(event, InvoiceEvent):
        return (INVOICES_PATH, DASHBOARD_PATH)
    if isinstance(event, TransactionEvent):
        return (TRANSACTIONS_PATH, DASHBOARD_PATH)
    return (DASHBOARD_PATH,)


def handle_listing_change(revalidator) -> Callable:
    """Factory for the revalidation handler."""

    def handler(event: DomainEvent):
        revalidator.revalidate(*paths_for(event), at=event.occurred_at)

    return handler
