"""Event handler wiring."""

from core.event_bus import EventBus
from core.events import (
    InvoiceCreated,
    InvoiceEvent,
    InvoiceOverdue,
    InvoicePaid,
    TransactionEvent,
    TransactionRecorded,
)
from core.handlers.notification_handlers import (
    handle_invoice_created,
    handle_invoice_overdue,
    handle_invoice_paid,
    handle_transaction_recorded,
)
from core.handlers.revalidation_handler import handle_listing_change


def register_handlers(event_bus: EventBus, notifier=None, revalidator=None) -> EventBus:
    """Subscribe the notification and revalidation handlers that are configured."""
    if revalidator is not None:
        listing_handler = handle_listing_change(revalidator)
        event_bus.subscribe(InvoiceEvent, listing_handler)
        event_bus.subscribe(TransactionEvent, listing_handler)

    if notifier is not None:
        event_bus.subscribe(InvoiceCreated, handle_invoice_created(notifier))
        event_bus.subscribe(InvoicePaid, handle_invoice_paid(notifier))
        event_bus.subscribe(InvoiceOverdue, handle_invoice_overdue(notifier))
        event_bus.subscribe(TransactionRecorded, handle_transaction_recorded(notifier))

    return event_bus
