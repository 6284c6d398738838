"""
Telegram notifications and bot command replies.

Messages use Telegram's legacy Markdown. Sending never raises: a failed
or unconfigured send is logged and reported as False, so a notification
problem can't undo the write that triggered it.
"""

import logging
from datetime import datetime
from typing import Any

from clients.telegram_client import TelegramClient, TelegramError
from core.models import Invoice, Transaction
from utils.chains import get_chain_name, get_explorer_url, is_valid_tx_hash
from utils.formatting import format_currency, format_date, truncate_address
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "AI Finance Assistant"

HELP_TEXT = (
    "*Available Commands:*\n\n"
    "/start - Get your Chat ID\n"
    "/help - Show this help message\n"
    "/status - Check if notifications are enabled"
)

DEFAULT_REPLY = "I can send you notifications about invoices and transactions. Type /help to see available commands."


# =============================================================================
# MESSAGE FORMATTING
# =============================================================================


def format_invoice_created(invoice: Invoice) -> str:
    return (
        "🧾 *New Invoice Created*\n\n"
        f"*Invoice:* {invoice.number}\n"
        f"*Client:* {invoice.client_name}\n"
        f"*Amount:* {format_currency(invoice.total_amount)}\n"
        f"*Due Date:* {format_date(invoice.due_date)}\n"
        f"*Status:* {invoice.status.value.upper()}"
    )


def format_invoice_paid(invoice: Invoice) -> str:
    message = (
        "💰 *Invoice Paid*\n\n"
        f"*Invoice:* {invoice.number}\n"
        f"*Client:* {invoice.client_name}\n"
        f"*Amount:* {format_currency(invoice.total_amount)}\n"
        f"*Paid on:* {format_date(invoice.paid_at) if invoice.paid_at else 'Unknown'}\n"
    )
    if invoice.transaction_hash:
        message += f"*Transaction:* {truncate_address(invoice.transaction_hash)}\n"
    return message


def format_transaction(transaction: Transaction) -> str:
    message = (
        "💸 *New Transaction*\n\n"
        f"*Amount:* {transaction.amount:g} {transaction.token_type}\n"
        f"*From:* {truncate_address(transaction.from_address)}\n"
        f"*To:* {truncate_address(transaction.to_address)}\n"
        f"*Network:* {get_chain_name(transaction.network_id)}\n"
        f"*Status:* {transaction.status.value.upper()}\n"
    )
    if transaction.description:
        message += f"*Description:* {transaction.description}\n"
    explorer_url = get_explorer_url(transaction.network_id, transaction.hash)
    if explorer_url and is_valid_tx_hash(transaction.hash):
        message += f"[View on explorer]({explorer_url})\n"
    return message


def format_invoice_overdue(invoice: Invoice, now: datetime | None = None) -> str:
    return (
        "⚠️ *Invoice Overdue*\n\n"
        f"*Invoice:* {invoice.number}\n"
        f"*Client:* {invoice.client_name}\n"
        f"*Amount:* {format_currency(invoice.total_amount)}\n"
        f"*Due Date:* {format_date(invoice.due_date)}\n"
        f"*Days Overdue:* {invoice.days_overdue(now or now_utc())}"
    )


# =============================================================================
# NOTIFIER
# =============================================================================


class TelegramNotifier:
    """
    Send notifications to the configured chat and answer bot commands.

    Either argument may be None; sends then return False with a warning.
    """

    def __init__(
        self,
        client: TelegramClient | None,
        chat_id: str | None,
        app_name: str = DEFAULT_APP_NAME,
    ):
        self.client = client
        self.chat_id = chat_id
        self.app_name = app_name

    @property
    def enabled(self) -> bool:
        return self.client is not None and bool(self.chat_id)

    def send_message(self, chat_id: str | int, text: str, markdown: bool = True) -> bool:
        """Send text to any chat. False on failure."""
        if self.client is None:
            logger.warning("Telegram bot token not configured")
            return False
        try:
            self.client.send_message(str(chat_id), text, markdown=markdown)
        except TelegramError as e:
            logger.error(f"Error sending Telegram message to {chat_id}: {e}")
            return False
        return True

    def notify(self, text: str) -> bool:
        """Send text to the configured notification chat."""
        if not self.enabled:
            logger.warning("Telegram bot token or chat ID not configured")
            return False
        return self.send_message(self.chat_id, text)

    def invoice_created(self, invoice: Invoice) -> bool:
        return self.notify(format_invoice_created(invoice))

    def invoice_paid(self, invoice: Invoice) -> bool:
        return self.notify(format_invoice_paid(invoice))

    def invoice_overdue(self, invoice: Invoice, now: datetime | None = None) -> bool:
        return self.notify(format_invoice_overdue(invoice, now))

    def transaction_recorded(self, transaction: Transaction) -> bool:
        return self.notify(format_transaction(transaction))

    def is_notification_chat(self, chat_id: str | int) -> bool:
        return bool(self.chat_id) and str(chat_id) == str(self.chat_id)

    def handle_update(self, update: dict[str, Any]) -> bool:
        """
        Answer a webhook update from Telegram.

        Replies to /start, /help and /status, and with a hint to anything
        else. Updates without a message (edits, callbacks) are ignored.
        Returns whether the reply (if any) was delivered.
        """
        message = update.get("message")
        if not message:
            return True

        chat_id = message.get("chat", {}).get("id")
        if chat_id is None:
            logger.warning("Telegram update message has no chat id")
            return False
        text = message.get("text") or ""

        if text.startswith("/start"):
            return self.send_message(
                chat_id,
                f"👋 Welcome to {self.app_name}!\n\n"
                f"Your Chat ID is: `{chat_id}`\n\n"
                "Please add this Chat ID to your settings to receive notifications.",
            )
        if text.startswith("/help"):
            return self.send_message(chat_id, HELP_TEXT)
        if text.startswith("/status"):
            if self.is_notification_chat(chat_id):
                return self.send_message(chat_id, "✅ Notifications are enabled for this chat")
            return self.send_message(chat_id, "❌ Notifications are not enabled for this chat")
        return self.send_message(chat_id, DEFAULT_REPLY, markdown=False)

    def setup_webhook(self, url: str) -> bool:
        """Register the webhook URL and confirm Telegram stored it."""
        if self.client is None:
            logger.warning("Telegram bot token not configured")
            return False
        return register_webhook(self.client, url)


def register_webhook(client: TelegramClient, url: str) -> bool:
    """setWebhook, then verify with getWebhookInfo. False on any failure."""
    try:
        client.set_webhook(url)
        info = client.get_webhook_info()
    except TelegramError as e:
        logger.error(f"Error setting up Telegram webhook: {e}")
        return False
    if info.get("url") != url:
        logger.error(f"Telegram webhook verification failed: expected {url}, got {info.get('url')}")
        return False
    return True
