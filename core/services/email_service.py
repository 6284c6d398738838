"""
Invoice emails.

Renders invoice and payment-confirmation HTML with Jinja2 and sends it to
the invoice's client through the email gateway. Delivery problems come
back as {"success": False, "error": ...}; they never raise.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from clients.email_client import EmailAttachment, EmailGatewayClient, EmailGatewayError
from core.models import Invoice
from utils.formatting import format_date
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class PDFRenderer(Protocol):
    """Anything that can turn an invoice into PDF bytes."""

    def render(self, invoice: Invoice) -> bytes: ...


def pdf_filename(invoice: Invoice) -> str:
    return f"invoice-{invoice.number}.pdf"


def _format_quantity(value: float) -> str:
    return f"{value:g}"


def build_template_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["money"] = lambda value: f"{value:.2f}"
    env.filters["long_date"] = format_date
    env.filters["quantity"] = _format_quantity
    return env


class InvoiceEmailService:
    """Send invoice and payment confirmation emails."""

    def __init__(
        self,
        gateway: EmailGatewayClient | None,
        pdf_renderer: PDFRenderer | None = None,
        app_name: str = "AI Finance Assistant",
    ):
        self.gateway = gateway
        self.pdf_renderer = pdf_renderer
        self.app_name = app_name
        self._env = build_template_env()

    def render_invoice_html(self, invoice: Invoice, now: datetime | None = None) -> str:
        template = self._env.get_template("invoice_email.html")
        return template.render(invoice=invoice, app_name=self.app_name, generated_at=now or now_utc())

    def render_payment_html(self, invoice: Invoice, now: datetime | None = None) -> str:
        template = self._env.get_template("payment_email.html")
        return template.render(invoice=invoice, app_name=self.app_name, generated_at=now or now_utc())

    def _send(self, invoice: Invoice, subject: str, html: str, sender_email: str, sender_name: str,
              attachments: list[EmailAttachment] | None = None) -> dict:
        if self.gateway is None:
            logger.warning("Email gateway not configured")
            return {"success": False, "error": "Email delivery is not configured"}
        try:
            message_id = self.gateway.send_email(
                to=invoice.client_email,
                subject=subject,
                html=html,
                sender_name=sender_name,
                sender_email=sender_email,
                attachments=attachments,
            )
        except EmailGatewayError as e:
            logger.error(f"Error sending email for invoice {invoice.number}: {e}")
            return {"success": False, "error": str(e)}
        return {"success": True, "message_id": message_id}

    def send_invoice(self, invoice: Invoice, sender_email: str, sender_name: str, attach_pdf: bool = True) -> dict:
        """
        Email the invoice to its client, optionally with the PDF attached.

        Without a PDF renderer the email goes out without the attachment.
        """
        attachments = []
        if attach_pdf:
            if self.pdf_renderer is None:
                logger.warning(f"No PDF renderer configured, sending invoice {invoice.number} without attachment")
            else:
                attachments.append(EmailAttachment(
                    filename=pdf_filename(invoice),
                    content=self.pdf_renderer.render(invoice),
                ))

        return self._send(
            invoice,
            subject=f"Invoice #{invoice.number} from {sender_name}",
            html=self.render_invoice_html(invoice),
            sender_email=sender_email,
            sender_name=sender_name,
            attachments=attachments,
        )

    def send_payment_confirmation(self, invoice: Invoice, sender_email: str, sender_name: str) -> dict:
        """Thank the client for a payment. Refused for unpaid invoices."""
        if not invoice.is_paid:
            return {"success": False, "error": "Cannot send payment confirmation for unpaid invoice"}

        return self._send(
            invoice,
            subject=f"Payment Confirmation for Invoice #{invoice.number}",
            html=self.render_payment_html(invoice),
            sender_email=sender_email,
            sender_name=sender_name,
        )
