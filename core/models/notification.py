"""Inputs for outbound email and Telegram configuration."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator


class InvoiceEmailRequest(BaseModel):
    """Send an invoice (or its payment confirmation) to the invoice's client."""

    model_config = {"str_strip_whitespace": True}

    invoice_id: UUID
    sender_email: EmailStr
    sender_name: str = Field(..., min_length=1, max_length=200)
    email_type: Literal["invoice", "payment"] = "invoice"
    attach_pdf: bool = True


class TelegramSettings(BaseModel):
    """Bot credentials plus the public URL Telegram should post updates to."""

    model_config = {"str_strip_whitespace": True}

    bot_token: str = Field(..., min_length=1)
    chat_id: str = Field(..., min_length=1)
    webhook_url: HttpUrl

    @field_validator("webhook_url")
    @classmethod
    def require_https(cls, value: HttpUrl) -> HttpUrl:
        if value.scheme != "https":
            raise ValueError("Webhook URL must use https")
        return value


class TelegramConnectionTest(BaseModel):
    model_config = {"str_strip_whitespace": True}

    bot_token: str = Field(..., min_length=1)
    chat_id: str = Field(..., min_length=1)
