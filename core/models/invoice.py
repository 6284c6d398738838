"""Invoice domain models.

Amounts are plain decimal numbers in the invoice's display currency.
An invoice total is always the sum of its item amounts.
"""

import json
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from utils.timezone import coerce_datetime


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


def new_item_id() -> str:
    """Short random id for an invoice line item."""
    return uuid4().hex[:12]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class InvoiceItemCreate(BaseModel):
    """A line item as submitted. Amount defaults to quantity * unit_price."""

    model_config = {"str_strip_whitespace": True}

    id: str | None = None
    description: str = Field(..., min_length=1, max_length=500)
    quantity: float = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    amount: float | None = Field(None, ge=0)

    @model_validator(mode="after")
    def compute_amount_if_missing(self) -> "InvoiceItemCreate":
        """Fill amount from quantity * unit_price when the caller omits it."""
        if self.amount is None:
            self.amount = round(self.quantity * self.unit_price, 2)
        return self

    def to_item(self) -> "InvoiceItem":
        return InvoiceItem(
            id=self.id or new_item_id(),
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            amount=self.amount,
        )


class InvoiceItem(BaseModel):
    """Line item as stored inside an invoice."""

    id: str
    description: str
    quantity: float
    unit_price: float
    amount: float


class InvoiceCreate(BaseModel):
    """
    Data required to create an invoice.

    `items` may arrive as a JSON-encoded string, the way the dashboard
    form posts it. Set `draft` to create the invoice in DRAFT instead of
    PENDING.
    """

    model_config = {"str_strip_whitespace": True}

    client_name: str = Field(..., min_length=1, max_length=200)
    client_email: EmailStr
    client_address: str | None = Field(None, max_length=1000)
    items: list[InvoiceItemCreate] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=2000)
    terms: str | None = Field(None, max_length=2000)
    due_date: datetime
    payment_address: str | None = Field(None, max_length=100)
    payment_token_type: str | None = Field(None, max_length=20)
    draft: bool = False

    @field_validator("client_address", "notes", "terms", "payment_address", "payment_token_type", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        return _blank_to_none(value)

    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, value):
        """Accept the JSON string a browser form sends."""
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                raise ValueError("Items must be a JSON array")
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return coerce_datetime(value)

    @property
    def total_amount(self) -> float:
        return sum(item.amount for item in self.items)


class Invoice(BaseModel):
    """Full invoice entity as stored."""

    id: UUID
    user_id: UUID
    number: str
    client_name: str
    client_email: str
    client_address: str | None = None
    items: list[InvoiceItem]
    notes: str | None = None
    terms: str | None = None
    due_date: datetime
    status: InvoiceStatus
    total_amount: float
    payment_address: str | None = None
    payment_token_type: str | None = None
    paid_at: datetime | None = None
    transaction_hash: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    def days_overdue(self, now: datetime) -> int:
        """Whole days past the due date, never negative."""
        return max((now - self.due_date).days, 0)


class AIGeneratedInvoice(BaseModel):
    """Invoice fields proposed by the AI generator, not yet persisted."""

    client_name: str
    client_email: str
    client_address: str | None = None
    items: list[InvoiceItem] = Field(..., min_length=1)
    notes: str | None = None
    terms: str | None = None
    due_date: datetime

    @field_validator("items", mode="before")
    @classmethod
    def assign_item_ids(cls, value):
        """LLM output has no item ids; validate as submitted items and give them ids."""
        if not isinstance(value, list):
            return value
        return [
            InvoiceItemCreate.model_validate(item).to_item() if not isinstance(item, InvoiceItem) else item
            for item in value
        ]

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        return coerce_datetime(value)
