"""Transaction domain models.

A transaction records an on-chain transfer reported by the client. The
hash is taken at face value; nothing here talks to a chain.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class TransactionStatus(str, Enum):
    """Transaction confirmation status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransactionCreate(BaseModel):
    """
    Data required to record a transaction.

    `to_address` may only be empty for invoice payments, where it is copied
    from an invoice that may not name a payment address.
    """

    model_config = {"str_strip_whitespace": True}

    amount: float = Field(..., ge=0)
    token_type: str = Field(..., min_length=1, max_length=20)
    from_address: str = Field(..., min_length=1, max_length=100)
    invoice_id: UUID | None = None
    to_address: str = Field("", max_length=100, validate_default=True)
    hash: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    network_id: int
    block_number: int | None = Field(None, ge=0)
    status: TransactionStatus = TransactionStatus.CONFIRMED

    @field_validator("invoice_id", "description", "block_number", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("to_address")
    @classmethod
    def require_to_address(cls, value: str, info: ValidationInfo) -> str:
        # invoice_id failed and reports its own error
        if "invoice_id" not in info.data:
            return value
        if not value and info.data["invoice_id"] is None:
            raise ValueError("To address is required")
        return value


class Transaction(BaseModel):
    """Full transaction entity as stored."""

    id: UUID
    user_id: UUID
    amount: float
    token_type: str
    from_address: str
    to_address: str
    hash: str
    invoice_id: UUID | None = None
    description: str | None = None
    network_id: int
    block_number: int | None = None
    status: TransactionStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
