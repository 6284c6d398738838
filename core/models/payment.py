"""Payment claim submitted by a payer's wallet."""

from uuid import UUID

from pydantic import BaseModel, Field


class PaymentClaim(BaseModel):
    """A payer's assertion that `hash` on `network_id` settles an invoice."""

    model_config = {"str_strip_whitespace": True}

    invoice_id: UUID
    from_address: str = Field(..., min_length=1, max_length=100)
    hash: str = Field(..., min_length=1, max_length=100)
    network_id: int
