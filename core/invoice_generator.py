"""
LLM-powered invoice drafting from a free-text description.

Turns "Website redesign for Acme, 40 hours at $85, due end of month" into
structured invoice fields the user reviews before saving. Generation
never fails from the caller's point of view: any LLM, parsing or
validation problem yields a placeholder invoice instead.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any

from json_repair import repair_json
from pydantic import ValidationError as PydanticValidationError

from clients.llm_client import LLMClient
from core.exceptions import ExternalServiceError
from core.models import AIGeneratedInvoice, InvoiceItem
from core.models.invoice import new_item_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

FALLBACK_CLIENT_NAME = "AI Generated Client"
FALLBACK_CLIENT_EMAIL = "client@example.com"
FALLBACK_ITEM_DESCRIPTION = "Service as described in prompt"


class InvoiceGenerator:
    """Draft invoices from natural language with an LLM."""

    SYSTEM_PROMPT = """You are an assistant that drafts invoices from a short description of work.

Return a single JSON object with these keys:
- client_name (string, required)
- client_email (string, required)
- client_address (string, optional)
- items (array, required, at least one): each with description (string), quantity (number >= 1), unit_price (number >= 0), amount (number, quantity * unit_price)
- notes (string, optional)
- terms (string, optional)
- due_date (string, required, YYYY-MM-DD)

If the description gives no due date, use {default_due_date}. Today is {today}.

IMPORTANT: Output raw JSON only. Do not wrap in code fences. Do not include any text before or after the JSON.

Example input: "Logo design for Bluebird Cafe (hello@bluebird.cafe), 3 concepts at $150 each"

Example of correct output:
{{"client_name": "Bluebird Cafe", "client_email": "hello@bluebird.cafe", "items": [{{"description": "Logo design concept", "quantity": 3, "unit_price": 150, "amount": 450}}], "due_date": "{default_due_date}"}}
"""

    def __init__(self, llm: LLMClient | None, fallback_due_days: int = 30):
        self.llm = llm
        self.fallback_due_days = fallback_due_days

    def generate(self, prompt: str, now: datetime | None = None) -> AIGeneratedInvoice:
        """
        Draft an invoice from a prompt.

        Returns the fallback invoice when no LLM is configured or anything
        about the response is unusable.
        """
        now = now or now_utc()
        if self.llm is None:
            logger.warning("No LLM configured, returning fallback invoice")
            return self.fallback(now)

        default_due = (now + timedelta(days=self.fallback_due_days)).date().isoformat()
        system_prompt = self.SYSTEM_PROMPT.format(default_due_date=default_due, today=now.date().isoformat())

        try:
            response = self.llm.generate(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": f"Draft an invoice for:\n\n{prompt}"},
                ]
            )
        except ExternalServiceError as e:
            logger.warning(f"Invoice generation failed, using fallback: {e}")
            return self.fallback(now)
        except Exception:
            logger.exception("Unexpected error during invoice generation, using fallback")
            return self.fallback(now)

        data = self._parse_json_with_repair(response.content)
        if not data:
            logger.warning("Invoice generation returned no usable JSON, using fallback")
            return self.fallback(now)

        try:
            return AIGeneratedInvoice.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"Generated invoice failed validation, using fallback: {e.error_count()} error(s)")
            return self.fallback(now)

    def fallback(self, now: datetime | None = None) -> AIGeneratedInvoice:
        """The fixed placeholder invoice: one 1 x 100 item, due in fallback_due_days."""
        now = now or now_utc()
        return AIGeneratedInvoice(
            client_name=FALLBACK_CLIENT_NAME,
            client_email=FALLBACK_CLIENT_EMAIL,
            items=[
                InvoiceItem(
                    id=new_item_id(),
                    description=FALLBACK_ITEM_DESCRIPTION,
                    quantity=1,
                    unit_price=100,
                    amount=100,
                )
            ],
            due_date=now + timedelta(days=self.fallback_due_days),
        )

    def _parse_json_with_repair(self, content: str) -> dict[str, Any]:
        """
        Parse JSON with repair fallback for common LLM errors.

        Returns an empty dict when the content can't be turned into an object.
        """
        try:
            result = json.loads(content)
        except (json.JSONDecodeError, TypeError):
            try:
                result = json.loads(repair_json(content))
            except (json.JSONDecodeError, TypeError, ValueError) as e:
                logger.warning(f"Could not parse or repair JSON: {e}")
                return {}

        if not isinstance(result, dict):
            logger.warning(f"Invoice JSON was not an object: {type(result).__name__}")
            return {}
        return result
