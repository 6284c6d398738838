"""
Anthropic LLM client for one-shot text generation.

Usage:
    response = client.generate([
        {"role": "system", "content": "Return JSON only."},
        {"role": "user", "content": prompt},
    ])
    response.content  # model text
"""

import logging
from typing import Any

import anthropic
from pydantic import BaseModel

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class LLMResponse(BaseModel):
    """Non-streaming response."""

    content: str
    raw_response: dict[str, Any] | None = None
    usage: dict[str, int] | None = None


class LLMError(ExternalServiceError):
    """LLM operation error."""

    def __init__(self, message: str):
        super().__init__("llm", message)


class LLMClient:
    """Anthropic API client."""

    DEFAULT_MODEL = "claude-haiku-4-5"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key. If None, fetched from Vault.
            model: Model name. If None, uses DEFAULT_MODEL.
        """
        if api_key is None:
            from clients.vault_client import get_llm_config

            config = get_llm_config()
            api_key = config["api_key"]
            model = model or config.get("model_name")

        self.model = model or self.DEFAULT_MODEL
        self._client = anthropic.Anthropic(api_key=api_key)
        logger.info(f"LLM client initialized with model: {self.model}")

    def generate(
        self,
        messages: list[dict],
        temperature: float = 0.2,
        max_tokens: int = 1024,
        model: str | None = None,
    ) -> LLMResponse:
        """
        Single-shot generation.

        Args:
            messages: [{"role": "system"|"user"|"assistant", "content": str}]
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum output tokens
            model: Override model for this call

        Returns:
            LLMResponse with content, raw_response, and usage stats

        Raises:
            LLMError: If API call fails
        """
        system_prompt, api_messages = self._prepare_messages(messages)

        params = {
            "model": model or self.model,
            "messages": api_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            params["system"] = system_prompt

        try:
            response = self._client.messages.create(**params)
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise LLMError(f"LLM API call failed: {e}") from e

        return LLMResponse(
            content=self._extract_text(response),
            raw_response={"id": response.id, "model": response.model},
            usage=self._extract_usage(response),
        )

    # === Private ===

    def _prepare_messages(
        self, messages: list[dict]
    ) -> tuple[str | None, list[dict]]:
        """Extract system prompt and prepare for Anthropic API."""
        system_content = None
        api_messages = []

        for msg in messages:
            if msg["role"] == "system":
                system_content = msg["content"]
            else:
                api_messages.append(msg)

        return system_content, api_messages

    def _extract_text(self, response) -> str:
        return "".join(b.text for b in response.content if b.type == "text")

    def _extract_usage(self, response) -> dict[str, int] | None:
        if not response.usage:
            return None
        return {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        }
