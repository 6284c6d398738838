"""
Email gateway client for sending invoice emails via HTTP gateway.

Uses HMAC-SHA256 signature for request authentication. Attachments travel
base64-encoded inside the signed JSON payload.
"""

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass

import requests

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class EmailGatewayError(ExternalServiceError):
    """Raised when email gateway request fails."""

    def __init__(self, message: str):
        super().__init__("email", message)


@dataclass(frozen=True)
class EmailAttachment:
    """File attached to an outgoing email."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"

    def to_payload(self) -> dict:
        return {
            "filename": self.filename,
            "content": base64.b64encode(self.content).decode("ascii"),
            "content_type": self.content_type,
        }


class EmailGatewayClient:
    """Send emails via HTTP gateway with HMAC signature verification."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: int = 10):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the email gateway endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if not hmac_secret:
            raise ValueError("hmac_secret is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def sign(self, payload_json: str) -> str:
        """HMAC-SHA256 hex digest of the serialized payload."""
        return hmac.new(
            self.hmac_secret.encode("utf-8"),
            payload_json.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _sign_and_send(self, payload: dict) -> dict:
        """
        Sign payload with HMAC and send to gateway.

        Returns:
            Parsed gateway response body

        Raises:
            EmailGatewayError: On any failure
        """
        payload_json = json.dumps(payload, separators=(",", ":"))

        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Signature": self.sign(payload_json),
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=payload_json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Email gateway connection failed: {e}")
            raise EmailGatewayError(f"Connection failed: {e}") from e

        try:
            response_data = response.json()
        except ValueError as e:
            logger.error(f"Email gateway returned invalid JSON: {response.text}")
            raise EmailGatewayError("Invalid response from gateway") from e

        if response.status_code != 200 or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Email gateway error: {error_msg}")
            raise EmailGatewayError(f"Gateway error: {error_msg}")

        return response_data

    def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        sender_name: str,
        sender_email: str,
        attachments: list[EmailAttachment] | None = None,
    ) -> str | None:
        """
        Send an HTML email via gateway.

        Args:
            to: Recipient email address
            subject: Email subject line
            html: Rendered HTML body
            sender_name: Display name for the From header
            sender_email: Address for the From header
            attachments: Optional files to attach

        Returns:
            Gateway message id, if the gateway reports one

        Raises:
            EmailGatewayError: On gateway failure
        """
        payload = {
            "type": "custom",
            "email": to,
            "subject": subject,
            "html": html,
            "from": f'"{sender_name}" <{sender_email}>',
            "attachments": [a.to_payload() for a in attachments or []],
        }
        response_data = self._sign_and_send(payload)
        logger.info(f"Email sent to {to}: {subject}")
        return response_data.get("message_id")
